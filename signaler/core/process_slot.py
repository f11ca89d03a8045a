"""
Single-occupancy registry for the live engine process.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from signaler.exceptions import RunConflictError, StateCorruptedError

log = logging.getLogger(__name__)


class ProcessSlot:
    """
    Holds at most one run: its id and, once spawned, its process.

    A run first reserves the slot, then installs its process. Whoever observes
    termination first (the output reader or a cancel request) clears it; clearing
    is compare-and-clear on the run id, so a finished run can never clear the
    slot of a run started after it.

    Every check-and-update runs inside `transaction()`. If one of them raises,
    the slot is marked corrupted and all later operations fail with
    StateCorruptedError.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._run_id: str | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._poisoned = False

    @property
    def is_occupied(self) -> bool:
        return self._run_id is not None

    @property
    def current_run_id(self) -> str | None:
        return self._run_id

    @asynccontextmanager
    async def transaction(self):
        async with self._lock:
            if self._poisoned:
                raise StateCorruptedError(
                    "internal state corrupted: engine process slot is unusable"
                )
            try:
                yield self
            except BaseException:
                self._poisoned = True
                log.error("Engine process slot corrupted by a failed update.")
                raise

    async def reserve(self, run_id: str) -> None:
        """
        Claims the empty slot for `run_id`.

        Raises:
            RunConflictError: If another run holds the slot.
        """
        async with self.transaction():
            active = self._run_id
            if active is None:
                self._run_id = run_id
                self._process = None
        if active is not None:
            raise RunConflictError(f"run already in progress ({active})")

    async def install(self, run_id: str, process: asyncio.subprocess.Process) -> bool:
        """
        Attaches the spawned process to its reservation. Returns False if the
        reservation was cancelled in the meantime.
        """
        async with self.transaction():
            if self._run_id != run_id:
                return False
            self._process = process
            return True

    async def release(self, run_id: str) -> bool:
        """Clears the slot if it still belongs to `run_id`."""
        async with self.transaction():
            if self._run_id != run_id:
                return False
            self._run_id = None
            self._process = None
            return True

    async def take(self) -> tuple[str, asyncio.subprocess.Process | None] | None:
        """Empties the slot unconditionally, returning what it held."""
        async with self.transaction():
            if self._run_id is None:
                return None
            held = (self._run_id, self._process)
            self._run_id = None
            self._process = None
            return held
