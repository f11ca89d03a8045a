"""
Supervised engine runs for interactive front ends.

`RunOrchestrator.start_run` returns as soon as the engine is spawned. A
background task then turns the engine's output into events on the bus and,
however the run ends, publishes one TerminatedEvent and frees the process slot.
"""

import asyncio
import logging
import os
import signal
import time
from collections.abc import Callable
from pathlib import Path

from signaler.exceptions import EngineProcessError
from signaler.models.events import (
    EngineEvent,
    TerminatedEvent,
    parse_stderr_line,
    parse_stdout_line,
)
from signaler.models.run import HistoryEntry, RunMode, StartRunResult
from signaler.storage.history import RunHistoryStore
from signaler.utils.formatting import utc_now_iso
from signaler.utils.structured_logger import RunLogger, create_run_logger

from .event_bus import EventBus, EventSubscription
from .process_slot import ProcessSlot
from .runner import EngineRunner
from .workspace import RunWorkspace

log = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024

RunnerFactory = Callable[[], EngineRunner]


def build_engine_args(
    mode: RunMode, output_dir: Path, target: str, config_path: Path | None = None
) -> list[str]:
    """
    Arguments forwarded to the engine for a supervised run. Everything after
    '--' goes to the engine's own argument parser untouched.
    """
    if mode is RunMode.FOLDER:
        return [
            "folder",
            "--engine-json",
            "--output-dir",
            str(output_dir),
            "--",
            "--root",
            target,
        ]
    return [
        "audit",
        "--engine-json",
        "--output-dir",
        str(output_dir),
        "--",
        "--config",
        str(config_path),
    ]


def _exit_code(returncode: int | None) -> int | None:
    if returncode is None or returncode < 0:
        return None
    return returncode


class RunOrchestrator:
    """Owns the lifecycle of at most one supervised engine run."""

    def __init__(
        self,
        workspace: RunWorkspace,
        history: RunHistoryStore,
        runner_factory: RunnerFactory,
        slot: ProcessSlot | None = None,
        bus: EventBus | None = None,
        run_logger: RunLogger | None = None,
    ):
        """
        Args:
            workspace: Allocates output directories and url-mode configs.
            history: Receives a record of every accepted run.
            runner_factory: Resolves the engine afresh for each run.
            slot: The shared single-run registry.
            bus: Where engine events are published.
            run_logger: Structured lifecycle logger.
        """
        self.workspace = workspace
        self.history = history
        self.runner_factory = runner_factory
        self.slot = slot or ProcessSlot()
        self.bus = bus or EventBus()
        self.run_logger = run_logger or create_run_logger()[1]
        self._reader_tasks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self.slot.is_occupied

    def subscribe(self) -> EventSubscription:
        return self.bus.subscribe()

    async def start_run(self, mode: RunMode | str, target: str) -> StartRunResult:
        """
        Starts a supervised run and returns its output directory immediately.

        The run is recorded in history before the engine is spawned, so a
        failure to spawn still leaves a history entry behind.

        Raises:
            RunConflictError: If a run is already active.
            HistoryWriteError, WorkspaceError: If run bookkeeping cannot be written.
            ResolutionError: If the engine cannot be located.
            EngineProcessError: If the engine cannot be spawned.
            StateCorruptedError: If the process slot is unusable.
        """
        mode = RunMode(mode)
        run_id = self.workspace.new_run_id()
        await self.slot.reserve(run_id)

        try:
            output_dir = self.workspace.new_output_dir(run_id)
            entry = HistoryEntry(
                id=run_id,
                created_at=utc_now_iso(),
                mode=mode.value,
                target=target,
                output_dir=str(output_dir),
            )
            await asyncio.to_thread(self.history.record, entry)
            self.run_logger.run_started(run_id, mode.value, target, str(output_dir))

            config_path = None
            if mode is RunMode.URL:
                config_path = await asyncio.to_thread(
                    self.workspace.write_url_mode_config, output_dir, target
                )
            args = build_engine_args(mode, output_dir, target, config_path)

            runner = await asyncio.to_thread(self.runner_factory)
            command = runner.command(args)
            process = await self._spawn(command)
        except BaseException as e:
            await self.slot.release(run_id)
            self.run_logger.run_failed(run_id, str(e))
            raise

        if not await self.slot.install(run_id, process):
            self._kill(process)
            await process.wait()
            raise EngineProcessError(f"Run {run_id} was cancelled before it started.")

        self.run_logger.run_spawned(run_id, process.pid, command)
        reader = asyncio.create_task(self._supervise(run_id, process, time.monotonic()))
        self._reader_tasks.add(reader)
        reader.add_done_callback(self._reader_tasks.discard)
        return StartRunResult(run_id=run_id, output_dir=str(output_dir))

    async def cancel_run(self) -> bool:
        """
        Kills the active engine and frees the slot at once. Returns False when
        there was nothing to cancel.
        """
        held = await self.slot.take()
        if held is None:
            return False
        run_id, process = held
        if process is not None:
            self.run_logger.run_cancelled(run_id, process.pid)
            self._kill(process)
        return True

    async def wait_finished(self) -> None:
        """Waits until every output reader, including cancelled runs', has finished."""
        while self._reader_tasks:
            await asyncio.gather(*self._reader_tasks)

    async def _spawn(self, command: list[str]) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=(os.name != "nt"),
            )
        except OSError as e:
            raise EngineProcessError(f"Failed to start engine: {e}") from e

    def _kill(self, process: asyncio.subprocess.Process) -> None:
        """Forcefully ends the engine and, on POSIX, everything it spawned."""
        if process.returncode is not None:
            return
        try:
            if os.name != "nt":
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except (ProcessLookupError, PermissionError):
            pass

    def _emit(self, event: EngineEvent | None) -> None:
        if event is not None:
            self.bus.publish(event)

    async def _drain(self, run_id: str, stream: asyncio.StreamReader, parse) -> None:
        """Splits a pipe into lines and publishes one event per non-blank line."""
        buffer = bytearray()
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            buffer.extend(chunk)
            while (newline_index := buffer.find(b"\n")) >= 0:
                line = buffer[:newline_index].decode("utf-8", errors="replace")
                del buffer[: newline_index + 1]
                self._emit(parse(run_id, line))
        if buffer:
            self._emit(parse(run_id, buffer.decode("utf-8", errors="replace")))

    async def _supervise(
        self, run_id: str, process: asyncio.subprocess.Process, started_at: float
    ) -> None:
        exit_code = None
        try:
            await asyncio.gather(
                self._drain(run_id, process.stdout, parse_stdout_line),
                self._drain(run_id, process.stderr, parse_stderr_line),
            )
            exit_code = _exit_code(await process.wait())
        except asyncio.CancelledError:
            self._kill(process)
            raise
        except Exception as e:
            log.error(f"Lost engine output for {run_id}: {e}", exc_info=True)
            self.run_logger.run_failed(run_id, str(e))
            self._kill(process)
        finally:
            self.bus.publish(TerminatedEvent(run_id, exit_code))
            await self.slot.release(run_id)
            self.run_logger.run_finished(
                run_id, exit_code, time.monotonic() - started_at
            )
