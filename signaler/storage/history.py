"""
Persists a bounded, newest-first log of run attempts to a single JSON document.
"""

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from signaler.exceptions import HistoryWriteError
from signaler.models.run import HistoryEntry

log = logging.getLogger(__name__)

HISTORY_LIMIT = 100


class RunHistoryStore:
    """
    An append-at-head run history backed by history.json.

    The file is read at most once per process; afterwards the in-memory list is
    authoritative and external edits to the file are not picked up.
    """

    def __init__(self, app_data_dir: Path, limit: int = HISTORY_LIMIT):
        self.history_path = Path(app_data_dir) / "history.json"
        self.limit = limit
        self._entries: list[HistoryEntry] | None = None
        self._lock = threading.Lock()

    def _load_from_disk(self) -> list[HistoryEntry]:
        """Reads the history file, falling back to an empty list on any failure."""
        try:
            raw = json.loads(self.history_path.read_text(encoding="utf-8"))
            return [HistoryEntry.model_validate(item) for item in raw][: self.limit]
        except FileNotFoundError:
            return []
        except (
            OSError,
            TypeError,
            UnicodeDecodeError,
            json.JSONDecodeError,
            ValidationError,
        ) as e:
            log.debug(f"Ignoring unreadable history file {self.history_path}: {e}")
            return []

    def _ensure_loaded(self) -> list[HistoryEntry]:
        if self._entries is None:
            self._entries = self._load_from_disk()
        return self._entries

    def _write(self, entries: list[HistoryEntry]) -> None:
        payload = [entry.model_dump(by_alias=True) for entry in entries]
        try:
            self.history_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.history_path, "w", encoding="utf-8") as f:
                f.write(json.dumps(payload, indent=2) + "\n")
        except OSError as e:
            raise HistoryWriteError(
                f"Failed to write run history to '{self.history_path}': {e}"
            ) from e

    def record(self, entry: HistoryEntry) -> None:
        """
        Inserts an entry at the head, truncates to the limit and persists the list.

        The in-memory list only changes once the file has been written.

        Raises:
            HistoryWriteError: If history.json cannot be written.
        """
        with self._lock:
            updated = [entry, *self._ensure_loaded()][: self.limit]
            self._write(updated)
            self._entries = updated
        log.debug(f"Recorded run {entry.id} in history ({len(updated)} entries).")

    def list(self) -> list[HistoryEntry]:
        """Returns the recorded runs, newest first."""
        with self._lock:
            return list(self._ensure_loaded())
