"""
Structured logging for supervised runs.

Lifecycle events go to the regular `logging` tree as `event key=value` lines and,
when enabled, are appended as JSON objects to a per-day file under the log
directory, so runs started from different launcher processes end up in one
place.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

from signaler.utils.formatting import utc_now_iso


class StructuredLogger:
    """
    Emits named events with keyword fields.

    Usage:
        with StructuredLogger("signaler.runs", log_dir=Path("logs")) as logger:
            logger.info("run_started", run_id="run-1700000000000", mode="url")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Name of the stdlib logger that receives the text form.
            log_dir: Directory for the JSONL files; None disables them.
            enable_json: Append events to `signaler-runs-<date>.jsonl`.
            enable_console: Forward events to the stdlib logger.
        """
        self.name = name
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console
        self._logger = logging.getLogger(name)
        self._context: dict[str, Any] = {"pid": os.getpid()}

        self.json_log_path: Path | None = None
        self._json_file: TextIO | None = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            self.json_log_path = log_dir / f"signaler-runs-{datetime.now():%Y-%m-%d}.jsonl"
            self._json_file = open(self.json_log_path, "a", encoding="utf-8")  # noqa: SIM115

    def set_session_context(self, **fields) -> None:
        """Adds fields that are written with every following JSON entry."""
        self._context.update(fields)

    def _write_json(self, level: str, event: str, fields: dict[str, Any]) -> None:
        if self._json_file is None or self._json_file.closed:
            return
        entry = {"ts": utc_now_iso(), "level": level, "event": event}
        entry.update(self._context)
        entry.update(fields)
        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            self._logger.warning(f"Disabling JSON run log {self.json_log_path}: {e}")
            self.close()

    def _emit(self, level: int, event: str, fields: dict[str, Any]) -> None:
        if self.enable_console and self._logger.isEnabledFor(level):
            details = " ".join(f"{key}={value}" for key, value in fields.items())
            self._logger.log(level, f"{event} {details}".rstrip())
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, fields)

    def debug(self, event: str, **fields) -> None:
        self._emit(logging.DEBUG, event, fields)

    def info(self, event: str, **fields) -> None:
        self._emit(logging.INFO, event, fields)

    def warning(self, event: str, **fields) -> None:
        self._emit(logging.WARNING, event, fields)

    def error(self, event: str, **fields) -> None:
        self._emit(logging.ERROR, event, fields)

    def close(self) -> None:
        if self._json_file is not None and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class RunLogger:
    """Run lifecycle events on top of a StructuredLogger."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def run_started(self, run_id: str, mode: str, target: str, output_dir: str):
        """The run was accepted and recorded in history; nothing is spawned yet."""
        self.logger.info(
            "run_started", run_id=run_id, mode=mode, target=target, output_dir=output_dir
        )

    def run_spawned(self, run_id: str, pid: int, command: list[str]):
        self.logger.debug("run_spawned", run_id=run_id, pid=pid, command=command)

    def run_finished(self, run_id: str, exit_code: int | None, duration_s: float):
        """Logged once per spawned run, however it ended."""
        self.logger.info(
            "run_finished",
            run_id=run_id,
            exit_code=exit_code,
            duration_s=round(duration_s, 2),
        )

    def run_cancelled(self, run_id: str, pid: int):
        self.logger.warning("run_cancelled", run_id=run_id, pid=pid)

    def run_failed(self, run_id: str, error: str):
        self.logger.error("run_failed", run_id=run_id, error=error)


def create_run_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, RunLogger]:
    """Returns (base_logger, run_logger); the caller closes the base logger."""
    base = StructuredLogger("signaler.runs", log_dir=log_dir, enable_json=enable_json)
    return base, RunLogger(base)
