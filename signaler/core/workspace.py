"""
Allocates per-run output directories and writes the engine config for url runs.
"""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any

from signaler.exceptions import WorkspaceError

log = logging.getLogger(__name__)

URL_MODE_CONFIG_FILENAME = "apex.config.json"
DEFAULT_DEVICES = ("mobile", "desktop")


def build_url_mode_config(base_url: str) -> dict[str, Any]:
    """The fixed single-page audit config; only the base URL varies."""
    return {
        "baseUrl": base_url,
        "pages": [
            {
                "path": "/",
                "label": "home",
                "devices": list(DEFAULT_DEVICES),
            }
        ],
        "warmUp": False,
        "incremental": False,
        "parallel": 1,
        "throttlingMethod": "simulate",
        "cpuSlowdownMultiplier": 4,
    }


class RunWorkspace:
    """Hands out fresh, time-named output directories under <app_data_dir>/runs."""

    def __init__(self, app_data_dir: Path):
        self.runs_dir = Path(app_data_dir) / "runs"
        self._last_ms = 0
        self._lock = threading.Lock()

    def new_run_id(self) -> str:
        """
        Returns 'run-<epoch ms>'. Ids are strictly increasing within a process,
        so two runs started in the same millisecond still get distinct ids.
        """
        with self._lock:
            now_ms = max(int(time.time() * 1000), self._last_ms + 1)
            self._last_ms = now_ms
        return f"run-{now_ms}"

    def new_output_dir(self, run_id: str | None = None) -> Path:
        """Computes a run's output directory. The directory is not created here."""
        return self.runs_dir / (run_id or self.new_run_id())

    def write_url_mode_config(self, output_dir: Path, base_url: str) -> Path:
        """
        Creates the output directory and writes the url-mode engine config into it.

        Raises:
            WorkspaceError: If the directory or file cannot be written.
        """
        config_path = Path(output_dir) / URL_MODE_CONFIG_FILENAME
        raw = json.dumps(build_url_mode_config(base_url), indent=2)
        try:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(raw + "\n")
        except OSError as e:
            raise WorkspaceError(
                f"Failed to write engine config '{config_path}': {e}"
            ) from e
        log.debug(f"Wrote url-mode config for {base_url} to {config_path}")
        return config_path
