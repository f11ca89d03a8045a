"""
Foreground engine execution for the CLI: spawn, block until exit, report status.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from signaler.engine.layout import plan, resolve_entry
from signaler.exceptions import EngineProcessError
from signaler.models.engine import EngineManifestInfo, EngineRunReport

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExitStatus:
    success: bool
    exit_code: int | None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        """Negative return codes mean the child was killed by a signal."""
        return cls(
            success=returncode == 0,
            exit_code=returncode if returncode >= 0 else None,
        )


class EngineRunner:
    """Builds and runs '<runtime> <entry> [args...]'."""

    def __init__(self, runtime: str, entry_path: Path):
        self.runtime = runtime
        self.entry_path = Path(entry_path)

    @classmethod
    def from_manifest(cls, info: EngineManifestInfo, runtime: str) -> "EngineRunner":
        """Resolves the entry point first, so resolution errors surface here."""
        return cls(runtime, resolve_entry(info))

    def command(self, args: list[str]) -> list[str]:
        return [self.runtime, str(self.entry_path), *args]

    def run(self, args: list[str], capture_output: bool = False) -> ExitStatus:
        """
        Runs the engine to completion.

        Without capture the engine writes straight to this process's standard
        streams. With capture its output is collected and only logged at debug
        level, so the caller can print a report of its own.

        Raises:
            EngineProcessError: If the engine cannot be started.
        """
        command = self.command(args)
        log.debug(f"Running engine: {command}")
        try:
            if capture_output:
                result = subprocess.run(
                    command, capture_output=True, text=True, errors="replace"
                )
                if result.stdout:
                    log.debug(f"Engine stdout:\n{result.stdout.rstrip()}")
                if result.stderr:
                    log.debug(f"Engine stderr:\n{result.stderr.rstrip()}")
            else:
                result = subprocess.run(command)
        except OSError as e:
            raise EngineProcessError(
                f"Failed to start engine with '{self.runtime}': {e}"
            ) from e
        return ExitStatus.from_returncode(result.returncode)


def run_mode(
    info: EngineManifestInfo,
    runtime: str,
    mode: str,
    args: list[str],
    json_report: bool = False,
) -> tuple[ExitStatus, EngineRunReport | None]:
    """
    Runs the engine with the mode token prepended to the forwarded arguments.

    Returns:
        The exit status, plus a structured report when `json_report` is set.
    """
    forwarded = [mode, *args]
    runner = EngineRunner.from_manifest(info, runtime)
    status = runner.run(forwarded, capture_output=json_report)
    if not json_report:
        return status, None

    report = EngineRunReport(
        mode=mode,
        manifest_path=str(info.manifest_path),
        entry_path=str(runner.entry_path),
        forwarded_args=forwarded,
        success=status.success,
        exit_code=status.exit_code,
        cache_layout=plan(info),
    )
    return status, report
