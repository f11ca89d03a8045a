"""
Read-only diagnostics for the engine's runtime prerequisites.
"""

import logging
import re
import subprocess
import sys
from pathlib import Path

from signaler.models.doctor import CheckResult, DoctorReport

log = logging.getLogger(__name__)

_MAJOR_VERSION_PATTERN = re.compile(r"^[A-Za-z]?(\d+)(?:\.|$)")

BROWSER_CANDIDATES = {
    "win32": [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files\Microsoft\Edge\Application\msedge.exe",
        r"C:\Program Files (x86)\Microsoft\Edge\Application\msedge.exe",
        r"C:\Program Files\BraveSoftware\Brave-Browser\Application\brave.exe",
    ],
    "darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
        "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser",
    ],
    "linux": [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/usr/bin/microsoft-edge",
        "/usr/bin/brave-browser",
    ],
}


def parse_major_version(version: str) -> int | None:
    """Extracts the major number from strings like 'v20.11.1' or '18'."""
    match = _MAJOR_VERSION_PATTERN.match(version.strip())
    if not match:
        return None
    return int(match.group(1))


def browser_candidates(platform: str = sys.platform) -> list[str]:
    if platform.startswith("linux"):
        platform = "linux"
    return BROWSER_CANDIDATES.get(platform, [])


class EnvironmentDoctor:
    """Checks for a compatible runtime and a supported browser. Holds no state."""

    def __init__(
        self,
        runtime: str = "node",
        min_major: int = 20,
        browser_paths: list[str] | None = None,
        timeout: float = 10.0,
    ):
        self.runtime = runtime
        self.min_major = min_major
        self.browser_paths = (
            browser_paths if browser_paths is not None else browser_candidates()
        )
        self.timeout = timeout

    def _runtime_version(self) -> str:
        """
        Runs '<runtime> --version' and returns its trimmed stdout.

        Raises:
            OSError, subprocess.SubprocessError: If the runtime cannot be executed.
            RuntimeError: If it exits non-zero.
        """
        result = subprocess.run(
            [self.runtime, "--version"],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=self.timeout,
        )
        stdout = result.stdout.strip()
        if result.returncode != 0:
            message = result.stderr.strip() or stdout
            raise RuntimeError(f"{self.runtime} failed: {message}")
        return stdout

    def check_runtime(self) -> CheckResult:
        try:
            version = self._runtime_version()
        except (OSError, subprocess.SubprocessError, RuntimeError) as e:
            log.debug(f"Runtime check failed: {e}")
            return CheckResult(ok=False, detail=f"Node not found or not runnable: {e}")

        major = parse_major_version(version)
        if major is None:
            return CheckResult(
                ok=False, detail=f"Unrecognized Node version string: {version}"
            )
        if major < self.min_major:
            return CheckResult(
                ok=False,
                detail=f"{version} (major {major}) is below required {self.min_major}",
            )
        return CheckResult(ok=True, detail=f"{version} (>= {self.min_major})")

    def check_browser(self) -> CheckResult:
        for candidate in self.browser_paths:
            if Path(candidate).exists():
                return CheckResult(ok=True, detail=candidate)
        return CheckResult(
            ok=False,
            detail="No supported browser executable found (Chrome/Edge/Brave)",
        )

    def check(self) -> DoctorReport:
        node = self.check_runtime()
        browser = self.check_browser()
        return DoctorReport(ok=node.ok and browser.ok, node=node, browser=browser)
