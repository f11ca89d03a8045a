import json
import textwrap
from pathlib import Path
from types import SimpleNamespace

import pytest

ECHO_ENGINE = """
import json
import sys

print(json.dumps({"type": "run_started", "args": sys.argv[1:]}), flush=True)
print("plain text line", flush=True)
print("   ", flush=True)
print("warning: slow network", file=sys.stderr, flush=True)
print(json.dumps({"type": "progress", "pct": 50}), flush=True)
sys.stdout.write(json.dumps({"type": "run_completed"}))
"""

SLEEPY_ENGINE = """
import json
import sys
import time

print(json.dumps({"type": "run_started", "args": sys.argv[1:]}), flush=True)
time.sleep(60)
"""

FAILING_ENGINE = """
import sys

print("engine exploded", file=sys.stderr, flush=True)
sys.exit(3)
"""


def write_manifest(
    directory: Path,
    engine_version: str = "1.2.3",
    entry: str = "dist/engine.js",
    schema_version: int = 1,
    **extra,
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    manifest_path = directory / "engine.manifest.json"
    manifest_path.write_text(
        json.dumps(
            {
                "schemaVersion": schema_version,
                "engineVersion": engine_version,
                "minNode": "20.0.0",
                "entry": entry,
                "defaultOutputDirName": ".signaler",
                **extra,
            }
        ),
        encoding="utf-8",
    )
    return manifest_path


@pytest.fixture
def dirs(tmp_path):
    """Isolated cache, launcher and app data directories."""
    return SimpleNamespace(
        cache=tmp_path / "cache",
        launcher=tmp_path / "app" / "bin",
        data=tmp_path / "data",
    )


@pytest.fixture
def engine_scripts():
    return SimpleNamespace(echo=ECHO_ENGINE, sleepy=SLEEPY_ENGINE, failing=FAILING_ENGINE)


@pytest.fixture
def make_engine():
    """
    Installs a fake engine: a manifest plus a Python script posing as the entry
    point, so tests can use sys.executable as the runtime.
    """

    def _make(
        directory: Path,
        script: str = ECHO_ENGINE,
        entry: str = "dist/engine.js",
        **manifest_fields,
    ) -> Path:
        manifest_path = write_manifest(directory, entry=entry, **manifest_fields)
        entry_path = directory / entry
        entry_path.parent.mkdir(parents=True, exist_ok=True)
        entry_path.write_text(textwrap.dedent(script), encoding="utf-8")
        return manifest_path

    return _make
