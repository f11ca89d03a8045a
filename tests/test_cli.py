import json
import sys

import pytest
from typer.testing import CliRunner

from signaler import __version__
from signaler.cli import app as app_module
from signaler.models.run import HistoryEntry
from signaler.storage.config_manager import ConfigManager
from signaler.storage.history import RunHistoryStore

runner = CliRunner()


@pytest.fixture
def invoke(dirs, tmp_path, monkeypatch):
    """Runs the CLI against isolated directories and a missing config file."""
    monkeypatch.setattr(app_module, "CONFIG_FILE", tmp_path / "config.ini")
    monkeypatch.setattr(app_module, "get_launcher_dir", lambda: dirs.launcher)

    def _invoke(*args: str):
        return runner.invoke(
            app_module.app,
            [
                "--cache-dir",
                str(dirs.cache),
                "--data-dir",
                str(dirs.data),
                "--runtime",
                sys.executable,
                *args,
            ],
        )

    return _invoke


def test_version():
    result = runner.invoke(app_module.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_engine_path_prints_manifest_path(invoke, dirs, make_engine):
    manifest_path = make_engine(dirs.launcher)

    result = invoke("engine", "path")

    assert result.exit_code == 0
    assert result.stdout.strip() == str(manifest_path.resolve())


def test_engine_resolve_json_report(invoke, dirs, make_engine):
    make_engine(dirs.cache / "engine", engine_version="3.1.0")

    result = invoke("engine", "resolve", "--json")

    assert result.exit_code == 0
    report = json.loads(result.stdout)
    assert report["manifest_source"] == "cache"
    assert report["entry_path"].endswith("engine.js")
    assert report["cache_layout"]["selection_state"] == "pinned"
    assert report["cache_layout"]["selection_value"] == "3.1.0"


def test_engine_resolve_without_manifest_fails(invoke):
    result = invoke("engine", "resolve")

    assert result.exit_code == 1
    assert "engine failed:" in result.output
    assert "not found next to launcher" in result.output


def test_engine_run_returns_engine_failure(invoke, dirs, make_engine, engine_scripts):
    make_engine(dirs.launcher, script=engine_scripts.failing)

    result = invoke("engine", "run", "--", "--anything")

    assert result.exit_code == 1


def test_run_audit_json_report(invoke, dirs, make_engine):
    make_engine(dirs.launcher)

    result = invoke("run", "audit", "--json", "--", "--url", "https://example.com")

    assert result.exit_code == 0
    report = json.loads(result.stdout)
    assert report["mode"] == "audit"
    assert report["forwarded_args"] == ["audit", "--url", "https://example.com"]
    assert report["success"] is True
    assert report["exit_code"] == 0


def test_run_folder_json_report_on_failure(invoke, dirs, make_engine, engine_scripts):
    make_engine(dirs.launcher, script=engine_scripts.failing)

    result = invoke("run", "folder", "--json")

    assert result.exit_code == 1
    report = json.loads(result.stdout)
    assert report["forwarded_args"] == ["folder"]
    assert report["exit_code"] == 3


@pytest.mark.parametrize("args, exit_code", [(["--check"], 0), ([], 1)])
def test_update_is_a_stub(invoke, dirs, args, exit_code):
    result = invoke("update", *args)

    assert result.exit_code == exit_code
    assert f"update: not implemented (cacheDir: {dirs.cache})" in result.stdout


def test_history_json(invoke, dirs):
    RunHistoryStore(dirs.data).record(
        HistoryEntry(
            id="run-1",
            created_at="2024-01-01T00:00:00.000Z",
            mode="url",
            target="https://example.com",
            output_dir=str(dirs.data / "runs" / "run-1"),
        )
    )

    result = invoke("history", "--json")

    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["createdAt"] == "2024-01-01T00:00:00.000Z"


def test_history_when_empty(invoke):
    result = invoke("history")

    assert result.exit_code == 0
    assert "No runs recorded yet" in result.stdout


def test_report_prints_report_path(invoke, tmp_path):
    output_dir = tmp_path / "runs" / "run-1"
    output_dir.mkdir(parents=True)
    (output_dir / "run.json").write_text(
        json.dumps({"artifacts": [{"kind": "file", "relativePath": "report.html"}]}),
        encoding="utf-8",
    )

    result = invoke("report", str(output_dir))

    assert result.exit_code == 0
    assert result.stdout.strip() == str(output_dir / "report.html")


def test_report_without_run_index_fails(invoke, tmp_path):
    result = invoke("report", str(tmp_path))

    assert result.exit_code == 1
    assert "report failed:" in result.output


def test_start_streams_json_payloads(invoke, dirs, make_engine):
    make_engine(dirs.launcher)

    result = invoke("start", "url", "https://example.com", "--json")

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert json.dumps("plain text line") in lines
    assert json.dumps({"type": "launcher_terminated"}) in lines
    entries = RunHistoryStore(dirs.data).list()
    assert entries[0].target == "https://example.com"


def test_start_fails_without_engine(invoke):
    result = invoke("start", "folder", "site")

    assert result.exit_code == 1
    assert "run failed:" in result.output


def test_doctor_json_reports_unusable_runtime(invoke):
    result = invoke("doctor", "--json")

    assert result.exit_code == 1
    report = json.loads(result.stdout)
    assert report["ok"] is False
    assert report["node"]["detail"].startswith("Unrecognized Node version string")


def test_init_writes_effective_settings(invoke, dirs, tmp_path):
    result = invoke("init")

    assert result.exit_code == 0
    saved = ConfigManager(tmp_path / "config.ini").load_config()
    assert saved.runtime == sys.executable
    assert saved.cache_dir == str(dirs.cache)
    assert saved.app_data_dir == str(dirs.data)


def test_init_keeps_existing_config_unless_confirmed(invoke, tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text("[DEFAULT]\nruntime = bun\n", encoding="utf-8")

    declined = runner.invoke(
        app_module.app, ["--runtime", sys.executable, "init"], input="n\n"
    )
    assert declined.exit_code == 1
    assert ConfigManager(config_file).load_config().runtime == "bun"

    forced = invoke("init", "--force")

    assert forced.exit_code == 0
    assert ConfigManager(config_file).load_config().runtime == sys.executable
