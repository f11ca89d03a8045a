import json

from signaler.utils.structured_logger import StructuredLogger, create_run_logger


def test_run_events_are_appended_as_json_lines(tmp_path):
    base, run_logger = create_run_logger(tmp_path / "logs", enable_json=True)
    base.set_session_context(mode="url")
    with base:
        run_logger.run_started("run-1", "url", "https://example.com", "/out/run-1")
        run_logger.run_finished("run-1", None, 1.234)

    lines = base.json_log_path.read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines]

    assert [e["event"] for e in entries] == ["run_started", "run_finished"]
    assert entries[0]["level"] == "INFO"
    assert entries[0]["target"] == "https://example.com"
    assert entries[1]["exit_code"] is None
    assert entries[1]["duration_s"] == 1.23
    assert all(e["mode"] == "url" for e in entries)


def test_json_log_is_disabled_without_a_directory():
    logger = StructuredLogger("signaler.test", log_dir=None, enable_json=True)

    logger.info("anything", value=1)

    assert logger.enable_json is False
    assert logger.json_log_path is None


def test_console_form(caplog):
    logger = StructuredLogger("signaler.test", enable_json=False)

    with caplog.at_level("INFO", logger="signaler.test"):
        logger.warning("run_cancelled", run_id="run-1", pid=42)

    assert "run_cancelled run_id=run-1 pid=42" in caplog.text
