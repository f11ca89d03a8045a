import os
import sys

import pytest

from signaler.core.doctor import EnvironmentDoctor, browser_candidates, parse_major_version

posix_only = pytest.mark.skipif(os.name == "nt", reason="uses a shell script as runtime")


def _fake_runtime(tmp_path, body: str) -> str:
    script = tmp_path / "fake-node"
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    script.chmod(0o755)
    return str(script)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("v20.11.1", 20),
        ("18.19.0", 18),
        ("v22", 22),
        ("  v21.0.0\n", 21),
        ("Python 3.12.1", None),
        ("node", None),
        ("", None),
    ],
)
def test_parse_major_version(text, expected):
    assert parse_major_version(text) == expected


@posix_only
def test_runtime_at_minimum_version_passes(tmp_path):
    doctor = EnvironmentDoctor(_fake_runtime(tmp_path, "echo v20.0.0"), browser_paths=[])

    result = doctor.check_runtime()

    assert result.ok is True
    assert result.detail == "v20.0.0 (>= 20)"


@posix_only
def test_old_runtime_fails(tmp_path):
    doctor = EnvironmentDoctor(_fake_runtime(tmp_path, "echo v18.19.0"), browser_paths=[])

    result = doctor.check_runtime()

    assert result.ok is False
    assert result.detail == "v18.19.0 (major 18) is below required 20"


@posix_only
def test_runtime_exiting_non_zero_fails(tmp_path):
    doctor = EnvironmentDoctor(_fake_runtime(tmp_path, "echo broken >&2; exit 3"))

    result = doctor.check_runtime()

    assert result.ok is False
    assert result.detail.startswith("Node not found or not runnable:")
    assert "broken" in result.detail


def test_unrecognized_version_string_fails():
    result = EnvironmentDoctor(sys.executable).check_runtime()

    assert result.ok is False
    assert result.detail.startswith("Unrecognized Node version string: Python")


def test_missing_runtime_fails_without_raising(tmp_path):
    result = EnvironmentDoctor(str(tmp_path / "no-such-node")).check_runtime()

    assert result.ok is False
    assert result.detail.startswith("Node not found or not runnable:")


def test_first_existing_browser_is_reported(tmp_path):
    browser = tmp_path / "chrome"
    browser.write_text("", encoding="utf-8")
    doctor = EnvironmentDoctor(
        browser_paths=[str(tmp_path / "missing"), str(browser), str(tmp_path)]
    )

    result = doctor.check_browser()

    assert result.ok is True
    assert result.detail == str(browser)


def test_no_browser_found(tmp_path):
    result = EnvironmentDoctor(browser_paths=[str(tmp_path / "missing")]).check_browser()

    assert result.ok is False
    assert result.detail == "No supported browser executable found (Chrome/Edge/Brave)"


@posix_only
def test_report_is_ok_only_when_both_checks_pass(tmp_path):
    browser = tmp_path / "chrome"
    browser.write_text("", encoding="utf-8")
    runtime = _fake_runtime(tmp_path, "echo v22.1.0")

    assert EnvironmentDoctor(runtime, browser_paths=[str(browser)]).check().ok is True
    report = EnvironmentDoctor(runtime, browser_paths=[]).check()
    assert report.ok is False
    assert report.node.ok is True


def test_browser_candidates_per_platform():
    assert "/usr/bin/google-chrome" in browser_candidates("linux")
    assert any("Chrome.app" in path for path in browser_candidates("darwin"))
    assert any(path.endswith("msedge.exe") for path in browser_candidates("win32"))
    assert browser_candidates("plan9") == []
