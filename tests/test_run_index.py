import json

import pytest

from signaler.exceptions import ReportNotFoundError
from signaler.storage.run_index import find_report_path


def _write_index(output_dir, artifacts):
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "run.json").write_text(
        json.dumps({"status": "ok", "artifacts": artifacts}), encoding="utf-8"
    )


def test_report_path_comes_from_the_run_index(tmp_path):
    _write_index(
        tmp_path,
        [
            {"kind": "dir", "relativePath": "screenshots"},
            {"kind": "file", "relativePath": "report.html"},
        ],
    )

    assert find_report_path(tmp_path) == tmp_path / "report.html"


def test_report_must_be_a_file_artifact(tmp_path):
    _write_index(tmp_path, [{"kind": "dir", "relativePath": "report.html"}])

    with pytest.raises(ReportNotFoundError, match="report.html not found"):
        find_report_path(tmp_path)


def test_missing_run_index(tmp_path):
    with pytest.raises(ReportNotFoundError):
        find_report_path(tmp_path)


def test_malformed_run_index(tmp_path):
    (tmp_path / "run.json").write_text('{"artifacts": [{"kind": 1}]}', encoding="utf-8")

    with pytest.raises(ReportNotFoundError, match="not a valid run index"):
        find_report_path(tmp_path)


def test_run_index_with_invalid_utf8(tmp_path):
    (tmp_path / "run.json").write_bytes(b"\xff\xfe{}")

    with pytest.raises(ReportNotFoundError, match="not valid UTF-8"):
        find_report_path(tmp_path)
