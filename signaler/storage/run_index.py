"""
Reads the run.json index the engine writes into each output directory.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from signaler.exceptions import ReportNotFoundError
from signaler.models.run import RunIndex

RUN_INDEX_FILENAME = "run.json"
REPORT_RELATIVE_PATH = "report.html"


def load_run_index(output_dir: Path) -> RunIndex:
    run_path = Path(output_dir) / RUN_INDEX_FILENAME
    try:
        raw = run_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ReportNotFoundError(f"Could not read '{run_path}': {e}") from e
    except UnicodeDecodeError as e:
        raise ReportNotFoundError(f"'{run_path}' is not valid UTF-8: {e}") from e
    try:
        return RunIndex.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ReportNotFoundError(f"'{run_path}' is not a valid run index: {e}") from e


def find_report_path(output_dir: Path) -> Path:
    """
    Returns the HTML report listed in a run's index.

    Raises:
        ReportNotFoundError: If run.json is missing, malformed, or does not list
        a report.html file artifact.
    """
    index = load_run_index(output_dir)
    for artifact in index.artifacts:
        if artifact.kind == "file" and artifact.relative_path == REPORT_RELATIVE_PATH:
            return Path(output_dir) / artifact.relative_path
    raise ReportNotFoundError(
        f"{REPORT_RELATIVE_PATH} not found in {RUN_INDEX_FILENAME} artifacts"
    )
