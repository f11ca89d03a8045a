"""
Result models for the environment doctor.
"""

from pydantic import BaseModel


class CheckResult(BaseModel):
    ok: bool
    detail: str


class DoctorReport(BaseModel):
    """Overall verdict plus one result per checked dependency."""

    ok: bool
    node: CheckResult
    browser: CheckResult
