"""
Models for supervised runs: the run mode, history records, and the run index
the engine leaves in each output directory.
"""

from enum import Enum

from pydantic import BaseModel, Field


class RunMode(str, Enum):
    """What a supervised run targets."""

    URL = "url"
    FOLDER = "folder"


class HistoryEntry(BaseModel):
    """One recorded run attempt, stored newest first in history.json."""

    id: str
    created_at: str = Field(..., alias="createdAt")
    mode: str
    target: str
    output_dir: str = Field(..., alias="outputDir")

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True


class StartRunResult(BaseModel):
    """Returned to the caller as soon as the engine has been spawned."""

    run_id: str = Field(..., alias="runId")
    output_dir: str = Field(..., alias="outputDir")

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True


class RunArtifact(BaseModel):
    kind: str
    relative_path: str = Field(..., alias="relativePath")

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True


class RunIndex(BaseModel):
    """The engine-written run.json; only the artifact list is consumed here."""

    artifacts: list[RunArtifact] = Field(default_factory=list)
