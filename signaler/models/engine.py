"""
Pydantic models describing an engine release, where it was found, and the
reports built from a resolution.
"""

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field

SUPPORTED_SCHEMA_VERSION = 1
MANIFEST_FILENAME = "engine.manifest.json"


class EngineManifest(BaseModel):
    """Immutable descriptor of one engine release, as shipped in the manifest file."""

    schema_version: int = Field(..., alias="schemaVersion")
    engine_version: str = Field(..., alias="engineVersion")
    min_node: str = Field(..., alias="minNode")
    entry: str
    default_output_dir_name: str = Field(..., alias="defaultOutputDirName")

    class Config:
        """Pydantic model configuration."""

        frozen = True
        populate_by_name = True


@dataclass(frozen=True)
class EngineManifestInfo:
    """Result of a manifest lookup: the manifest plus where it came from."""

    manifest: EngineManifest
    manifest_path: Path
    from_cache: bool
    cache_dir: Path

    @property
    def manifest_source(self) -> str:
        return "cache" if self.from_cache else "local"


class EngineCacheLayout(BaseModel):
    """Expected on-disk layout for versioned engine installations."""

    schema_version: int = SUPPORTED_SCHEMA_VERSION
    cache_dir: str
    engines_dir: str
    latest_dir: str
    version_dir: str
    selected_dir: str
    expected_engine_root: str
    selection_kind: str = "manifest_version"
    selection_value: str
    selection_state: str
    latest_available: bool
    latest_manifest_version: str | None = None
    latest_matches_manifest: bool
    manifest_engine_version: str


class EngineResolutionReport(BaseModel):
    """Full report printed by `engine path --json` and `engine resolve --json`."""

    schema_version: int = SUPPORTED_SCHEMA_VERSION
    manifest_path: str
    entry_path: str
    manifest_source: str
    cache_layout: EngineCacheLayout


class EngineRunReport(BaseModel):
    """Structured outcome of a foreground `run <mode> --json` invocation."""

    schema_version: int = SUPPORTED_SCHEMA_VERSION
    mode: str
    manifest_path: str
    entry_path: str
    forwarded_args: list[str] = Field(default_factory=list)
    success: bool
    exit_code: int | None = None
    cache_layout: EngineCacheLayout
