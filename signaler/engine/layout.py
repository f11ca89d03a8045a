"""
Cache layout planning and engine entry resolution.

Execution always uses the version the manifest pins. Whether the cache's
"latest" directory holds that same version is reported for diagnostics only.
"""

import logging
from pathlib import Path

from signaler.exceptions import (
    EntryNotFoundError,
    ManifestParseError,
    UnsupportedSchemaError,
)
from signaler.models.engine import (
    MANIFEST_FILENAME,
    SUPPORTED_SCHEMA_VERSION,
    EngineCacheLayout,
    EngineManifestInfo,
    EngineResolutionReport,
)

from .manifest import read_manifest

log = logging.getLogger(__name__)


def _probe_latest_version(latest_dir: Path) -> str | None:
    """Best-effort read of the engine version installed under 'latest'."""
    manifest_path = latest_dir / MANIFEST_FILENAME
    if not manifest_path.is_file():
        return None
    try:
        return read_manifest(manifest_path).engine_version
    except ManifestParseError as e:
        log.debug(f"Ignoring unreadable latest manifest: {e}")
        return None


def plan(info: EngineManifestInfo) -> EngineCacheLayout:
    """Computes the expected cache layout for the resolved manifest."""
    engine_version = info.manifest.engine_version
    engines_dir = info.cache_dir / "engine"
    latest_dir = engines_dir / "latest"
    version_dir = engines_dir / engine_version

    latest_version = _probe_latest_version(latest_dir)
    latest_matches = latest_version is not None and latest_version == engine_version

    return EngineCacheLayout(
        cache_dir=str(info.cache_dir),
        engines_dir=str(engines_dir),
        latest_dir=str(latest_dir),
        version_dir=str(version_dir),
        selected_dir=str(version_dir),
        expected_engine_root=str(version_dir),
        selection_value=engine_version,
        selection_state="latest" if latest_matches else "pinned",
        latest_available=latest_dir.exists(),
        latest_manifest_version=latest_version,
        latest_matches_manifest=latest_matches,
        manifest_engine_version=engine_version,
    )


def resolve_entry(info: EngineManifestInfo) -> Path:
    """
    Returns the engine entry point, relative to the manifest's own directory.

    Raises:
        UnsupportedSchemaError: If the manifest schema version is not supported.
        EntryNotFoundError: If the entry file does not exist.
    """
    schema_version = info.manifest.schema_version
    if schema_version != SUPPORTED_SCHEMA_VERSION:
        raise UnsupportedSchemaError(
            f"Unsupported engine manifest schemaVersion: {schema_version}"
        )
    entry_path = info.manifest_path.parent / info.manifest.entry
    if not entry_path.exists():
        raise EntryNotFoundError(f"Engine entry not found: {entry_path}")
    return entry_path


def build_resolution_report(info: EngineManifestInfo) -> EngineResolutionReport:
    """Bundles the manifest location, entry point and cache layout."""
    return EngineResolutionReport(
        manifest_path=str(info.manifest_path),
        entry_path=str(resolve_entry(info)),
        manifest_source=info.manifest_source,
        cache_layout=plan(info),
    )
