"""
Locates and parses the engine manifest.

The shared cache always wins over a manifest bundled next to the launcher, so an
installed engine can replace the one that shipped with the launcher.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from signaler.exceptions import ManifestNotFoundError, ManifestParseError
from signaler.models.engine import MANIFEST_FILENAME, EngineManifest, EngineManifestInfo
from signaler.utils.paths import get_cache_dir, get_launcher_dir

log = logging.getLogger(__name__)


def read_manifest(path: Path) -> EngineManifest:
    """
    Reads and validates a single manifest file.

    Raises:
        ManifestParseError: If the file cannot be read, is not JSON, or does not
        match the manifest schema.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestParseError(f"Could not read manifest '{path}': {e}") from e
    except UnicodeDecodeError as e:
        raise ManifestParseError(f"Manifest '{path}' is not valid UTF-8: {e}") from e
    try:
        return EngineManifest.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"Manifest '{path}' is not valid JSON: {e}") from e
    except ValidationError as e:
        raise ManifestParseError(f"Manifest '{path}' is invalid:\n{e}") from e


class ManifestResolver:
    """Finds the engine manifest using the launcher's fixed search order."""

    def __init__(
        self, cache_dir: Path | None = None, launcher_dir: Path | None = None
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else get_cache_dir()
        self.launcher_dir = Path(launcher_dir) if launcher_dir else get_launcher_dir()

    @property
    def cached_manifest_path(self) -> Path:
        return self.cache_dir / "engine" / MANIFEST_FILENAME

    def candidates(self) -> list[tuple[Path, bool]]:
        """Search order as (path, from_cache) pairs; the first existing file wins."""
        return [
            (self.cached_manifest_path, True),
            (self.launcher_dir / MANIFEST_FILENAME, False),
            (self.launcher_dir.parent / MANIFEST_FILENAME, False),
        ]

    def resolve(self) -> EngineManifestInfo:
        """
        Resolves the active engine manifest.

        A malformed manifest is an error even if a later candidate would parse;
        only a missing file moves the search on.

        Raises:
            ManifestNotFoundError: If no candidate exists.
            ManifestParseError: If the first existing candidate is malformed.
        """
        for path, from_cache in self.candidates():
            if not path.exists():
                log.debug(f"No engine manifest at {path}")
                continue
            manifest = read_manifest(path)
            log.debug(
                f"Using engine manifest {path} "
                f"(engine {manifest.engine_version}, from_cache={from_cache})"
            )
            return EngineManifestInfo(
                manifest=manifest,
                manifest_path=path.resolve(),
                from_cache=from_cache,
                cache_dir=self.cache_dir,
            )

        local = self.launcher_dir / MANIFEST_FILENAME
        raise ManifestNotFoundError(
            f"{MANIFEST_FILENAME} not found next to launcher (searched '{local}')"
        )
