"""
Defines custom exceptions for the launcher to allow for more specific error handling.
"""


class SignalerError(Exception):
    """Base exception for all launcher-specific errors."""


class ResolutionError(SignalerError):
    """Base class for failures while locating the engine to run."""


class ManifestNotFoundError(ResolutionError):
    """Raised when no engine.manifest.json exists in any searched location."""


class ManifestParseError(ResolutionError):
    """Raised when an engine manifest exists but cannot be read or validated."""


class UnsupportedSchemaError(ResolutionError):
    """Raised when the manifest declares a schemaVersion this launcher cannot use."""


class EntryNotFoundError(ResolutionError):
    """Raised when the manifest's entry point does not exist on disk."""


class RunConflictError(SignalerError):
    """Raised when a run is requested while another one is still active."""


class EngineProcessError(SignalerError):
    """Raised when the engine process cannot be spawned or controlled."""


class HistoryWriteError(SignalerError):
    """Raised when the run history cannot be persisted."""


class WorkspaceError(SignalerError):
    """Raised when a run workspace or its engine config cannot be written."""


class StateCorruptedError(SignalerError):
    """
    Raised when shared launcher state was left inconsistent by an earlier failure.
    """


class ReportNotFoundError(SignalerError):
    """Raised when a run's output directory does not reference a report."""


class ConfigurationError(SignalerError):
    """Raised for issues related to configuration loading or validation."""
