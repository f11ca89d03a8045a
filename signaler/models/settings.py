"""
Pydantic model for launcher configuration.
Provides validation for all settings read from config.ini or the command line.
"""

from pydantic import BaseModel, Field, field_validator

from signaler.utils.paths import get_app_data_dir, get_cache_dir

DEFAULT_RUNTIME = "node"
DEFAULT_MIN_NODE_MAJOR = 20


class LauncherSettings(BaseModel):
    """A validated configuration model for the launcher."""

    # Engine invocation
    runtime: str = DEFAULT_RUNTIME
    min_node_major: int = DEFAULT_MIN_NODE_MAJOR

    # Locations
    cache_dir: str = Field(default_factory=lambda: str(get_cache_dir()))
    app_data_dir: str = Field(default_factory=lambda: str(get_app_data_dir()))

    # Logging
    json_logs: bool = False

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("runtime")
    @classmethod
    def validate_runtime(cls, v: str) -> str:
        """The runtime is executed directly, so it must name something."""
        if not v:
            raise ValueError("Runtime cannot be empty.")
        return v

    @field_validator("min_node_major")
    @classmethod
    def validate_min_node_major(cls, v: int) -> int:
        if v < 1 or v > 99:
            raise ValueError("min_node_major must be between 1 and 99.")
        return v

    @field_validator("cache_dir", "app_data_dir")
    @classmethod
    def validate_directory(cls, v: str) -> str:
        if not v:
            raise ValueError("Directory settings cannot be empty.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
