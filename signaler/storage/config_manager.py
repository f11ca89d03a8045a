"""
Manages loading, validation, and creation of the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from signaler.exceptions import ConfigurationError
from signaler.models.settings import LauncherSettings

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the launcher's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> LauncherSettings:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing config file is not an error: every setting has a default.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated LauncherSettings object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(f"No config file at {self.config_file_path}, using defaults.")

        if cli_options:
            config_from_file.update(
                {k: v for k, v in cli_options.items() if v is not None}
            )

        try:
            return LauncherSettings(
                **config_from_file, config_path=str(self.config_file_path)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_config(self, settings: LauncherSettings) -> None:
        """
        Writes every INI-backed setting to the config file.

        Raises:
            ConfigurationError: If the file cannot be written.
        """
        config = configparser.ConfigParser()
        config["DEFAULT"] = {}
        for key in sorted(LauncherSettings.get_ini_keys()):
            value = getattr(settings, key)
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            else:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """
        Reads the 'DEFAULT' section of the INI file into a dictionary. Keys that
        are absent are left out so the model defaults apply.
        """
        section = self._parser["DEFAULT"]
        values: dict[str, Any] = {}
        try:
            if "runtime" in section:
                values["runtime"] = section.get("runtime")
            if "min_node_major" in section:
                values["min_node_major"] = section.getint("min_node_major")
            if "cache_dir" in section:
                values["cache_dir"] = section.get("cache_dir")
            if "app_data_dir" in section:
                values["app_data_dir"] = section.get("app_data_dir")
            if "json_logs" in section:
                values["json_logs"] = section.getboolean("json_logs")
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e
        return values
