"""
Utilities for resolving the per-platform directories the launcher works in.
"""

import os
import sys
import tempfile
from pathlib import Path

APP_NAME = "signaler"


def get_cache_dir() -> Path:
    """
    Resolves the shared cache directory holding installed engine versions.

    Windows uses %LOCALAPPDATA%; everything else prefers $XDG_CACHE_HOME, then
    $HOME/.cache, and finally the system temp directory.
    """
    if os.name == "nt" and (local_app_data := os.getenv("LOCALAPPDATA")):
        return Path(local_app_data) / APP_NAME
    if xdg_cache := os.getenv("XDG_CACHE_HOME"):
        return Path(xdg_cache) / APP_NAME
    if home := os.getenv("HOME"):
        return Path(home) / ".cache" / APP_NAME
    return Path(tempfile.gettempdir()) / APP_NAME


def get_app_data_dir() -> Path:
    """Resolves the directory for run outputs and history."""
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_DATA_HOME", "~/.local/share"))
    return base_dir.expanduser() / APP_NAME


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / APP_NAME


def get_launcher_dir() -> Path:
    """
    Directory of the running launcher: the bundled executable when frozen,
    otherwise the invoked script.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0]).resolve().parent
