"""
Storage Layer.

This package handles all data persistence, including the configuration file,
the run history, and reading the run index the engine leaves behind.
"""

from .config_manager import ConfigManager
from .history import RunHistoryStore
from .run_index import find_report_path

__all__ = ["ConfigManager", "RunHistoryStore", "find_report_path"]
