# src/tiny_console/core/utils/path_utils.py
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving important package and user paths.
    """

    # --- Package specific paths

    @staticmethod
    def get_console_package_root() -> Path:
        """Returns the directory of the installed `tiny_console` package."""
        return Path(__file__).resolve().parents[2]

    @staticmethod
    def get_handlers_dir() -> Path:
        return PathUtils.get_console_package_root() / "core" / "handlers"

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_console_package_root() / "settings.json"

    # --- User specific paths ---

    @staticmethod
    def get_user_config_dir() -> Path:
        """
        Returns the path to the user's .tiny_console directory.
        (e.g., ~/.tiny_console/)
        """
        return Path.home() / ".tiny_console"

    @staticmethod
    def get_console_history_file(configured: Optional[str] = None) -> Path:
        """
        Returns the history file path, either the configured one or
        ~/.tiny_console/history.
        """
        if configured:
            return Path(configured).expanduser()
        return PathUtils.get_user_config_dir() / "history"

    @staticmethod
    def get_user_scripts_dir() -> Path:
        """Directory searched for .lcs scripts after the working directory."""
        return PathUtils.get_user_config_dir()
