# src/tiny_console/core/managers/config_manager.py
import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from tiny_console.core.utils.path_utils import PathUtils
from tiny_console.model import ConsoleOptions

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    A singleton class to manage the console's configuration.
    It loads settings from a file and allows for in-memory modifications.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self._config: Dict[str, Any] = {}
        self.reset()
        logger.debug("ConfigManager initialized.")

    def get_all(self) -> Dict[str, Any]:
        """Returns the entire current configuration dictionary."""
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Safely retrieves a nested value from the configuration.
        e.g., 'history.capacity'.
        """
        value = self._config
        for key in key_path.split('.'):
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
        return value if value is not None else default

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a nested value in the in-memory configuration, cast to the type
        of the value it replaces. e.g., 'history.capacity', '200'
        """
        keys = key_path.split('.')
        d = self._config
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set value: '%s' is not a dictionary.", key)
                return False

        had_key = keys[-1] in d
        original_value = d.get(keys[-1])
        if original_value is not None:
            try:
                value = _cast_like(original_value, value)
            except (ValueError, TypeError):
                logger.warning(
                    "Could not cast new value for '%s' to type %s. Storing as string.",
                    key_path, type(original_value).__name__
                )

        d[keys[-1]] = value
        try:
            ConsoleOptions.model_validate(self._config)
        except ValidationError as e:
            # Keep the last valid configuration.
            if had_key:
                d[keys[-1]] = original_value
            else:
                del d[keys[-1]]
            logger.warning("Rejected value for '%s': %s", key_path, e)
            return False

        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    def options(self) -> ConsoleOptions:
        """
        Validates the current configuration into ConsoleOptions. Invalid
        settings are reported and replaced by the defaults.
        """
        try:
            return ConsoleOptions.model_validate(self._config)
        except ValidationError as e:
            logger.warning("Invalid configuration, falling back to defaults: %s", e)
            return ConsoleOptions()

    def reset(self):
        """Resets the in-memory configuration from the settings.json file."""
        config_path = PathUtils.get_settings_file()
        try:
            if not config_path.exists():
                logger.warning("settings.json not found at %s. Using empty config.", config_path)
                self._config = {}
                return
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            logger.info("Configuration has been (re)loaded from settings.json.")
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load settings.json: %s", e, exc_info=True)
            self._config = {}


def _cast_like(original: Any, value: Any) -> Any:
    """Casts `value` to the type of `original`; 'false'/'no'/'0' become False for bools."""
    if isinstance(original, bool) and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
        raise ValueError(value)
    if isinstance(original, (list, dict)) and isinstance(value, str):
        parsed = json.loads(value)
        if not isinstance(parsed, type(original)):
            raise TypeError(value)
        return parsed
    return type(original)(value)


# The global singleton instance that the entire application will use.
config_manager = ConfigManager()
