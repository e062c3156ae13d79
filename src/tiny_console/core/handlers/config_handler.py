# src/tiny_console/core/handlers/config_handler.py
import json
import logging

from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command
from tiny_console.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)


def _config_keys(_console):
    """Dotted paths of every leaf setting, for autocompletion."""
    keys = []

    def walk(prefix, node):
        for key, value in node.items():
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict) and value and key != "aliases":
                walk(path, value)
            else:
                keys.append(path)

    walk("", config_manager.get_all())
    return sorted(keys)


@console_command("config list", "show the current configuration as JSON")
def handle_config_list(console) -> int:
    for line in json.dumps(config_manager.get_all(), indent=2).splitlines():
        console.print_line(line)
    return 0


@console_command(
    "config set",
    "set a config value for the session, e.g. history.capacity 200",
    params=[
        Param("key", ParamType.TEXT),
        Param("value", ParamType.TEXT, greedy=True),
    ],
    sources={0: _config_keys},
)
def handle_config_set(console, key: str, value: str) -> int:
    if not config_manager.set_nested(key, value):
        console.error(f"Failed to set config value for key '{key}'.")
        return 1
    new_value = config_manager.get_nested(key)
    console.apply_options(config_manager.options())
    console.print_line(f"Config updated: {key} = {new_value} (type: {type(new_value).__name__})")
    return 0


@console_command("config reset", "reload the configuration from settings.json")
def handle_config_reset(console) -> int:
    config_manager.reset()
    console.apply_options(config_manager.options())
    console.print_line("Configuration has been reset to the values from settings.json.")
    return 0
