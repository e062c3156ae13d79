# tests/core/test_config_management.py
import json

import pytest

from tiny_console.core.core import ConsoleEngine, create_console
from tiny_console.core.managers.config_manager import ConfigManager
from tiny_console.core.utils.path_utils import PathUtils
from tiny_console.model import ConsoleOptions, Severity

# A small, predictable configuration for the tests.
MOCK_SETTINGS_CONTENT = {
    "aliases": {"bye": "quit"},
    "sparse_mode": False,
    "history": {"capacity": 50, "duplicates": "keep"},
    "suggestions": {"enabled": True, "max_edit_distance": 2},
    "debug": {"level": "WARNING"},
}


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """
    Sets up an isolated environment for the ConfigManager:
    - A fake settings.json in a temporary directory.
    - PathUtils patched to point at it.
    The singleton is reloaded from the real file again afterwards.
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: settings_file)

    manager = ConfigManager()
    manager.reset()
    yield manager

    monkeypatch.undo()
    manager.reset()


@pytest.fixture
def console(config_env):
    return ConsoleEngine(options=config_env.options())


def texts(records):
    return [r.text for r in records]


# --- ConfigManager ---

def test_config_manager_is_a_singleton(config_env):
    assert ConfigManager() is config_env


def test_config_manager_load(config_env):
    config = config_env.get_all()
    assert config["history"]["capacity"] == 50
    assert config["aliases"] == {"bye": "quit"}


def test_config_manager_get_nested(config_env):
    assert config_env.get_nested("suggestions.max_edit_distance") == 2
    assert config_env.get_nested("non.existent.key", "default") == "default"


def test_config_manager_set_nested_casts_to_existing_type(config_env):
    assert config_env.set_nested("history.capacity", "200") is True
    assert config_env.get_nested("history.capacity") == 200

    assert config_env.set_nested("sparse_mode", "yes") is True
    assert config_env.get_nested("sparse_mode") is True


def test_config_manager_set_nested_new_key(config_env):
    assert config_env.set_nested("new_feature.enabled", "True") is True
    assert config_env.get_nested("new_feature.enabled") == "True"


def test_config_manager_rejects_invalid_values(config_env):
    assert config_env.set_nested("history.capacity", "lots") is False
    assert config_env.get_nested("history.capacity") == 50
    assert config_env.set_nested("history.duplicates", "squash") is False
    assert config_env.get_nested("history.duplicates") == "keep"


def test_config_manager_reset(config_env):
    config_env.set_nested("debug.level", "DEBUG")
    config_env.reset()
    assert config_env.get_nested("debug.level") == "WARNING"


def test_options_validates_into_console_options(config_env):
    options = config_env.options()
    assert isinstance(options, ConsoleOptions)
    assert options.history.capacity == 50
    # Sections absent from the file take their defaults.
    assert options.autocomplete.h_max_len == 10


def test_missing_settings_file_gives_defaults(tmp_path, monkeypatch, config_env):
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: tmp_path / "absent.json")
    config_env.reset()
    assert config_env.get_all() == {}
    assert config_env.options() == ConsoleOptions()


def test_broken_settings_file_gives_defaults(tmp_path, monkeypatch, config_env):
    broken = tmp_path / "broken.json"
    broken.write_text("{ not json")
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: broken)
    config_env.reset()
    assert config_env.options() == ConsoleOptions()


def test_create_console_uses_configured_options(config_env):
    console = create_console()
    assert console.history.capacity == 50
    assert console.has_alias("bye")
    assert not console.has_alias("exit")


# --- The 'config' commands ---

def test_handle_config_list(console):
    records = console.execute("config list", echo=False)
    output_json = json.loads("\n".join(texts(records)))
    assert output_json["history"]["capacity"] == 50


def test_handle_config_set_applies_to_the_session(console, config_env):
    records = console.execute("config set sparse_mode true", echo=False)
    assert texts(records)[0] == "Config updated: sparse_mode = True (type: bool)"
    assert config_env.get_nested("sparse_mode") is True
    assert console.options.sparse_mode is True
    assert texts(console.execute("echo hi", echo=False)) == ["hi", ""]


def test_handle_config_set_history_capacity(console):
    console.execute("config set history.capacity 2", echo=False)
    for cmd in ["echo a", "echo b", "echo c"]:
        console.execute(cmd)
    assert console.history.list() == ["echo b", "echo c"]


def test_handle_config_set_invalid_value(console):
    records = console.execute("config set history.capacity -5", echo=False)
    assert records[0].severity is Severity.ERROR
    assert "history.capacity" in records[0].text
    assert console.history.capacity == 50


def test_handle_config_set_completes_keys(console):
    lines = [c.line for c in console.complete("config set hist")]
    assert "config set history.capacity" in lines
    assert "config set history.duplicates" in lines


def test_handle_config_reset(console, config_env):
    console.execute("config set history.capacity 5", echo=False)
    assert console.history.capacity == 5

    records = console.execute("config reset", echo=False)
    assert "Configuration has been reset" in texts(records)[0]
    assert config_env.get_nested("history.capacity") == 50
    assert console.history.capacity == 50
