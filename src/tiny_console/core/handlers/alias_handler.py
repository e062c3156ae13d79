# src/tiny_console/core/handlers/alias_handler.py
import logging

from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command
from tiny_console.core.errors import RegistrationError
from tiny_console.core.parser import join_tokens

logger = logging.getLogger(__name__)


@console_command(
    "alias",
    "add command alias",
    params=[
        Param("alias", ParamType.TEXT),
        Param("command", ParamType.TEXT, greedy=True),
    ],
    sources={1: lambda console: console.get_command_names(include_aliases=True)},
)
def handle_alias(console, alias: str, command: str) -> int:
    """Handles 'alias <name> <command...>'. Redefining an alias overwrites it."""
    try:
        console.add_alias(alias, command)
    except RegistrationError as e:
        console.error(str(e))
        return 1
    console.print_line(f"Adding {alias} => {command}")
    return 0


@console_command("aliases", "list all aliases")
def handle_aliases(console) -> int:
    for name in console.get_alias_names():
        argv = console.get_alias_argv(name)
        expansion = join_tokens(argv)
        target = console.registry.get(argv[0]) if argv else None
        if target is not None and target.description:
            console.print_line(f"{name} is alias of: {expansion}  // {target.description}")
        else:
            console.print_line(f"{name} is alias of: {expansion}")
    return 0


@console_command(
    "unalias",
    "remove command alias",
    params=[Param("alias", ParamType.TEXT)],
    sources={0: lambda console: console.get_alias_names()},
)
def handle_unalias(console, alias: str) -> int:
    if console.remove_alias(alias):
        console.print_line("Alias removed.")
        return 0
    console.warn("Alias not found.")
    return 1
