# src/tiny_console/core/handlers/core/help_handler.py
from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command
from tiny_console.core.errors import UnknownCommand
from tiny_console.core.utils.helptext import command_list_lines, get_help_text


@console_command(
    "help",
    "show command info",
    params=[Param("command", ParamType.TEXT, default="", greedy=True)],
    sources={0: lambda console: console.get_command_names(include_aliases=True)},
)
def handle_help(console, command: str = "") -> int:
    """
    Handles the 'help' command.

    Without an argument prints the general help; with a command or alias
    name prints its usage, arguments and known values.
    """
    if not command:
        for line in get_help_text().splitlines():
            console.print_line(line)
        console.debug("Type 'commands' to list all available commands.")
        console.debug("Type 'help <command>' to get more info about the command.")
        return 0

    try:
        lines = console.usage(command)
    except UnknownCommand:
        console.error(f"Command not found: {command}")
        return 1

    for line in lines:
        console.print_line(line)
    return 0


@console_command("commands", "list all commands")
def handle_commands(console) -> int:
    console.print_line("Available commands:")
    for line in command_list_lines(console.registry.all()):
        console.print_line(line)
    return 0
