# src/tiny_console/core/handlers/core/echo_handler.py
from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command


@console_command(
    "echo",
    "display a line of text",
    params=[Param("text", ParamType.TEXT, default="", greedy=True)],
)
def handle_echo(console, text: str = "") -> int:
    """
    Handles the 'echo' command.

    Everything after the command name is printed as typed, as one info
    line; a single quoted argument loses its outer quotes.
    """
    console.info(text)
    return 0
