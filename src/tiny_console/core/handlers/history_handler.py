# src/tiny_console/core/handlers/history_handler.py
import logging

from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command

logger = logging.getLogger(__name__)


@console_command("erase_history", "erases current history and persisted history")
def handle_erase_history(console) -> int:
    console.erase_history()
    console.print_line("History erased.")
    return 0


@console_command(
    "history",
    "list command history, or fuzzy search it",
    params=[Param("query", ParamType.TEXT, default="", greedy=True)],
)
def handle_history(console, query: str = "") -> int:
    """
    Without a query lists the history, oldest first, numbered.
    With a query lists the fuzzy matches, best first.
    """
    if not query:
        entries = console.history.list()
        if not entries:
            console.print_line("History is empty.")
            return 0
        width = len(str(len(entries)))
        for i, entry in enumerate(entries, start=1):
            console.print_line(f"{str(i).rjust(width)}  {entry}")
        return 0

    matches = console.fuzzy_history(query)
    if not matches:
        console.print_line(f"No history entries match '{query}'.")
        return 0
    for match in matches:
        console.print_line(match.entry)
    return 0
