# src/tiny_console/core/handlers/core/cls_handler.py
from tiny_console.core.discovery import console_command


@console_command("clear", "clear console")
def handle_clear(console) -> int:
    """Asks the front end to clear its output."""
    console.context.request_clear()
    return 0
