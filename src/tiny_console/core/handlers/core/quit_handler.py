# src/tiny_console/core/handlers/core/quit_handler.py
from tiny_console.core.discovery import console_command


@console_command("quit", "exit the application")
def handle_quit(console) -> int:
    """Signals the front end to stop."""
    console.context.request_quit()
    return 0
