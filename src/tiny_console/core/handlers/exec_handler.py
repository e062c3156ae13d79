# src/tiny_console/core/handlers/exec_handler.py
from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.discovery import console_command


@console_command(
    "exec",
    "execute commands from file",
    params=[Param("file", ParamType.TEXT)],
)
def handle_exec(console, file: str) -> int:
    """
    Runs a script file. `.lcs` is appended when the name has no extension.
    A script started from a silent command runs silently as well.
    """
    silent = not console.xngine.echoing
    return 0 if console.execute_script(file, silent=silent) else 1
