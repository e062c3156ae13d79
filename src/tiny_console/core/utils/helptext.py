# src/tiny_console/core/utils/helptext.py
import logging
from typing import Iterable, List, Optional

from tiny_console.core.command_registry import Command

logger = logging.getLogger(__name__)

# The static header printed by a bare `help`.
HEADER_HELP_TEXT = """
Tiny Console - Help

Type a command followed by its arguments. Double quotes group words into one
argument, e.g. echo "hello world".

  help <command>      Show usage for a command or alias.
  commands            List every command with its description.
  aliases             List every alias.
  TAB                 Complete commands, subcommands and arguments.
  !h                  Fuzzy search through history (type the query after !h).
  !c                  List all commands.
""".strip()


def format_description(description: str) -> str:
    """Capitalises the first letter and makes sure the text ends with a full stop."""
    text = (description or "").strip()
    if not text:
        return ""
    text = text[0].upper() + text[1:]
    return text if text.endswith(".") else text + "."


def usage_line(command: Command) -> str:
    parts = [f"Usage: {command.name}"]
    for param in command.params:
        name = f"{param.name}..." if param.greedy else param.name
        parts.append(name if param.required else f"[{name}]")
    return " ".join(parts)


def usage_lines(command: Command, alias_expansion: Optional[str] = None) -> List[str]:
    """
    Full usage block for a command: the usage line, its description, the
    typed argument list and the current values of its autocomplete sources.
    """
    lines: List[str] = []
    if alias_expansion:
        lines.append(f"Alias of: {alias_expansion}")
    lines.append(usage_line(command))

    description = format_description(command.description)
    if description:
        lines.append(description)

    arg_lines = []
    value_lines = []
    for i, param in enumerate(command.params):
        if param.required:
            default = ""
        elif isinstance(param.default, str):
            default = f' = "{param.default}"'
        else:
            default = f" = {param.default}"
        arg_lines.append(f"  {param.name}: {param.type.value}{default}")

        source = command.source_for(i)
        if source is None:
            continue
        try:
            values = [str(v) for v in source()]
        except Exception as e:
            logger.warning("Autocomplete source for '%s' failed: %s", command.name, e)
            continue
        if values:
            value_lines.append(f"  {param.name}: {', '.join(values)}")

    if arg_lines:
        lines.append("Arguments:")
        lines.extend(arg_lines)
    if value_lines:
        lines.append("Values:")
        lines.extend(value_lines)
    return lines


def command_list_lines(commands: Iterable[Command]) -> List[str]:
    """One `name  description` line per command, names padded to a column."""
    commands = sorted(commands, key=lambda c: c.name)
    if not commands:
        return []
    width = max(len(c.name) for c in commands) + 2
    return [f"  {c.name.ljust(width)}{c.description}".rstrip() for c in commands]


def get_help_text() -> str:
    return HEADER_HELP_TEXT
