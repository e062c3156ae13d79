from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from prompt_toolkit import PromptSession, print_formatted_text
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import History
from prompt_toolkit.shortcuts import clear

from tiny_console.core.core import ConsoleEngine, create_console
from tiny_console.core.managers.config_manager import config_manager
from tiny_console.core.managers.history_file_manager import HistoryFileManager
from tiny_console.core.managers.history_manager import HistoryBuffer
from tiny_console.core.utils.configure_logging import configure_logger
from tiny_console.core.utils.path_utils import PathUtils
from tiny_console.model import CandidateKind, OutputRecord, Severity

# Initialize logging based on configuration
DEBUG_LEVEL = config_manager.get_nested("debug.level", "WARNING")
configure_logger(DEBUG_LEVEL, silenced_loggers={"asyncio": "WARNING"})
logger = logging.getLogger(__name__)

HISTORY_TRIGGER = "!h"
COMMANDS_TRIGGER = "!c"

_SEVERITY_STYLES = {
    Severity.PLAIN: ("", ""),
    Severity.INFO: ("", ""),
    Severity.ERROR: ("ansired bold", "ERROR: "),
    Severity.WARNING: ("ansiyellow", "WARNING: "),
    Severity.DEBUG: ("ansibrightblack italic", ""),
}

AUTOEXEC_TEMPLATE = """\
# Commands in this file run every time the console starts.
# Lines starting with # are comments.
"""


class ConsoleHistory(History):
    """
    prompt_toolkit history backed by the console's HistoryBuffer, so arrow-key
    navigation and the engine see the same lines. The engine records lines
    itself when it executes them.
    """

    def __init__(self, buffer: HistoryBuffer):
        self.buffer = buffer
        super().__init__()

    def load_history_strings(self) -> Iterable[str]:
        # prompt_toolkit expects the most recent entry first.
        return list(reversed(self.buffer.list()))

    def store_string(self, string: str) -> None:
        pass


class PromptToolkitCompleter(Completer):
    """
    Adapts the console's completion candidates to prompt_toolkit. Every
    candidate replaces the text before the cursor with its full line.
    """

    def __init__(self, console: ConsoleEngine, history_max_len: int = 10):
        self.console = console
        self.history_max_len = history_max_len

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor

        if text.lstrip().startswith(HISTORY_TRIGGER):
            query = text.lstrip()[len(HISTORY_TRIGGER):].strip()
            for match in self.console.fuzzy_history(query)[:self.history_max_len]:
                yield Completion(match.entry, start_position=-len(text), display_meta="history")
            return

        if text.endswith(COMMANDS_TRIGGER):
            for name in self.console.get_command_names(include_aliases=True):
                yield Completion(name, start_position=-len(COMMANDS_TRIGGER), display_meta="command")
            return

        for candidate in self.console.complete(text):
            suffix = " " if candidate.kind is CandidateKind.SUBCOMMAND else ""
            yield Completion(
                candidate.line + suffix,
                start_position=-len(text),
                display=candidate.text,
                display_meta=candidate.description or candidate.kind.value,
            )


class RecordPrinter:
    """Output listener that renders records to the terminal."""

    def __init__(self):
        # The line just typed is already visible at the prompt.
        self.skip_echo: Optional[str] = None

    def __call__(self, record: OutputRecord) -> None:
        if self.skip_echo is not None and record.severity is Severity.PLAIN and record.text == self.skip_echo:
            self.skip_echo = None
            return
        style, prefix = _SEVERITY_STYLES[record.severity]
        print_formatted_text(FormattedText([(style, prefix + record.text)]))


def _run_autoexec(console: ConsoleEngine) -> None:
    script = PathUtils.get_user_scripts_dir() / console.options.autoexec.script
    if not script.exists() and console.options.autoexec.auto_create:
        try:
            script.parent.mkdir(parents=True, exist_ok=True)
            script.write_text(AUTOEXEC_TEMPLATE, encoding="utf-8")
            logger.info("Created autoexec script at %s", script)
        except OSError as e:
            logger.warning("Could not create autoexec script %s: %s", script, e)
    if script.exists():
        console.execute_script(str(script), silent=True)


def _load_history(console: ConsoleEngine, store: HistoryFileManager) -> None:
    for entry in store.load():
        console.history.push(entry.command, timestamp=entry.timestamp)
    console.history.is_dirty = False


def start_console(console: Optional[ConsoleEngine] = None) -> None:
    """Starts the interactive REPL (Read-Eval-Print Loop) for the console."""
    console = console or create_console()
    options = console.options

    printer = RecordPrinter()
    console.add_output_listener(printer)
    console.context.on_clear = clear

    history_path: Path = PathUtils.get_console_history_file(options.history.file)
    store = HistoryFileManager(history_path)
    if options.history.persist:
        _load_history(console, store)
        console.context.on_history_erased = lambda: store.save([])

    if options.greet.enabled:
        console.info(options.greet.message)
    _run_autoexec(console)

    session = PromptSession(
        history=ConsoleHistory(console.history),
        completer=PromptToolkitCompleter(console, options.autocomplete.h_max_len),
        complete_while_typing=True,
    )
    logger.info("Console startup; history file at: %s", history_path)

    try:
        while not console.context.quit_requested:
            try:
                line = session.prompt("> ").strip()
            except KeyboardInterrupt:
                continue
            except EOFError:
                break

            if not line:
                continue
            if line.startswith(HISTORY_TRIGGER):
                # Picking a fuzzy match replaces the trigger; a bare trigger is not a command.
                continue

            printer.skip_echo = line
            console.execute_command(line)
            printer.skip_echo = None
    finally:
        if options.history.persist and console.history.is_dirty:
            store.save(console.history.entries())
        print("Bye!")


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for running the console from the command line."""
    start_console()
    return 0


if __name__ == "__main__":
    sys.exit(main())
