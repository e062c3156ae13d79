# src/tiny_console/core/xngine.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from tiny_console.core.command_registry import Command, CommandRegistry
from tiny_console.core.errors import ConsoleError, HandlerFailure, UnknownCommand
from tiny_console.core.managers.alias_manager import AliasManager
from tiny_console.core.managers.history_manager import HistoryBuffer
from tiny_console.core.parser import join_tokens, raw_tails, scan
from tiny_console.core.services.coercion_service import coerce
from tiny_console.core.services.fuzzy_match_service import closest_match
from tiny_console.core.utils.helptext import usage_lines
from tiny_console.model import OutputRecord, Severity

OutputListener = Callable[[OutputRecord], None]


class ExecuteEngine:
    """
    Runs one command line at a time:
    echo -> history -> alias expansion -> tokenize -> resolve -> coerce -> invoke.

    Every failure along the way is reported as an error record; nothing a
    command line or a handler does escapes as an exception.
    """

    def __init__(
            self,
            *,
            registry: CommandRegistry,
            aliases: AliasManager,
            history: HistoryBuffer,
            alias_precedence: str = "alias",
            sparse_mode: bool = False,
            suggestions_enabled: bool = True,
            max_edit_distance: int = 2,
            on_suggestion: Optional[Callable[[Optional[str]], None]] = None,
            logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.aliases = aliases
        self.history = history
        self.alias_precedence = alias_precedence
        self.sparse_mode = sparse_mode
        self.suggestions_enabled = suggestions_enabled
        self.max_edit_distance = max_edit_distance
        self._on_suggestion = on_suggestion
        self._log = logger or logging.getLogger(__name__)
        self._listeners: List[OutputListener] = []
        # One buffer per execute() in progress; nested calls (exec) merge into their parent.
        self._buffers: List[List[OutputRecord]] = []
        self._echo_stack: List[bool] = []

    # ---------------- Output ----------------

    def add_output_listener(self, listener: OutputListener) -> None:
        self._listeners.append(listener)

    def remove_output_listener(self, listener: OutputListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    def emit(self, severity: Severity, text: str) -> OutputRecord:
        record = OutputRecord(severity=severity, text=text)
        if self._buffers:
            self._buffers[-1].append(record)
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception as e:
                self._log.error("Output listener failed: %s", e, exc_info=True)
        return record

    # ---------------- Execution ----------------

    @property
    def echoing(self) -> bool:
        """Whether the command currently running was started with echo on."""
        return self._echo_stack[-1] if self._echo_stack else True

    def execute(self, line: str, echo: bool = True, record_history: bool = True) -> List[OutputRecord]:
        """
        Executes a single command line and returns the records it produced.

        Args:
            line: The raw command line.
            echo: Emit the line itself as a plain record first.
            record_history: Append the line to the history buffer.
        """
        self._buffers.append([])
        self._echo_stack.append(echo)
        try:
            self._dispatch(line or "", echo, record_history)
        finally:
            self._echo_stack.pop()
            records = self._buffers.pop()
        if self._buffers:
            self._buffers[-1].extend(records)
        return records

    def _dispatch(self, line: str, echo: bool, record_history: bool) -> None:
        stripped = line.strip()
        if not stripped:
            return
        if echo:
            self._suggest(None)
            self.emit(Severity.PLAIN, stripped)
        if record_history:
            self.history.push(stripped)

        try:
            expanded = self.aliases.expand(stripped, is_command=self._command_shadows_alias())
            spans = scan(expanded)
        except ConsoleError as e:
            self.emit(Severity.ERROR, str(e))
            return
        if not spans:
            return
        tokens = [t.text for t in spans]

        try:
            command, args, consumed = self.registry.resolve(tokens)
        except UnknownCommand as e:
            self.emit(Severity.ERROR, str(e))
            if echo:
                self._suggest_similar_command(tokens)
            return

        try:
            values = coerce(args, command.params, raw_tails(expanded, spans[consumed:]))
        except ConsoleError as e:
            self.emit(Severity.ERROR, f"{command.name}: {e}")
            for text in usage_lines(command):
                self.emit(Severity.PLAIN, text)
            return

        ok = self._invoke(command, values)
        if not ok and echo:
            self._suggest_argument_corrections(command, args)

        if self.sparse_mode:
            self.emit(Severity.PLAIN, "")

    def _invoke(self, command: Command, values: Sequence[Any]) -> bool:
        """Calls the handler and maps its result; True means success."""
        reported_before = self._reported_count()
        try:
            result = command.handler.invoke(values)
        except HandlerFailure as e:
            self.emit(Severity.ERROR, str(e))
            return False
        except Exception as e:
            self._log.error("Command '%s' raised: %s", command.name, e, exc_info=True)
            self.emit(Severity.ERROR, f"{command.name}: {e}")
            return False

        if result is None or result is True:
            return True
        if result is False or (isinstance(result, int) and result != 0):
            # A handler that already printed its own error or warning is not reported twice.
            if self._reported_count() == reported_before:
                code = "" if result is False else f" (exit code {result})"
                self.emit(Severity.ERROR, f"Command failed: {command.name}{code}")
            return False
        if isinstance(result, int):
            return True
        if isinstance(result, str):
            if result:
                self.emit(Severity.PLAIN, result)
            return True
        self.emit(Severity.PLAIN, str(result))
        return True

    def _reported_count(self) -> int:
        if not self._buffers:
            return 0
        return sum(1 for r in self._buffers[-1] if r.severity in (Severity.ERROR, Severity.WARNING))

    def _command_shadows_alias(self) -> Optional[Callable[[str], bool]]:
        if self.alias_precedence != "command":
            return None
        return lambda head: head.lower() in self.registry.root.children

    # ---------------- Suggestions ----------------

    def _suggest(self, line: Optional[str]) -> None:
        if self._on_suggestion is not None:
            self._on_suggestion(line)

    def _suggest_similar_command(self, tokens: List[str]) -> None:
        if not self.suggestions_enabled:
            return
        names = set(self.registry.root.children) | set(self.aliases.names())
        hit = closest_match(tokens[0], sorted(names), self.max_edit_distance)
        if hit is None:
            return
        self.emit(Severity.DEBUG, f"Did you mean {hit}? (TAB to fill)")
        self._suggest(join_tokens([hit] + tokens[1:]))

    def _suggest_argument_corrections(self, command: Command, args: List[str]) -> None:
        if not self.suggestions_enabled or not command.sources:
            return

        corrected = list(args)
        any_corrected = False
        for i, arg in enumerate(args):
            param_index = command.param_index_for_token(i)
            source = command.source_for(param_index) if param_index is not None else None
            if source is None:
                continue
            try:
                values = [str(v) for v in source()]
            except Exception as e:
                self._log.warning("Autocomplete source for '%s' failed: %s", command.name, e)
                continue
            hit = closest_match(arg, values, self.max_edit_distance)
            if hit is not None and hit != arg:
                corrected[i] = hit
                any_corrected = True

        if any_corrected:
            line = join_tokens(list(command.path) + corrected)
            self.emit(Severity.DEBUG, f"Did you mean \"{line}\"? (TAB to fill)")
            self._suggest(line)
