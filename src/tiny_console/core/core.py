# src/tiny_console/core/core.py
from __future__ import annotations

import functools
import logging
from typing import Any, Iterable, List, Optional, Sequence

from tiny_console.core.command_registry import (
    AutocompleteSource,
    Command,
    CommandRegistry,
    FunctionInvocable,
    Param,
    PathLike,
    normalize_path,
)
from tiny_console.core.context.console_context import ConsoleContext, Evaluator
from tiny_console.core.discovery import discover_handlers
from tiny_console.core.errors import ConsoleError, HandlerFailure, RegistrationError, ScriptNotFound, UnknownCommand
from tiny_console.core.managers.alias_manager import AliasManager
from tiny_console.core.managers.completion_manager import CompletionManager
from tiny_console.core.managers.config_manager import config_manager
from tiny_console.core.managers.history_manager import HistoryBuffer
from tiny_console.core.managers.script_manager import ScriptExecutor
from tiny_console.core.parser import tokenize
from tiny_console.core.services.script_loader_service import FileScriptLoader
from tiny_console.core.utils.helptext import usage_lines
from tiny_console.core.xngine import ExecuteEngine, OutputListener
from tiny_console.model import CompletionCandidate, ConsoleOptions, FuzzyMatch, OutputRecord, Severity

logger = logging.getLogger(__name__)


class ConsoleEngine:
    """
    One console instance: command registry, alias table, history buffer,
    completion and dispatch, plus the host context. Front ends receive an
    instance and talk to it; nothing here is process-global.
    """

    def __init__(
            self,
            options: Optional[ConsoleOptions] = None,
            context: Optional[ConsoleContext] = None,
            script_loader: Optional[FileScriptLoader] = None,
            load_builtins: bool = True,
    ) -> None:
        self.options = options or ConsoleOptions()
        self.context = context or ConsoleContext()
        self.script_loader = script_loader or FileScriptLoader()

        self.registry = CommandRegistry()
        self.aliases = AliasManager(max_depth=self.options.alias.max_depth)
        self.history = HistoryBuffer(
            capacity=self.options.history.capacity,
            duplicates=self.options.history.duplicates,
        )
        self.completion = CompletionManager(
            self.registry,
            self.aliases,
            self.history,
            use_history_with_matches=self.options.autocomplete.use_history_with_matches,
        )
        self.xngine = ExecuteEngine(
            registry=self.registry,
            aliases=self.aliases,
            history=self.history,
            alias_precedence=self.options.alias.precedence,
            sparse_mode=self.options.sparse_mode,
            suggestions_enabled=self.options.suggestions.enabled,
            max_edit_distance=self.options.suggestions.max_edit_distance,
            on_suggestion=self._set_suggestion,
            logger=logger,
        )
        self.scripts = ScriptExecutor(self.xngine.execute)

        if load_builtins:
            self.register_builtins()
            self.load_config_aliases()

    # ---------------- Options ----------------

    @property
    def is_release_build(self) -> bool:
        return self.options.release_build

    def apply_options(self, options: ConsoleOptions) -> None:
        """Applies options that can change while the console is running."""
        self.options = options
        self.history.duplicates = options.history.duplicates
        self.history.resize(options.history.capacity)
        self.aliases.max_depth = options.alias.max_depth
        self.completion.use_history_with_matches = options.autocomplete.use_history_with_matches
        self.xngine.alias_precedence = options.alias.precedence
        self.xngine.sparse_mode = options.sparse_mode
        self.xngine.suggestions_enabled = options.suggestions.enabled
        self.xngine.max_edit_distance = options.suggestions.max_edit_distance
        logger.debug("Console options applied.")

    # ---------------- Commands ----------------

    def register_command(
            self,
            path: PathLike,
            handler: Any,
            description: str = "",
            params: Sequence[Param] = (),
    ) -> Optional[Command]:
        """
        Registers (or replaces) a command. In release builds, commands listed
        in `commands_disabled_in_release` are skipped and None is returned.
        """
        name = " ".join(normalize_path(path))
        if self.is_release_build and name in self.options.commands_disabled_in_release:
            logger.debug("Command '%s' is disabled in release builds.", name)
            return None
        return self.registry.register(path, description, handler, params)

    def unregister_command(self, path: PathLike) -> bool:
        return self.registry.unregister(path)

    def has_command(self, path: PathLike) -> bool:
        return self.registry.has(path)

    def get_command_names(self, include_aliases: bool = False) -> List[str]:
        return self.completion.command_names(include_aliases)

    def get_command_description(self, path: PathLike) -> str:
        return self.registry.describe(path)

    def add_argument_autocomplete_source(self, path: PathLike, index: int, source: AutocompleteSource) -> None:
        self.registry.set_source(path, index, source)

    def register_builtins(self) -> int:
        """Registers every discovered `handle_*` built-in, bound to this console."""
        count = 0
        for spec, func in discover_handlers():
            try:
                command = self.register_command(spec.path, FunctionInvocable(func, self), spec.description, spec.params)
                if command is None:
                    continue
                for index, make_values in spec.sources:
                    self.registry.set_source(command.path, index, functools.partial(make_values, self))
                count += 1
            except RegistrationError as e:
                logger.error("Built-in '%s' could not be registered: %s", spec.path, e)
        logger.debug("Registered %d built-in commands.", count)
        return count

    # ---------------- Aliases ----------------

    def add_alias(self, name: str, expansion: str) -> None:
        self.aliases.add(name, expansion)

    def remove_alias(self, name: str) -> bool:
        return self.aliases.remove(name)

    def has_alias(self, name: str) -> bool:
        return self.aliases.has(name)

    def get_alias_names(self) -> List[str]:
        return self.aliases.names()

    def get_alias_argv(self, name: str) -> List[str]:
        return self.aliases.argv(name)

    def load_config_aliases(self) -> None:
        """
        Installs the aliases from the options. An alias that would hide a
        command, or whose target command does not exist, is skipped.
        """
        for name, expansion in self.options.aliases.items():
            if name.lower() in self.registry.root.children:
                logger.warning("Alias '%s' would hide a command of the same name; skipped.", name)
                continue
            try:
                head = tokenize(expansion)[0] if expansion.strip() else ""
            except ConsoleError:
                head = ""
            if not head or not (head.lower() in self.registry.root.children or self.aliases.has(head)):
                logger.warning("Alias '%s' targets unknown command '%s'; skipped.", name, head)
                continue
            try:
                self.aliases.add(name, expansion)
            except RegistrationError as e:
                logger.warning("Invalid alias in configuration: %s", e)

    # ---------------- Execution ----------------

    def execute(self, line: str, echo: bool = True, record_history: bool = True) -> List[OutputRecord]:
        return self.xngine.execute(line, echo=echo, record_history=record_history)

    def execute_command(self, line: str) -> List[OutputRecord]:
        """Executes a line as if typed: echoed and recorded in history."""
        return self.xngine.execute(line, echo=True, record_history=True)

    def execute_command_silent(self, line: str) -> List[OutputRecord]:
        """Executes a line without echoing it. It is still recorded in history."""
        return self.xngine.execute(line, echo=False, record_history=True)

    def run_script(self, lines: Iterable[str], silent: bool = False) -> List[OutputRecord]:
        return self.scripts.run(lines, silent=silent)

    def execute_script(self, name: str, silent: bool = False) -> bool:
        """Loads a script through the script loader and runs it. False if it was not found."""
        try:
            path = self.script_loader.resolve(name)
            lines = self.script_loader.load(name)
        except ScriptNotFound as e:
            self.error(str(e))
            return False
        if not silent:
            self.info(f"Executing {path}")
        logger.info("Running script %s", path)
        self.run_script(lines, silent=silent)
        return True

    # ---------------- Completion & history ----------------

    def complete(self, partial_line: str, cursor_token_index: Optional[int] = None) -> List[CompletionCandidate]:
        return self.completion.complete(partial_line, cursor_token_index)

    def fuzzy_history(self, query: str) -> List[FuzzyMatch]:
        return self.completion.fuzzy_search(query)

    def erase_history(self) -> None:
        self.history.clear()
        self.context.notify_history_erased()

    def _set_suggestion(self, line: Optional[str]) -> None:
        self.completion.suggestion = line
        self.completion.reset_cycle()

    # ---------------- Help ----------------

    def usage(self, name: str) -> List[str]:
        """
        Usage block for a command or alias.

        Raises:
            UnknownCommand: if `name` resolves to no command.
        """
        expansion = self.aliases.get(name)
        try:
            tokens = tokenize(self.aliases.expand(name) if expansion else name)
        except ConsoleError:
            raise UnknownCommand(name) from None
        command, _, _ = self.registry.resolve(tokens)
        return usage_lines(command, alias_expansion=expansion)

    # ---------------- Output ----------------

    def add_output_listener(self, listener: OutputListener) -> None:
        self.xngine.add_output_listener(listener)

    def remove_output_listener(self, listener: OutputListener) -> bool:
        return self.xngine.remove_output_listener(listener)

    def print_line(self, text: str = "") -> None:
        self.xngine.emit(Severity.PLAIN, text)

    def info(self, text: str) -> None:
        self.xngine.emit(Severity.INFO, text)

    def error(self, text: str) -> None:
        self.xngine.emit(Severity.ERROR, text)

    def warn(self, text: str) -> None:
        self.xngine.emit(Severity.WARNING, text)

    def debug(self, text: str) -> None:
        self.xngine.emit(Severity.DEBUG, text)

    # ---------------- Eval ----------------

    def add_eval_input(self, name: str, value: Any) -> None:
        self.context.add_eval_input(name, value)

    def remove_eval_input(self, name: str) -> bool:
        return self.context.remove_eval_input(name)

    def get_eval_input_names(self) -> List[str]:
        return self.context.eval_input_names()

    def set_eval_base_instance(self, instance: Any) -> None:
        self.context.base_instance = instance

    def set_evaluator(self, evaluator: Optional[Evaluator]) -> None:
        self.context.evaluator = evaluator

    def evaluate(self, expression: str) -> Any:
        """
        Forwards an expression to the host evaluator with the eval inputs and
        base instance.

        Raises:
            HandlerFailure: if no evaluator is set.
        """
        evaluator = self.context.evaluator
        if evaluator is None:
            raise HandlerFailure("No expression evaluator is available.")
        names, values = self.context.eval_inputs()
        return evaluator(expression, names, values, self.context.base_instance)

    def __repr__(self) -> str:
        return f"<ConsoleEngine commands={len(self.registry)} aliases={len(self.aliases)} history={len(self.history)}>"


def create_console(options: Optional[ConsoleOptions] = None, **kwargs: Any) -> ConsoleEngine:
    """Builds a ConsoleEngine from the configured options (settings.json by default)."""
    if options is None:
        options = config_manager.options()
    return ConsoleEngine(options=options, **kwargs)
