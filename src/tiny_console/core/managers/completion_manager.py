# src/tiny_console/core/managers/completion_manager.py
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from tiny_console.core.command_registry import Command, CommandRegistry
from tiny_console.core.errors import ConsoleError
from tiny_console.core.managers.alias_manager import AliasManager
from tiny_console.core.managers.history_manager import HistoryBuffer
from tiny_console.core.parser import join_tokens, split_for_completion, tokenize
from tiny_console.model import CandidateKind, CompletionCandidate, FuzzyMatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionCycle:
    """
    Tab-cycling state: a candidate list and a cursor into it.

    Advancing returns a new cycle; the candidate list itself is never
    touched. `index` is -1 until the first advance.
    """
    line: str
    candidates: Tuple[CompletionCandidate, ...]
    index: int = -1

    @property
    def current(self) -> Optional[CompletionCandidate]:
        if not self.candidates or self.index < 0:
            return None
        return self.candidates[self.index]

    def next(self) -> "CompletionCycle":
        if not self.candidates:
            return self
        return CompletionCycle(self.line, self.candidates, (self.index + 1) % len(self.candidates))

    def prev(self) -> "CompletionCycle":
        if not self.candidates:
            return self
        idx = len(self.candidates) - 1 if self.index <= 0 else self.index - 1
        return CompletionCycle(self.line, self.candidates, idx)


class CompletionManager:
    """
    Produces completion candidates for a partial command line.

    Works on the same registry, alias table and history buffer the
    dispatcher uses, and never modifies them.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        aliases: AliasManager,
        history: HistoryBuffer,
        use_history_with_matches: bool = True,
    ):
        self.registry = registry
        self.aliases = aliases
        self.history = history
        self.use_history_with_matches = use_history_with_matches
        self.suggestion: Optional[str] = None
        self._cycle: Optional[CompletionCycle] = None

    # ---------------- Public API ----------------

    def complete(self, partial_line: str, cursor_token_index: Optional[int] = None) -> List[CompletionCandidate]:
        """
        Ranked candidates for `partial_line`.

        The cursor is assumed to be at the end of the line unless
        `cursor_token_index` points at an earlier token; everything after that
        token is ignored.
        """
        parts, _ = split_for_completion(partial_line)
        if cursor_token_index is not None and 0 <= cursor_token_index < len(parts):
            parts = parts[:cursor_token_index + 1]
        prefix = parts[-1]
        leading = parts[:-1]

        candidates: List[CompletionCandidate] = []
        if self.suggestion and not leading and self.suggestion.lower().startswith(prefix.lower()):
            candidates.append(CompletionCandidate(
                text=self.suggestion, line=self.suggestion, kind=CandidateKind.SUGGESTION
            ))

        expanded = self._expand_leading(leading)
        taken = {c.line for c in candidates}
        for candidate in self._structural_or_argument(leading, expanded, prefix):
            if candidate.line not in taken:
                taken.add(candidate.line)
                candidates.append(candidate)

        if self.use_history_with_matches or not candidates:
            typed = (partial_line or "").strip()
            for entry in self.history.search_prefix(typed):
                if entry in taken or entry == typed:
                    continue
                taken.add(entry)
                candidates.append(CompletionCandidate(text=entry, line=entry, kind=CandidateKind.HISTORY))

        return candidates

    def fuzzy_search(self, query: str) -> List[FuzzyMatch]:
        return self.history.search_fuzzy(query)

    def command_names(self, include_aliases: bool = True) -> List[str]:
        names = self.registry.list()
        if include_aliases:
            names = sorted(set(names) | set(self.aliases.names()))
        return names

    def cycle(self, partial_line: str, reverse: bool = False) -> Optional[CompletionCandidate]:
        """
        Steps through candidates for repeated Tab presses on the same line.

        The candidate list is regenerated whenever `partial_line` differs from
        the line that started the current cycle or from its current candidate.
        """
        cycle = self._cycle
        if cycle is None or partial_line not in (cycle.line, getattr(cycle.current, "line", None)):
            cycle = CompletionCycle(partial_line, tuple(self.complete(partial_line)))
        cycle = cycle.prev() if reverse else cycle.next()
        self._cycle = cycle
        return cycle.current

    def reset_cycle(self) -> None:
        self._cycle = None

    # ---------------- Helpers ----------------

    def _expand_leading(self, leading: List[str]) -> List[str]:
        """Leading tokens with an alias in first position expanded."""
        if not leading or not self.aliases.has(leading[0]):
            return leading
        try:
            return tokenize(self.aliases.expand(join_tokens(leading[:1]))) + leading[1:]
        except ConsoleError:
            return leading

    def _structural_or_argument(self, leading: List[str], expanded: List[str], prefix: str) -> List[CompletionCandidate]:
        node, depth = self.registry.walk(expanded)

        if depth == len(expanded):
            # Every typed token is a path segment: complete the next segment,
            # and the arguments of the node itself if it is a command.
            out = self._child_candidates(node, leading, prefix, include_aliases=not leading)
            if node.command is not None and expanded:
                out.extend(self._argument_candidates(node.command, leading, 0, prefix))
            return out

        command = self._deepest_command(expanded[:depth])
        if command is None:
            return []
        return self._argument_candidates(command, leading, len(expanded) - len(command.path), prefix)

    def _deepest_command(self, path: List[str]) -> Optional[Command]:
        for end in range(len(path), 0, -1):
            command = self.registry.get(path[:end])
            if command is not None:
                return command
        return None

    def _child_candidates(self, node, leading: List[str], prefix: str, include_aliases: bool) -> List[CompletionCandidate]:
        low = prefix.lower()
        out = []
        for name in sorted(node.children):
            if not name.startswith(low):
                continue
            child = node.children[name]
            kind = CandidateKind.SUBCOMMAND if child.is_structural or child.children else CandidateKind.COMMAND
            description = child.command.description if child.command is not None else None
            out.append(CompletionCandidate(
                text=name, line=self._line(leading, name), kind=kind, description=description
            ))

        if include_aliases:
            for name in self.aliases.names():
                if name.lower().startswith(low) and name.lower() not in node.children:
                    out.append(CompletionCandidate(
                        text=name, line=name, kind=CandidateKind.ALIAS,
                        description=self.aliases.get(name),
                    ))
            out.sort(key=lambda c: c.text.lower())
        return out

    def _argument_candidates(self, command: Command, leading: List[str], arg_token_index: int, prefix: str) -> List[CompletionCandidate]:
        param_index = command.param_index_for_token(arg_token_index)
        if param_index is None:
            return []
        source = command.source_for(param_index)
        if source is None:
            return []

        try:
            values = [str(v) for v in source()]
        except Exception as e:
            logger.warning("Autocomplete source for '%s' failed: %s", command.name, e)
            return []

        low = prefix.lower()
        out = []
        for value in values:
            if value.lower().startswith(low):
                out.append(CompletionCandidate(
                    text=value, line=self._line(leading, value), kind=CandidateKind.ARGUMENT
                ))
        return out

    @staticmethod
    def _line(leading: List[str], token: str) -> str:
        return join_tokens(list(leading) + [token])
