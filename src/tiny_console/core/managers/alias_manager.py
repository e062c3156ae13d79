# src/tiny_console/core/managers/alias_manager.py
import logging
from typing import Callable, Dict, List, Optional

from tiny_console.core.errors import AliasCycle, RegistrationError
from tiny_console.core.parser import scan, tokenize

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 16


class AliasManager:
    """
    Name -> replacement-text table.

    Expansion rewrites the first word of a line and repeats until the first
    word is no longer an alias. Chains are legal, cycles are not.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self._aliases: Dict[str, str] = {}
        self.max_depth = max_depth

    def add(self, name: str, expansion: str) -> None:
        """Defines or redefines an alias."""
        name = (name or "").strip()
        if not name or any(ch.isspace() for ch in name):
            raise RegistrationError(f"Invalid alias name: '{name}'")
        expansion = (expansion or "").strip()
        if not expansion:
            raise RegistrationError(f"Alias '{name}' needs a command to run.")
        self._aliases[name] = expansion
        logger.debug("Alias added: %s => %s", name, expansion)

    def remove(self, name: str) -> bool:
        if name in self._aliases:
            del self._aliases[name]
            logger.debug("Alias removed: %s", name)
            return True
        return False

    def get(self, name: str) -> Optional[str]:
        return self._aliases.get(name)

    def has(self, name: str) -> bool:
        return name in self._aliases

    def list(self) -> Dict[str, str]:
        """Returns a copy of all alias definitions, ordered by name."""
        return {name: self._aliases[name] for name in sorted(self._aliases)}

    def names(self) -> List[str]:
        return sorted(self._aliases)

    def argv(self, name: str) -> List[str]:
        """Tokens of the alias expansion, or [name] when it is not an alias."""
        expansion = self._aliases.get(name)
        if expansion is None:
            return [name]
        return tokenize(expansion)

    def clear(self) -> None:
        self._aliases.clear()

    def expand(self, line: str, is_command: Optional[Callable[[str], bool]] = None) -> str:
        """
        Expands the alias in the first word of `line` until it settles.

        Args:
            line: The raw command line.
            is_command: Optional predicate. When given, a first word for which
                it returns True is left alone, so commands take precedence.

        Raises:
            AliasCycle: if an alias is revisited or the depth bound is hit.
            UnterminatedQuote: if the first word opens a quote it never closes.
        """
        current = (line or "").strip()
        chain: List[str] = []

        while current:
            # The head is read by the tokenizer, so `"hp" 5` expands like `hp 5`.
            first = scan(current, max_tokens=1)
            if not first:
                break
            head = first[0].text
            rest = current[first[0].end:].strip()

            if head not in self._aliases:
                break
            if is_command is not None and is_command(head):
                break

            chain.append(head)
            if chain.count(head) > 1 or len(chain) > self.max_depth:
                raise AliasCycle(chain)

            expansion = self._aliases[head]
            current = expansion + (" " + rest if rest else "")

        return current

    def __len__(self) -> int:
        return len(self._aliases)
