# src/tiny_console/core/command_registry.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from tiny_console.core.errors import RegistrationError, UnknownCommand

logger = logging.getLogger(__name__)

# Autocomplete sources are indexed 0-4, so a command never takes more than 5 parameters.
MAX_PARAMS = 5

_SEGMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

PathLike = Union[str, Sequence[str]]
AutocompleteSource = Callable[[], Iterable[str]]


class ParamType(str, Enum):
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TEXT = "text"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    VECTOR4 = "vector4"

    @property
    def width(self) -> int:
        """Number of tokens one value of this type consumes."""
        return {"vector2": 2, "vector3": 3, "vector4": 4}.get(self.value, 1)


class _Required:
    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED = _Required()


@dataclass(frozen=True)
class Param:
    """One entry of a command's parameter signature."""
    name: str
    type: ParamType = ParamType.TEXT
    default: Any = REQUIRED
    greedy: bool = False
    source: Optional[AutocompleteSource] = field(default=None, compare=False)

    @property
    def required(self) -> bool:
        return self.default is REQUIRED


class Invocable(Protocol):
    """Anything the console can call with an ordered list of typed values."""

    def invoke(self, args: Sequence[Any]) -> Any:  # pragma: no cover - signature only
        ...


class FunctionInvocable:
    """Binds a plain function or closure, optionally with leading bound arguments."""

    def __init__(self, func: Callable[..., Any], *bound: Any):
        self.func = func
        self.bound = bound

    def invoke(self, args: Sequence[Any]) -> Any:
        return self.func(*self.bound, *args)

    def __repr__(self) -> str:
        return f"<FunctionInvocable {getattr(self.func, '__name__', self.func)!r}>"


class MethodInvocable:
    """Binds a method of a stateful host object, looked up at call time."""

    def __init__(self, obj: Any, method_name: str):
        if not callable(getattr(obj, method_name, None)):
            raise RegistrationError(f"{type(obj).__name__} has no method '{method_name}'")
        self.obj = obj
        self.method_name = method_name

    def invoke(self, args: Sequence[Any]) -> Any:
        return getattr(self.obj, self.method_name)(*args)

    def __repr__(self) -> str:
        return f"<MethodInvocable {type(self.obj).__name__}.{self.method_name}>"


def as_invocable(handler: Any) -> Invocable:
    """Plain callables are wrapped; objects exposing only `invoke` are used as they are."""
    if isinstance(handler, (FunctionInvocable, MethodInvocable)):
        return handler
    if callable(handler):
        return FunctionInvocable(handler)
    if callable(getattr(handler, "invoke", None)):
        return handler
    raise RegistrationError(f"Handler is not callable: {handler!r}")


def normalize_path(path: PathLike) -> Tuple[str, ...]:
    """Turns 'math multiply' or ['math', 'multiply'] into ('math', 'multiply')."""
    segments = path.split() if isinstance(path, str) else [str(p) for p in path]
    if not segments:
        raise RegistrationError("Command path must have at least one segment.")
    for segment in segments:
        if not _SEGMENT_PATTERN.match(segment):
            raise RegistrationError(
                f"Invalid command path segment '{segment}'. Name must use valid identifiers."
            )
    return tuple(s.lower() for s in segments)


@dataclass
class Command:
    path: Tuple[str, ...]
    description: str
    handler: Invocable
    params: Tuple[Param, ...] = ()
    sources: Dict[int, AutocompleteSource] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return " ".join(self.path)

    @property
    def required_width(self) -> int:
        return sum(p.type.width for p in self.params if p.required)

    @property
    def max_width(self) -> int:
        """Maximum token count, or -1 when the last parameter swallows the rest of the line."""
        if self.params and self.params[-1].greedy:
            return -1
        return sum(p.type.width for p in self.params)

    def source_for(self, index: int) -> Optional[AutocompleteSource]:
        return self.sources.get(index)

    def param_index_for_token(self, token_index: int) -> Optional[int]:
        """Maps the n-th argument token to the parameter consuming it (vectors widen)."""
        offset = 0
        for i, param in enumerate(self.params):
            if param.greedy and token_index >= offset:
                return i
            if offset <= token_index < offset + param.type.width:
                return i
            offset += param.type.width
        return None


class CommandNode:
    """A trie node: structural children plus an optional leaf command."""

    __slots__ = ("children", "command")

    def __init__(self) -> None:
        self.children: Dict[str, CommandNode] = {}
        self.command: Optional[Command] = None

    @property
    def is_structural(self) -> bool:
        return self.command is None

    def iter_commands(self) -> Iterable[Command]:
        """Depth-first, by name. Children are snapshotted, so registering while iterating is safe."""
        if self.command is not None:
            yield self.command
        for _, child in sorted(self.children.items(), key=lambda item: item[0]):
            yield from child.iter_commands()


def _validate_params(path: Tuple[str, ...], params: Sequence[Param]) -> Tuple[Param, ...]:
    params = tuple(params)
    name = " ".join(path)
    if len(params) > MAX_PARAMS:
        raise RegistrationError(
            f"Command '{name}' declares {len(params)} parameters; at most {MAX_PARAMS} are supported."
        )
    seen_optional = False
    for i, param in enumerate(params):
        if not isinstance(param.type, ParamType):
            raise RegistrationError(f"Command '{name}': unknown parameter type {param.type!r}")
        if param.greedy and (i != len(params) - 1 or param.type is not ParamType.TEXT):
            raise RegistrationError(
                f"Command '{name}': only the last parameter may be greedy, and it must be text."
            )
        if param.required and seen_optional:
            raise RegistrationError(
                f"Command '{name}': required parameter '{param.name}' follows an optional one."
            )
        seen_optional = seen_optional or not param.required
    return params


class CommandRegistry:
    """
    Subcommand tree mapping path segments to registered commands.

    Intermediate nodes are created implicitly when a longer path is
    registered and need not be commands themselves.
    """

    def __init__(self) -> None:
        self._root = CommandNode()

    @property
    def root(self) -> CommandNode:
        return self._root

    # ---------------- Registration ----------------

    def register(
        self,
        path: PathLike,
        description: str,
        handler: Any,
        params: Sequence[Param] = (),
    ) -> Command:
        """Registers a command. An existing command at the same path is replaced."""
        segments = normalize_path(path)
        params = _validate_params(segments, params)
        command = Command(
            path=segments,
            description=(description or "").strip(),
            handler=as_invocable(handler),
            params=params,
            sources={i: p.source for i, p in enumerate(params) if p.source is not None},
        )

        node = self._root
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                child = CommandNode()
                node.children[segment] = child
            node = child

        if node.command is not None:
            logger.debug("Replacing command '%s'", command.name)
        else:
            logger.debug("Registered command '%s'", command.name)
        node.command = command
        return command

    def unregister(self, path: PathLike) -> bool:
        """Removes the command at `path` and prunes structural nodes left empty."""
        try:
            segments = normalize_path(path)
        except RegistrationError:
            return False

        trail: List[Tuple[CommandNode, str]] = []
        node = self._root
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                return False
            trail.append((node, segment))
            node = child

        if node.command is None:
            return False
        node.command = None

        for parent, segment in reversed(trail):
            child = parent.children[segment]
            if child.command is None and not child.children:
                del parent.children[segment]
            else:
                break

        logger.debug("Unregistered command '%s'", " ".join(segments))
        return True

    def set_source(self, path: PathLike, index: int, source: AutocompleteSource) -> None:
        """Binds an autocomplete source to (command, argument index)."""
        if not callable(source):
            raise RegistrationError("Can't add autocomplete source: source is not callable")
        command = self.get(path)
        if command is None:
            raise RegistrationError(f"Can't add autocomplete source: command doesn't exist: {path}")
        if not 0 <= index < MAX_PARAMS:
            raise RegistrationError("Can't add autocomplete source: argument index out of bounds")
        command.sources[index] = source

    # ---------------- Lookup ----------------

    def get(self, path: PathLike) -> Optional[Command]:
        """Returns the command registered exactly at `path`, or None."""
        try:
            segments = normalize_path(path)
        except RegistrationError:
            return None
        node = self.node_at(segments)
        return node.command if node is not None else None

    def has(self, path: PathLike) -> bool:
        return self.get(path) is not None

    def node_at(self, segments: Sequence[str]) -> Optional[CommandNode]:
        node = self._root
        for segment in segments:
            node = node.children.get(segment.lower())
            if node is None:
                return None
        return node

    def walk(self, tokens: Sequence[str]) -> Tuple[CommandNode, int]:
        """Follows tokens down the tree as far as they match; returns (node, depth)."""
        node = self._root
        depth = 0
        for token in tokens:
            child = node.children.get(token.lower())
            if child is None:
                break
            node = child
            depth += 1
        return node, depth

    def resolve(self, tokens: Sequence[str]) -> Tuple[Command, List[str], int]:
        """
        Resolves the deepest registered command that prefixes `tokens`.

        Returns:
            (command, remaining_args, consumed_length)

        Raises:
            UnknownCommand: if no registered path prefixes the tokens.
        """
        if not tokens:
            raise UnknownCommand("")

        best: Optional[Tuple[Command, int]] = None
        node = self._root
        for i, token in enumerate(tokens):
            node = node.children.get(token.lower())
            if node is None:
                break
            if node.command is not None:
                best = (node.command, i + 1)

        if best is None:
            raise UnknownCommand(tokens[0])

        command, consumed = best
        return command, list(tokens[consumed:]), consumed

    def all(self) -> List[Command]:
        return list(self._root.iter_commands())

    def list(self) -> List[str]:
        """Full path strings of every registered command, lexicographically ordered."""
        return sorted(c.name for c in self._root.iter_commands())

    def describe(self, path: PathLike) -> str:
        command = self.get(path)
        if command is None:
            name = path if isinstance(path, str) else " ".join(path)
            raise UnknownCommand(name)
        return command.description

    def __len__(self) -> int:
        return sum(1 for _ in self._root.iter_commands())

    def __contains__(self, path: PathLike) -> bool:
        return self.has(path)
