# src/tiny_console/core/services/coercion_service.py
import logging
from typing import Any, List, NamedTuple, Optional, Sequence

from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.errors import ArgumentTypeError, ArityMismatch
from tiny_console.core.parser import join_tokens

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "1", "yes"}
_FALSE_WORDS = {"false", "0", "no"}


class Vector2(NamedTuple):
    x: float
    y: float


class Vector3(NamedTuple):
    x: float
    y: float
    z: float


class Vector4(NamedTuple):
    x: float
    y: float
    z: float
    w: float


_VECTOR_TYPES = {
    ParamType.VECTOR2: Vector2,
    ParamType.VECTOR3: Vector3,
    ParamType.VECTOR4: Vector4,
}


def parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise ValueError(raw)


def parse_int(raw: str) -> int:
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        sign = -1 if text.startswith("-") else 1
        body = text.lstrip("+-")
        if body[:2] in ("0x", "0X"):
            return sign * int(body[2:], 16)
        raise


def parse_float(raw: str) -> float:
    return float(raw.strip())


_SCALAR_PARSERS = {
    ParamType.BOOL: parse_bool,
    ParamType.INT: parse_int,
    ParamType.FLOAT: parse_float,
}


def arity_bounds(params: Sequence[Param]) -> tuple:
    """(min_tokens, max_tokens) for a signature; max is -1 for a greedy tail."""
    required = sum(p.type.width for p in params if p.required)
    if params and params[-1].greedy:
        return required, -1
    return required, sum(p.type.width for p in params)


def greedy_value(tokens: Sequence[str], pos: int, tails: Optional[Sequence[str]] = None) -> str:
    """
    The text a greedy parameter receives when it starts at token `pos`.

    With the raw source tails available this is the line exactly as typed
    from that token on, minus one outer pair of quotes when the rest is a
    single quoted token. Without them the tokens are re-joined with quoting.
    """
    rest = tokens[pos:]
    if tails is None:
        return rest[0] if len(rest) == 1 else join_tokens(list(rest))
    raw = tails[pos]
    if len(rest) == 1 and len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return rest[0]
    return raw


def coerce(tokens: Sequence[str], params: Sequence[Param], tails: Optional[Sequence[str]] = None) -> List[Any]:
    """
    Converts string tokens into typed values for the given signature.

    Vector parameters consume one token per component. Omitted trailing
    parameters take their defaults. Nothing is returned unless every token
    converts, so a handler never sees a partially applied call.

    Args:
        tokens: The argument tokens.
        params: The command's parameter signature.
        tails: Optional raw source text from each token to the end of the
            line (see `parser.raw_tails`); a greedy parameter takes it verbatim.

    Raises:
        ArityMismatch: if the token count does not fit the signature.
        ArgumentTypeError: if a token cannot be parsed as its declared type.
    """
    minimum, maximum = arity_bounds(params)
    given = len(tokens)
    if given < minimum or (maximum >= 0 and given > maximum):
        raise ArityMismatch(minimum, maximum, given)

    values: List[Any] = []
    pos = 0
    for param in params:
        if pos >= given:
            values.append(param.default)
            continue

        if param.greedy:
            values.append(greedy_value(tokens, pos, tails))
            pos = given
            continue

        width = param.type.width
        chunk = tokens[pos:pos + width]
        if len(chunk) < width:
            # A vector cut short by the end of the line.
            raise ArityMismatch(minimum, maximum, given)

        if param.type in _VECTOR_TYPES:
            components = []
            for offset, raw in enumerate(chunk):
                try:
                    components.append(parse_float(raw))
                except ValueError:
                    raise ArgumentTypeError(pos + offset, param.type.value, raw) from None
            values.append(_VECTOR_TYPES[param.type](*components))
        elif param.type is ParamType.TEXT:
            values.append(chunk[0])
        else:
            raw = chunk[0]
            try:
                values.append(_SCALAR_PARSERS[param.type](raw))
            except ValueError:
                raise ArgumentTypeError(pos, param.type.value, raw) from None
        pos += width

    return values
