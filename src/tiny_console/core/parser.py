# src/tiny_console/core/parser.py
from __future__ import annotations
from typing import List, NamedTuple, Optional, Tuple

from tiny_console.core.errors import UnterminatedQuote


class Token(NamedTuple):
    """A token's text plus the [start, end) span it covers in the source line."""
    text: str
    start: int
    end: int


def scan(line: str, max_tokens: Optional[int] = None) -> List[Token]:
    """
    Splits a line into tokens, keeping the source span of each one.

    Only double quotes group words. Inside quotes `\\"` is a literal quote and
    `\\\\` a literal backslash; any other backslash, and every backslash outside
    quotes, is kept as is (so `C:\\scripts\\boot` survives unquoted).

    Args:
        line: The raw line.
        max_tokens: Stop after this many tokens; the rest of the line is not looked at.

    Raises:
        UnterminatedQuote: if a quote is opened and never closed.
    """
    line = line or ""
    tokens: List[Token] = []
    i, n = 0, len(line)
    while i < n:
        if max_tokens is not None and len(tokens) >= max_tokens:
            break
        if line[i].isspace():
            i += 1
            continue

        start = i
        chars: List[str] = []
        while i < n and not line[i].isspace():
            if line[i] != '"':
                chars.append(line[i])
                i += 1
                continue
            i += 1
            while True:
                if i >= n:
                    raise UnterminatedQuote(line.strip())
                ch = line[i]
                if ch == '"':
                    i += 1
                    break
                if ch == "\\" and i + 1 < n and line[i + 1] in '"\\':
                    chars.append(line[i + 1])
                    i += 2
                    continue
                chars.append(ch)
                i += 1
        tokens.append(Token("".join(chars), start, i))
    return tokens


def tokenize(line: str) -> List[str]:
    """
    Splits a raw command line into tokens.

    Tokens are separated by runs of whitespace. A double-quoted span is a
    single token with the quotes stripped; \\" inside it is a literal quote.
    An empty or whitespace-only line yields no tokens.

    Raises:
        UnterminatedQuote: if a quote is opened and never closed.
    """
    return [t.text for t in scan(line)]


def raw_tails(line: str, tokens: List[Token]) -> List[str]:
    """For each token, the untouched source text from that token to the end of the line."""
    return [line[t.start:].rstrip() for t in tokens]


def split_for_completion(line: str) -> Tuple[List[str], str]:
    """
    Returns (tokens, current_prefix) for a partially typed line.

    Behavior:
      - Trailing whitespace appends an empty token to signal a new one.
      - A malformed (still open) quote falls back to whitespace splitting,
        so completion keeps working while the user is typing.
    """
    raw = (line or "").lstrip()
    if not raw:
        return [""], ""

    try:
        parts = tokenize(raw)
    except UnterminatedQuote:
        parts = [p.lstrip('"') for p in raw.split()]

    if raw[-1].isspace() or not parts:
        parts.append("")
    return parts, parts[-1]


def join_tokens(tokens: List[str]) -> str:
    """Re-joins tokens into a line, quoting the ones that need it."""
    out = []
    for tok in tokens:
        if tok == "" or any(ch.isspace() or ch == '"' for ch in tok):
            out.append('"' + tok.replace("\\", "\\\\").replace('"', '\\"') + '"')
        else:
            out.append(tok)
    return " ".join(out)
