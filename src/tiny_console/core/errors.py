# src/tiny_console/core/errors.py
from typing import Optional, Sequence


class ConsoleError(Exception):
    """Base class for every error the console recovers from at dispatch time."""


class ParseError(ConsoleError):
    pass


class UnterminatedQuote(ParseError):
    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Unterminated quote in: {line}")


class AliasCycle(ConsoleError):
    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__(
            "Max depth for alias reached. Loop in aliasing? (" + " -> ".join(self.chain) + ")"
        )


class UnknownCommand(ConsoleError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown command: {name}")


class ArityMismatch(ConsoleError):
    def __init__(self, expected_min: int, expected_max: int, given: int):
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.given = given
        if given < expected_min:
            message = "Missing arguments."
        else:
            message = "Too many arguments."
        if expected_min == expected_max:
            expected = str(expected_min)
        elif expected_max < 0:
            expected = f"at least {expected_min}"
        else:
            expected = f"{expected_min}-{expected_max}"
        super().__init__(f"{message} Expected {expected} value(s), got {given}.")


class ArgumentTypeError(ConsoleError):
    """A token could not be converted to the type its parameter declares."""

    def __init__(self, index: int, expected: str, raw: str):
        self.index = index
        self.expected = expected
        self.raw = raw
        super().__init__(f"Argument {index + 1}: expected {expected}, got \"{raw}\".")


class HandlerFailure(ConsoleError):
    """Raised by (or on behalf of) a handler that reports an application-level error."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class RegistrationError(ValueError):
    """Raised synchronously to the caller that tried to register something invalid."""


class ScriptNotFound(FileNotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"File not found: {name}")
