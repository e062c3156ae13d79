# src/tiny_console/model.py (Console Layer)
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    PLAIN = "plain"
    INFO = "info"
    ERROR = "error"
    WARNING = "warning"
    DEBUG = "debug"


class OutputRecord(BaseModel):
    """A single line of console output. Rendering is up to the front end."""
    severity: Severity = Field(default=Severity.PLAIN)
    text: str = Field(default="")

    def __str__(self) -> str:
        return self.text


class HistoryEntry(BaseModel):
    """
    Represents a single executed command line, including its insertion order
    and the metadata timestamp used by the history file.
    """
    command: str = Field(description="The executed command text.")
    order: int = Field(default=0, description="Monotonic insertion counter.")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="The execution timestamp."
    )

    def format_for_file(self) -> str:
        """
        Formats the entry into the prompt_toolkit FileHistory format:
        \n# <timestamp>\n+<line>\n (one + line per line of the command)
        """
        return f"\n# {self.timestamp.isoformat()}\n" + "".join(
            f"+{line}\n" for line in self.command.splitlines()
        )


class CandidateKind(str, Enum):
    COMMAND = "command"
    SUBCOMMAND = "subcommand"
    ALIAS = "alias"
    ARGUMENT = "argument"
    HISTORY = "history"
    SUGGESTION = "suggestion"


class CompletionCandidate(BaseModel):
    """
    One autocomplete suggestion.

    `text` is the value for the token under the cursor, `line` is the whole
    input line once the candidate is accepted.
    """
    text: str
    line: str
    kind: CandidateKind
    description: Optional[str] = None


class FuzzyMatch(BaseModel):
    """A history entry that matched a fuzzy query, with its ranking data."""
    entry: str
    score: float
    span: int
    start: int
    order: int


# --- Configuration ---

class HistoryOptions(BaseModel):
    capacity: int = Field(default=1000, ge=1)
    duplicates: Literal["keep", "collapse_consecutive", "move_to_end"] = "keep"
    persist: bool = True
    file: Optional[str] = None


class AutocompleteOptions(BaseModel):
    use_history_with_matches: bool = True
    h_max_len: int = Field(default=10, ge=1)


class AliasOptions(BaseModel):
    precedence: Literal["alias", "command"] = "alias"
    max_depth: int = Field(default=16, ge=1)


class SuggestionOptions(BaseModel):
    enabled: bool = True
    max_edit_distance: int = Field(default=2, ge=0)


class AutoexecOptions(BaseModel):
    script: str = "autoexec.lcs"
    auto_create: bool = True


class GreetOptions(BaseModel):
    enabled: bool = True
    message: str = "Tiny Console (type 'help' for commands)"


class DebugOptions(BaseModel):
    level: str = "WARNING"


class ConsoleOptions(BaseModel):
    """Validated view of settings.json, handed to the ConsoleEngine explicitly."""
    aliases: Dict[str, str] = Field(
        default_factory=lambda: {"exit": "quit", "source": "exec", "usage": "help"}
    )
    release_build: bool = False
    commands_disabled_in_release: List[str] = Field(default_factory=lambda: ["eval"])
    sparse_mode: bool = False
    history: HistoryOptions = Field(default_factory=HistoryOptions)
    autocomplete: AutocompleteOptions = Field(default_factory=AutocompleteOptions)
    alias: AliasOptions = Field(default_factory=AliasOptions)
    suggestions: SuggestionOptions = Field(default_factory=SuggestionOptions)
    autoexec: AutoexecOptions = Field(default_factory=AutoexecOptions)
    greet: GreetOptions = Field(default_factory=GreetOptions)
    debug: DebugOptions = Field(default_factory=DebugOptions)
