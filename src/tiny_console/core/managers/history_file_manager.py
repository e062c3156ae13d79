# src/tiny_console/core/managers/history_file_manager.py
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from tiny_console.model import HistoryEntry

logger = logging.getLogger(__name__)

_COMMAND_LINE_PATTERN = re.compile(r"^\+(.*)$")
_TIMESTAMP_LINE_PATTERN = re.compile(
    r"^#\s*(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})?)\s*$"
)


class HistoryFileManager:
    """
    Reads and writes the console history file.

    The file uses prompt_toolkit's FileHistory layout: a `# <timestamp>` line
    followed by one `+<command>` line per command line, entries separated by
    a blank line. Writes go through a temp file and an atomic replace.
    """

    def __init__(self, history_file: Path):
        self.history_file = Path(history_file)

    def load(self) -> List[HistoryEntry]:
        """Parses the history file into entries, oldest first."""
        if not self.history_file.exists():
            return []
        try:
            content = self.history_file.read_text(encoding='utf-8').splitlines()
        except OSError as e:
            logger.error("Failed to read history file %s: %s", self.history_file, e)
            return []

        entries: List[HistoryEntry] = []
        current_lines: List[str] = []
        last_ts = datetime.now(timezone.utc)

        def commit():
            nonlocal current_lines
            if current_lines:
                entries.append(HistoryEntry(
                    command="\n".join(current_lines), order=len(entries), timestamp=last_ts
                ))
                current_lines = []

        for line in content:
            ts_match = _TIMESTAMP_LINE_PATTERN.match(line.strip())
            cmd_match = _COMMAND_LINE_PATTERN.match(line)
            if ts_match:
                commit()
                ts_text = ts_match.group(1)
                if ts_text.endswith('Z'):
                    ts_text = ts_text[:-1] + '+00:00'
                try:
                    last_ts = datetime.fromisoformat(ts_text)
                except ValueError:
                    last_ts = datetime.now(timezone.utc)
            elif cmd_match:
                current_lines.append(cmd_match.group(1))
            else:
                commit()
        commit()

        logger.debug("Loaded %d history entries from %s", len(entries), self.history_file)
        return entries

    def save(self, entries: Iterable[HistoryEntry]) -> bool:
        """Rewrites the history file with `entries`. Returns False on failure."""
        temp_path = None
        try:
            self.history_file.parent.mkdir(parents=True, exist_ok=True)
            content = "".join(e.format_for_file() for e in entries)

            fd, temp_path_str = tempfile.mkstemp(
                dir=self.history_file.parent,
                prefix=f"{self.history_file.name}.",
                suffix=".tmp"
            )
            temp_path = Path(temp_path_str)
            with os.fdopen(fd, "w", encoding="utf-8", newline='\n') as f:
                f.write(content)

            os.replace(temp_path, self.history_file)
            logger.debug("History saved to %s", self.history_file)
            return True

        except OSError as e:
            logger.error("Failed to write history file %s: %s", self.history_file, e, exc_info=True)
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            return False
