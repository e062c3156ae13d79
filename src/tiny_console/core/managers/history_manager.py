# src/tiny_console/core/managers/history_manager.py
import logging
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from tiny_console.core.services import fuzzy_match_service
from tiny_console.model import FuzzyMatch, HistoryEntry

logger = logging.getLogger(__name__)

DUPLICATE_POLICIES = ("keep", "collapse_consecutive", "move_to_end")


class HistoryBuffer:
    """
    Bounded, ordered log of executed command lines (oldest first).

    Pushing past capacity evicts the oldest entry. How repeated lines are
    stored is governed by `duplicates`:
      - keep:                 every push is stored
      - collapse_consecutive: a push equal to the newest entry is dropped
      - move_to_end:          an earlier equal entry is removed first
    """

    def __init__(self, capacity: int = 1000, duplicates: str = "keep"):
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        if duplicates not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicate policy: {duplicates}")
        self.capacity = capacity
        self.duplicates = duplicates
        self._entries: Deque[HistoryEntry] = deque(maxlen=capacity)
        self._counter = 0
        self.is_dirty = False

    def push(self, line: str, timestamp: Optional[datetime] = None) -> None:
        text = (line or "").strip()
        if not text:
            return

        if self.duplicates == "collapse_consecutive" and self._entries and self._entries[-1].command == text:
            return
        if self.duplicates == "move_to_end":
            for existing in list(self._entries):
                if existing.command == text:
                    self._entries.remove(existing)

        if timestamp is not None:
            entry = HistoryEntry(command=text, order=self._counter, timestamp=timestamp)
        else:
            entry = HistoryEntry(command=text, order=self._counter)
        self._counter += 1
        self._entries.append(entry)
        self.is_dirty = True

    def list(self) -> List[str]:
        """Entry texts, oldest first."""
        return [e.command for e in self._entries]

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self.is_dirty = True
        logger.debug("History buffer cleared.")

    def resize(self, capacity: int) -> None:
        """Changes the capacity, dropping the oldest entries if it shrinks."""
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        if capacity == self.capacity:
            return
        self._entries = deque(self._entries, maxlen=capacity)
        self.capacity = capacity
        logger.debug("History capacity set to %d.", capacity)

    def search_exact(self, substr: str) -> List[str]:
        """Entries containing `substr` (case-insensitive), oldest first."""
        needle = (substr or "").lower()
        return [e.command for e in self._entries if needle in e.command.lower()]

    def search_prefix(self, prefix: str) -> List[str]:
        """Distinct entries starting with `prefix` (case-insensitive), most recent first."""
        needle = (prefix or "").lower()
        seen = set()
        out = []
        for entry in reversed(self._entries):
            text = entry.command
            if text in seen or not text.lower().startswith(needle):
                continue
            seen.add(text)
            out.append(text)
        return out

    def search_fuzzy(self, query: str) -> List[FuzzyMatch]:
        return fuzzy_match_service.rank(query or "", self.list())

    def navigator(self) -> "HistoryNavigator":
        return HistoryNavigator(self.list())

    def __len__(self) -> int:
        return len(self._entries)


class HistoryNavigator:
    """
    Up/down navigation over a snapshot of history.

    Position -1 is the empty "current line" slot; stepping past either end
    wraps through it.
    """

    def __init__(self, entries: List[str]):
        self._entries = list(entries)
        self._idx = -1

    def prev(self) -> str:
        if not self._entries:
            return ""
        self._idx -= 1
        if self._idx < -1:
            self._idx = len(self._entries) - 1
        return self.current()

    def next(self) -> str:
        if not self._entries:
            return ""
        self._idx += 1
        if self._idx >= len(self._entries):
            self._idx = -1
        return self.current()

    def current(self) -> str:
        if 0 <= self._idx < len(self._entries):
            return self._entries[self._idx]
        return ""

    def reset(self, entries: Optional[List[str]] = None) -> None:
        if entries is not None:
            self._entries = list(entries)
        self._idx = -1
