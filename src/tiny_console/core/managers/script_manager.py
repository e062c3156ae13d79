# src/tiny_console/core/managers/script_manager.py
import logging
from typing import Callable, Iterable, List

from tiny_console.model import OutputRecord

logger = logging.getLogger(__name__)

ExecuteFn = Callable[..., List[OutputRecord]]


def is_skippable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


class ScriptExecutor:
    """
    Replays lines through the dispatcher, skipping blank lines and `#`
    comments. A failing line does not stop the ones after it.
    """

    def __init__(self, execute: ExecuteFn):
        self._execute = execute

    def run(self, lines: Iterable[str], silent: bool = False) -> List[OutputRecord]:
        records: List[OutputRecord] = []
        executed = 0
        for line in lines:
            if is_skippable(line):
                continue
            records.extend(self._execute(line.strip(), echo=not silent, record_history=not silent))
            executed += 1
        logger.debug("Script finished: %d line(s) executed.", executed)
        return records
