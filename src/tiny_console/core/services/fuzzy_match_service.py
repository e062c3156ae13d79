# src/tiny_console/core/services/fuzzy_match_service.py
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from tiny_console.model import FuzzyMatch

logger = logging.getLogger(__name__)


def match_span(query: str, target: str) -> Optional[Tuple[int, int]]:
    """
    Finds the tightest window of `target` that contains `query` as a
    subsequence (case-insensitive).

    Returns:
        (start, span) of the best window, or None when `query` is not a
        subsequence of `target`. Among equally tight windows the earliest wins.
    """
    q = query.lower()
    t = target.lower()
    if not q:
        return 0, 0

    best: Optional[Tuple[int, int]] = None
    for start, ch in enumerate(t):
        if ch != q[0]:
            continue
        qi = 0
        end = start
        while end < len(t) and qi < len(q):
            if t[end] == q[qi]:
                qi += 1
            end += 1
        if qi < len(q):
            # No later start can complete the subsequence either.
            break
        span = end - start
        if best is None or span < best[1]:
            best = (start, span)
    return best


# Largest share of the score a late match start can cost.
START_WEIGHT = 0.1


def score_entry(query: str, target: str) -> Optional[Tuple[float, int, int]]:
    """
    (score, start, span) for one entry.

    The score is the tightness len(query) / span (1.0 for a contiguous match),
    reduced by up to START_WEIGHT the further into the entry the match starts.
    A contiguous match at position 0 scores 1.0.
    """
    found = match_span(query, target)
    if found is None:
        return None
    start, span = found
    if span == 0:
        return 0.0, 0, 0
    tightness = len(query) / span
    return tightness * (1.0 - START_WEIGHT * start / len(target)), start, span


def rank(query: str, entries: Sequence[str]) -> List[FuzzyMatch]:
    """
    Scores `entries` (oldest first) against `query`.

    Tighter spans and earlier starts score higher (see score_entry); ties go
    to the earlier start, then to the more recent entry. Repeated entries are
    reported once, at their most recent position. An empty query returns
    every entry, most recent first.
    """
    latest = {}
    for order, entry in enumerate(entries):
        latest[entry] = order

    matches: List[FuzzyMatch] = []
    for entry, order in latest.items():
        if not query:
            matches.append(FuzzyMatch(entry=entry, score=0.0, span=0, start=0, order=order))
            continue
        scored = score_entry(query, entry)
        if scored is None:
            continue
        score, start, span = scored
        matches.append(FuzzyMatch(entry=entry, score=score, span=span, start=start, order=order))

    matches.sort(key=lambda m: (-m.score, m.start, -m.order))
    return matches


def osa_distance(a: str, b: str) -> int:
    """Optimal String Alignment distance: edits plus adjacent transpositions."""
    rows, cols = len(a) + 1, len(b) + 1
    d = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        d[i][0] = i
    for j in range(cols):
        d[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            d[i][j] = min(
                d[i - 1][j] + 1,
                d[i][j - 1] + 1,
                d[i - 1][j - 1] + cost,
            )
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                d[i][j] = min(d[i][j], d[i - 2][j - 2] + 1)
    return d[rows - 1][cols - 1]


def closest_match(needle: str, haystack: Iterable[str], max_distance: int = 2) -> Optional[str]:
    """Returns the closest element of `haystack` within `max_distance` edits, or None."""
    best = None
    best_distance = max_distance + 1
    for candidate in haystack:
        distance = osa_distance(needle, candidate)
        if distance < best_distance:
            best, best_distance = candidate, distance
    if best is not None:
        logger.debug("Closest match for '%s': '%s' (distance %d)", needle, best, best_distance)
    return best
