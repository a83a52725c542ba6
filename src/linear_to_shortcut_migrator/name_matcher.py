"""Multi-strategy fuzzy name matching.

Linear uses flat team names ("Education") while Shortcut workspaces often
use hierarchical ones ("Studocu AI - Education", "Studocu AI > Education").
No single rule covers both, so matching runs an ordered list of strategies
and the first hit wins.

Each strategy is a pure function ``(candidate, names) -> index | None``
over the lower-level list of pool names, which keeps them testable in
isolation and lets callers supply their own ordering.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")

Strategy = Callable[[str, Sequence[str]], int | None]

SEPARATORS: tuple[str, ...] = (">", "-")
MIN_KEYWORD_LENGTH = 3


def trailing_segments(name: str) -> list[str]:
    """Trailing segment of ``name`` for each separator it contains (lower-cased)."""
    lowered = name.lower()
    return [lowered.split(sep)[-1].strip() for sep in SEPARATORS if sep in lowered]


def exact(candidate: str, names: Sequence[str]) -> int | None:
    for index, name in enumerate(names):
        if name == candidate:
            return index
    return None


def case_insensitive(candidate: str, names: Sequence[str]) -> int | None:
    wanted = candidate.strip().lower()
    for index, name in enumerate(names):
        if name.lower() == wanted:
            return index
    return None


def trailing_segment_or_containment(candidate: str, names: Sequence[str]) -> int | None:
    """Match "Education" to "Org - Education", or either name containing the other."""
    wanted = candidate.strip().lower()
    if not wanted:
        return None
    for index, name in enumerate(names):
        lowered = name.lower()
        if not lowered:
            continue
        if wanted in trailing_segments(name):
            return index
        if wanted in lowered or lowered in wanted:
            return index
    return None


def last_keyword(candidate: str, names: Sequence[str]) -> int | None:
    """Match on the last meaningful word of the candidate ("Studocu Education" -> "education")."""
    words = [word for word in re.split(r"\s+", candidate.strip().lower()) if len(word) >= MIN_KEYWORD_LENGTH]
    if not words:
        return None
    keyword = words[-1]
    for index, name in enumerate(names):
        for segment in trailing_segments(name):
            if segment and (keyword in segment or segment in keyword):
                return index
        if keyword in name.lower():
            return index
    return None


STRATEGIES: tuple[Strategy, ...] = (exact, case_insensitive, trailing_segment_or_containment, last_keyword)


def match(
    candidate: str,
    pool: Sequence[T],
    *,
    key: Callable[[T], str] = str,
    strategies: Sequence[Strategy] = STRATEGIES,
) -> T | None:
    """Return the first pool entry matched by the first successful strategy.

    Args:
        candidate: Name to look for
        pool: Entries to search
        key: Extracts the comparable name from a pool entry
        strategies: Ordered strategies; defaults to ``STRATEGIES``

    Returns:
        The matched entry, or None when no strategy matches
    """
    names = [key(entry) for entry in pool]
    for strategy in strategies:
        index = strategy(candidate, names)
        if index is not None:
            return pool[index]
    return None
