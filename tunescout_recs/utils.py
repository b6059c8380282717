"""
Utility Functions
=================

Common utilities used across the TuneScout recommendation core.
"""

from datetime import date, datetime, time, timezone
from typing import Any, FrozenSet, Iterable, Optional, Union

import numpy as np

from .config import DISLIKE, LIKE


def normalize_direction(direction: Optional[str]) -> str:
    """
    Normalize a swipe direction for comparison.

    Args:
        direction: Raw direction as recorded ("like", "Like", " DISLIKE ", ...)

    Returns:
        Lowercased, stripped direction, or "" when missing
    """
    if not direction:
        return ""
    return str(direction).strip().lower()


def is_like(direction: Optional[str]) -> bool:
    return normalize_direction(direction) == LIKE


def is_dislike(direction: Optional[str]) -> bool:
    return normalize_direction(direction) == DISLIKE


def naive_utc(value: datetime) -> datetime:
    """Drop the offset from an aware datetime after converting it to UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a swipe timestamp.

    Accepts datetime objects, dates (interpreted as midnight) and ISO-8601
    strings. A trailing "Z" is accepted as UTC. Offset-aware values come back
    as naive UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        return naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return naive_utc(datetime.fromisoformat(text))
    raise ValueError(f"Invalid timestamp: {value!r}")


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Parse an optional calendar date (YYYY-MM-DD or a datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def as_id_set(ids: Optional[Iterable[Any]]) -> FrozenSet[int]:
    """Coerce an optional iterable of ids to a frozenset of ints, skipping None."""
    if not ids:
        return frozenset()
    return frozenset(int(i) for i in ids if i is not None)


def optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def make_rng(seed: Union[int, np.random.Generator, None] = None) -> np.random.Generator:
    """
    Build a random generator for a single request.

    Args:
        seed: Existing generator (returned as is), an integer seed, or None
            for fresh OS entropy

    Returns:
        numpy Generator owned by the caller
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)
