"""
Data Providers
==============

Contracts for the external collaborators that feed the core, plus an
in-memory implementation of all of them.

The core only ever reads through these protocols:
    - CatalogProvider       full track catalog snapshot
    - SwipeHistoryProvider  a user's stored swipes
    - PreferenceProvider    a user's declared preferences
    - CategoryNameResolver  display names for genre/mood/language ids

InMemoryStore can be loaded from a JSON snapshot so the engine can be run
without a database.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from .config import DIMENSIONS
from .models import Preference, SwipeEvent, Track

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot file cannot be read or is malformed."""


class CatalogProvider(Protocol):
    def get_catalog(self) -> List[Track]:
        """Return every track in the catalog."""


class SwipeHistoryProvider(Protocol):
    def get_swipe_history(self, user_id: int) -> List[SwipeEvent]:
        """Return every stored swipe for the user."""


class PreferenceProvider(Protocol):
    def get_preferences(self, user_id: int) -> Preference:
        """Return the user's declared preferences."""


class CategoryNameResolver(Protocol):
    def resolve_name(self, dimension: str, category_id: int) -> Optional[str]:
        """Return the display name of a category, or None when unknown."""


def _name_table(raw: Optional[Mapping[Any, Any]]) -> Dict[int, str]:
    """Accept {"1": "Pop"} or [{"id": 1, "name": "Pop"}] shaped tables."""
    if not raw:
        return {}
    if isinstance(raw, Mapping):
        return {int(k): str(v) for k, v in raw.items()}
    return {int(row["id"]): str(row.get("name") or "") for row in raw}


class InMemoryStore:
    """
    Read-only, in-memory implementation of every provider protocol.

    Attributes:
        tracks: Catalog tracks in insertion order
        swipes: Stored swipe events for all users
        preferences: user id -> Preference
        names: dimension -> {category id -> display name}
    """

    def __init__(
        self,
        tracks: Optional[Iterable[Track]] = None,
        swipes: Optional[Iterable[SwipeEvent]] = None,
        preferences: Optional[Mapping[int, Preference]] = None,
        names: Optional[Mapping[str, Mapping[int, str]]] = None,
    ):
        self.tracks = list(tracks or ())
        self.swipes = list(swipes or ())
        self.preferences = dict(preferences or {})
        self.names = {dim: dict((names or {}).get(dim) or {}) for dim in DIMENSIONS}

    def get_catalog(self) -> List[Track]:
        return list(self.tracks)

    def get_swipe_history(self, user_id: int) -> List[SwipeEvent]:
        return [s for s in self.swipes if s.user_id == user_id]

    def get_preferences(self, user_id: int) -> Preference:
        return self.preferences.get(user_id, Preference())

    def resolve_name(self, dimension: str, category_id: int) -> Optional[str]:
        return self.names.get(dimension, {}).get(category_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryStore":
        """
        Build a store from snapshot data.

        Args:
            data: Mapping with "tracks", "swipes", "preferences", "users",
                "genres", "moods" and "languages" entries (all optional)

        Raises:
            SnapshotError: If a row is missing required fields or has bad values
        """
        try:
            tracks = [Track.from_dict(row) for row in data.get("tracks") or ()]
            swipes = [SwipeEvent.from_dict(row) for row in data.get("swipes") or ()]

            no_explicit = {
                int(u["id"]): bool(u.get("no_explicit", u.get("noExplicit")))
                for u in data.get("users") or ()
            }
            rows_by_user: Dict[int, List[Mapping[str, Any]]] = {}
            for row in data.get("preferences") or ():
                user_id = int(row.get("user_id", row.get("userId")))
                rows_by_user.setdefault(user_id, []).append(row)

            preferences = {
                user_id: Preference.from_rows(rows_by_user.get(user_id), no_explicit.get(user_id))
                for user_id in set(rows_by_user) | set(no_explicit)
            }

            names = {
                "genre": _name_table(data.get("genres")),
                "mood": _name_table(data.get("moods")),
                "language": _name_table(data.get("languages")),
            }
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"Malformed snapshot: {e}") from e

        logger.debug(
            "Loaded snapshot: %d tracks, %d swipes, %d preference sets",
            len(tracks),
            len(swipes),
            len(preferences),
        )
        return cls(tracks, swipes, preferences, names)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryStore":
        """
        Load a store from a JSON snapshot file.

        Raises:
            SnapshotError: If the file is missing, unreadable or malformed
        """
        snapshot = Path(path)
        try:
            with open(snapshot, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Cannot read snapshot {snapshot}: {e}") from e

        if not isinstance(data, Mapping):
            raise SnapshotError(f"Snapshot {snapshot} must contain a JSON object")
        return cls.from_dict(data)
