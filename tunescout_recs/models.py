"""
Data Model
==========

Plain data carried through the recommendation and timeline paths:

    1. Track       - catalog entry (owned by the catalog, never mutated here)
    2. SwipeEvent  - a like/dislike decision on a track
    3. Preference  - a user's declared genre/mood/language affinities
    4. TopItem / TimelineResult - computed taste summaries

Each type can be built from a plain mapping, so catalog rows, JSON snapshots
and session payloads all enter the core the same way.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from .config import DEFAULT_VALENCE
from .utils import as_id_set, naive_utc, optional_int, parse_timestamp


def _pick(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in row (snake_case first, then camelCase)."""
    for key in keys:
        if key in row:
            return row[key]
    return default


@dataclass(frozen=True)
class Track:
    """A catalog track as seen by the ranking engine."""
    id: int

    # Category references (may be missing upstream)
    genre_id: Optional[int] = None
    mood_id: Optional[int] = None
    language_id: Optional[int] = None

    # None means the catalog did not flag it; treated as not explicit
    explicit: Optional[bool] = None

    # Mood positivity in [0, 1]
    valence: float = DEFAULT_VALENCE

    # Display metadata
    name: str = ""
    artist: str = ""
    spotify_uri: str = ""
    preview_url: Optional[str] = None

    @property
    def is_explicit(self) -> bool:
        return bool(self.explicit)

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "Track":
        """
        Build a Track from a catalog row.

        Args:
            row: Mapping with at least an "id" key

        Returns:
            Track with missing valence defaulted to 0.5
        """
        valence = _pick(row, "valence")
        explicit = _pick(row, "explicit")
        return cls(
            id=int(row["id"]),
            genre_id=optional_int(_pick(row, "genre_id", "genreId")),
            mood_id=optional_int(_pick(row, "mood_id", "moodId")),
            language_id=optional_int(_pick(row, "language_id", "languageId")),
            explicit=None if explicit is None else bool(explicit),
            valence=DEFAULT_VALENCE if valence is None else float(valence),
            name=_pick(row, "name", default="") or "",
            artist=_pick(row, "artist", default="") or "",
            spotify_uri=_pick(row, "spotify_uri", "spotifyUri", default="") or "",
            preview_url=_pick(row, "preview_url", "previewUrl"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "artist": self.artist,
            "spotify_uri": self.spotify_uri,
            "preview_url": self.preview_url,
            "explicit": self.explicit,
            "valence": self.valence,
            "genre_id": self.genre_id,
            "mood_id": self.mood_id,
            "language_id": self.language_id,
        }


@dataclass(frozen=True)
class SwipeEvent:
    """A single swipe decision. Direction is compared case-insensitively."""
    user_id: int
    track_id: int
    direction: str
    timestamp: datetime

    @classmethod
    def from_dict(
        cls,
        row: Mapping[str, Any],
        user_id: Optional[int] = None,
        default_direction: Optional[str] = None,
    ) -> "SwipeEvent":
        """
        Build a SwipeEvent from a history row or a session payload.

        Args:
            row: Mapping with track id, direction and timestamp
            user_id: Overrides the row's user id (session swipes carry none)
            default_direction: Used when the row has no direction

        Raises:
            KeyError: If the track id is missing
            ValueError: If the direction or timestamp is missing or invalid
        """
        direction = _pick(row, "direction") or default_direction
        if not direction:
            raise ValueError(f"Swipe on track {_pick(row, 'track_id', 'trackId')} has no direction")
        if user_id is None:
            user_id = int(_pick(row, "user_id", "userId"))
        track_id = _pick(row, "track_id", "trackId")
        if track_id is None:
            raise KeyError("track_id")
        return cls(
            user_id=int(user_id),
            track_id=int(track_id),
            direction=str(direction),
            timestamp=parse_timestamp(_pick(row, "timestamp")),
        )


@dataclass(frozen=True)
class Preference:
    """A user's declared affinities, read-only input to the ranker."""
    genre_ids: FrozenSet[int] = field(default_factory=frozenset)
    mood_ids: FrozenSet[int] = field(default_factory=frozenset)
    language_id: Optional[int] = None
    no_explicit: bool = False

    @classmethod
    def from_rows(
        cls,
        rows: Optional[Iterable[Mapping[str, Any]]],
        no_explicit: Optional[bool] = False,
    ) -> "Preference":
        """
        Collapse stored preference rows into one Preference.

        Each row may carry a genre, a mood and a language id, any of which may
        be null. The first non-null language wins.
        """
        genre_ids = []
        mood_ids = []
        language_id = None
        for row in rows or ():
            genre_ids.append(_pick(row, "genre_id", "genreId"))
            mood_ids.append(_pick(row, "mood_id", "moodId"))
            if language_id is None:
                language_id = optional_int(_pick(row, "language_id", "languageId"))
        return cls(
            genre_ids=as_id_set(genre_ids),
            mood_ids=as_id_set(mood_ids),
            language_id=language_id,
            no_explicit=bool(no_explicit),
        )


@dataclass(frozen=True)
class TopItem:
    """One ranked category in a taste summary."""
    id: int
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "count": self.count}


@dataclass
class TimelineResult:
    """Top categories among a user's liked tracks. Lists are never None."""
    top_genres: List[TopItem] = field(default_factory=list)
    top_moods: List[TopItem] = field(default_factory=list)
    top_languages: List[TopItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "top_genres": [item.to_dict() for item in self.top_genres],
            "top_moods": [item.to_dict() for item in self.top_moods],
            "top_languages": [item.to_dict() for item in self.top_languages],
        }


@dataclass(frozen=True)
class TimelineWindow:
    """Inclusive timestamp bounds; either side may be open."""
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    def contains(self, timestamp: datetime) -> bool:
        timestamp = naive_utc(timestamp)
        if self.from_date is not None and timestamp < naive_utc(self.from_date):
            return False
        if self.to_date is not None and timestamp > naive_utc(self.to_date):
            return False
        return True

    @property
    def is_open(self) -> bool:
        return self.from_date is None and self.to_date is None


@dataclass(frozen=True)
class LikedTrack:
    """A liked track together with the time it was liked."""
    track: Track
    liked_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        data = self.track.to_dict()
        data["liked_at"] = self.liked_at.isoformat()
        return data
