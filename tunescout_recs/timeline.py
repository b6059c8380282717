"""
Taste Timeline Aggregator
=========================

Summarizes what a user liked, optionally within a date window:
1. Keep the user's "like" swipes inside the window
2. Join each swipe to its track
3. Count likes per genre, mood and language independently
4. Keep the top N per dimension and attach display names

Counts tie-break on ascending category id so results are reproducible.
Name lookups never fail the request: an unknown id, or a resolver error,
yields a synthesized label such as "Genre 7".
"""

import calendar
import logging
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from .config import (
    DEFAULT_TIMELINE_CONFIG,
    DIMENSIONS,
    GENRE,
    LANGUAGE,
    MOOD,
    PERIODS,
    TimelineConfig,
)
from .models import LikedTrack, SwipeEvent, TimelineResult, TimelineWindow, TopItem, Track
from .providers import CatalogProvider, CategoryNameResolver, SwipeHistoryProvider
from .utils import is_like, naive_utc

logger = logging.getLogger(__name__)

_CATEGORY_GETTERS: Dict[str, Callable[[Track], Optional[int]]] = {
    GENRE: lambda t: t.genre_id,
    MOOD: lambda t: t.mood_id,
    LANGUAGE: lambda t: t.language_id,
}


class InvalidWindowError(ValueError):
    """Raised for a date window that cannot be shown (reversed or in the future)."""


def _months_before(moment: datetime, months: int) -> datetime:
    """Same clock time `months` calendar months earlier, clamped to month end."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_window(
    period: str = "all",
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> TimelineWindow:
    """
    Turn a period name or calendar dates into timestamp bounds.

    Explicit dates win over the period. They cover whole days: the window
    starts at the beginning of from_date and ends at the end of to_date
    (or the end of today when only from_date is given).

    Args:
        period: "all", "week" (last 7 days) or "month" (last calendar month)
        from_date: First day to include
        to_date: Last day to include
        now: Reference time (defaults to the current local time)

    Returns:
        TimelineWindow with inclusive bounds

    Raises:
        InvalidWindowError: If to_date precedes from_date, a date lies in the
            future, or the period is unknown
    """
    now = now or datetime.now()
    today = now.date()

    if from_date and to_date and to_date < from_date:
        raise InvalidWindowError(f"to_date {to_date} is before from_date {from_date}")
    for bound in (from_date, to_date):
        if bound and bound > today:
            raise InvalidWindowError(f"{bound} is in the future")

    if from_date or to_date:
        start = datetime.combine(from_date, time.min) if from_date else None
        end = datetime.combine(to_date or today, time.max)
        return TimelineWindow(start, end)

    period = (period or "all").lower()
    if period not in PERIODS:
        raise InvalidWindowError(f"Unknown period {period!r}")
    if period == "week":
        return TimelineWindow(now - timedelta(days=7), None)
    if period == "month":
        return TimelineWindow(_months_before(now, 1), None)
    return TimelineWindow()


class TimelineAggregator:
    """
    Computes top genres, moods and languages among a user's liked tracks.

    Usage:
        store = InMemoryStore.from_json("snapshot.json")
        aggregator = TimelineAggregator(store, store, store)
        result = aggregator.get_timeline(7, top_n=10)
    """

    def __init__(
        self,
        history_provider: SwipeHistoryProvider,
        catalog_provider: CatalogProvider,
        name_resolver: CategoryNameResolver,
        config: TimelineConfig = DEFAULT_TIMELINE_CONFIG,
    ):
        self.history_provider = history_provider
        self.catalog_provider = catalog_provider
        self.name_resolver = name_resolver
        self.config = config

    def get_timeline(
        self,
        user_id: int,
        top_n: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> TimelineResult:
        """
        Build the taste timeline for a user.

        Args:
            user_id: User whose likes are summarized
            top_n: Groups kept per dimension (config default when None)
            from_date: Inclusive lower bound on swipe timestamps
            to_date: Inclusive upper bound on swipe timestamps

        Returns:
            TimelineResult; empty lists when the user has no likes
        """
        if top_n is None:
            top_n = self.config.top_n

        window = TimelineWindow(from_date, to_date)
        liked = [track for track, _ in self._liked_in_window(user_id, window)]
        logger.debug("Timeline for user %s: %d likes in window", user_id, len(liked))

        return TimelineResult(
            top_genres=self._top_items(GENRE, liked, top_n),
            top_moods=self._top_items(MOOD, liked, top_n),
            top_languages=self._top_items(LANGUAGE, liked, top_n),
        )

    def liked_tracks(
        self,
        user_id: int,
        dimension: str,
        category_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> List[LikedTrack]:
        """
        List the liked tracks behind one timeline entry, newest like first.

        Raises:
            ValueError: If dimension is not genre, mood or language
        """
        if dimension not in _CATEGORY_GETTERS:
            raise ValueError(f"Unknown dimension {dimension!r}, expected one of {DIMENSIONS}")
        get_category = _CATEGORY_GETTERS[dimension]

        latest: Dict[int, LikedTrack] = {}
        for track, swipe in self._liked_in_window(user_id, TimelineWindow(from_date, to_date)):
            if get_category(track) != category_id:
                continue
            liked_at = naive_utc(swipe.timestamp)
            current = latest.get(track.id)
            if current is None or liked_at > current.liked_at:
                latest[track.id] = LikedTrack(track=track, liked_at=liked_at)

        return sorted(latest.values(), key=lambda lt: lt.liked_at, reverse=True)

    def _liked_in_window(
        self,
        user_id: int,
        window: TimelineWindow,
    ) -> List[Tuple[Track, SwipeEvent]]:
        """Liked swipes inside the window joined to their tracks."""
        tracks_by_id = {t.id: t for t in self.catalog_provider.get_catalog() or ()}
        joined = []
        for swipe in self.history_provider.get_swipe_history(user_id) or ():
            if swipe.user_id != user_id or not is_like(swipe.direction):
                continue
            if not window.contains(swipe.timestamp):
                continue
            track = tracks_by_id.get(swipe.track_id)
            if track is not None:
                joined.append((track, swipe))
        return joined

    def _top_items(self, dimension: str, liked: List[Track], top_n: int) -> List[TopItem]:
        if top_n <= 0:
            return []

        get_category = _CATEGORY_GETTERS[dimension]
        counts = Counter(
            category_id
            for category_id in (get_category(t) for t in liked)
            if category_id is not None
        )
        ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:top_n]
        return [
            TopItem(id=category_id, name=self._resolve_name(dimension, category_id), count=count)
            for category_id, count in ranked
        ]

    def _resolve_name(self, dimension: str, category_id: int) -> str:
        try:
            name = self.name_resolver.resolve_name(dimension, category_id)
        except Exception as e:
            logger.warning("Name lookup failed for %s %s: %s", dimension, category_id, e)
            name = None
        if not name:
            return self.config.fallback_label(dimension, category_id)
        return name
