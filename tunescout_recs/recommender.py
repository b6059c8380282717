"""
Main Recommendation Engine
==========================

Ranks unseen tracks for a user's next swipe session:
1. Filter the catalog to candidates
2. Pick a mode: cold start (no signal) or scored
3. Cold start: uniform random permutation
4. Scored: score, order, deduplicate, truncate
5. Exploration shuffle of everything below the anchors

RecommendationService wires the engine to the catalog, history and
preference providers and applies the catalog fallback used by the swipe deck.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np

from .candidates import CandidateFilter, swiped_track_ids
from .config import (
    ANONYMOUS_USER_ID,
    DEFAULT_RANKING_CONFIG,
    DEFAULT_WEIGHTS,
    DISLIKE,
    NUM_RECOMMENDATIONS,
    RankingConfig,
    ScoringWeights,
)
from .models import Preference, SwipeEvent, Track
from .providers import CatalogProvider, PreferenceProvider, SwipeHistoryProvider
from .scoring import ScoringEngine
from .utils import as_id_set, make_rng

logger = logging.getLogger(__name__)

Seed = Union[int, np.random.Generator, None]


@dataclass
class RecommendationOutput:
    """Complete recommendation output for one user request."""
    user_id: int
    mode: str
    tracks: List[Track]
    fallback: bool = False
    swipe_count: int = 0

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "mode": self.mode,
            "fallback": self.fallback,
            "swipe_count": self.swipe_count,
            "tracks": [t.to_dict() for t in self.tracks],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def is_cold_start(
    swipes: Optional[Iterable[SwipeEvent]],
    preferred_genre_ids: Optional[Iterable[int]] = None,
    preferred_mood_ids: Optional[Iterable[int]] = None,
) -> bool:
    """No swipe history and no declared genre or mood preference."""
    return not swipes and not as_id_set(preferred_genre_ids) and not as_id_set(preferred_mood_ids)


class RecommendationEngine:
    """
    Orders candidate tracks for a swipe session.

    Usage:
        engine = RecommendationEngine()
        tracks = engine.recommend(catalog, swipes, preferred_genre_ids=[3], max_results=20)
    """

    COLD_START = "cold_start"
    SCORED = "scored"

    def __init__(
        self,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        ranking_config: RankingConfig = DEFAULT_RANKING_CONFIG,
    ):
        """
        Initialize recommendation engine.

        Args:
            weights: Scoring weights configuration
            ranking_config: Anchor count and default result size
        """
        self.scorer = ScoringEngine(weights)
        self.candidate_filter = CandidateFilter()
        self.ranking_config = ranking_config

    def recommend(
        self,
        catalog: Optional[Iterable[Track]],
        swipes: Optional[Iterable[SwipeEvent]] = None,
        no_explicit: bool = False,
        language_id: Optional[int] = None,
        preferred_genre_ids: Optional[Iterable[int]] = None,
        preferred_mood_ids: Optional[Iterable[int]] = None,
        max_results: Optional[int] = None,
        rng: Seed = None,
    ) -> List[Track]:
        """
        Rank unseen tracks.

        Args:
            catalog: Full track catalog
            swipes: The user's merged swipe history
            no_explicit: Exclude explicit tracks
            language_id: Required language, or None for any
            preferred_genre_ids: Declared genre preferences
            preferred_mood_ids: Declared mood preferences
            max_results: Result size (config default when None)
            rng: Generator or seed for this request; fresh entropy when None

        Returns:
            Up to max_results distinct tracks, none of them already swiped
        """
        if max_results is None:
            max_results = self.ranking_config.max_results
        if max_results <= 0:
            return []

        catalog = list(catalog or ())
        swipes = list(swipes or ())
        rng = make_rng(rng)

        candidates = self.candidate_filter.filter(
            catalog,
            swiped_track_ids(swipes),
            no_explicit=no_explicit,
            language_id=language_id,
        )
        if not candidates:
            logger.debug("No candidates left after filtering %d catalog tracks", len(catalog))
            return []

        if is_cold_start(swipes, preferred_genre_ids, preferred_mood_ids):
            logger.debug("Cold start: shuffling %d candidates", len(candidates))
            return self._cold_start(candidates, max_results, rng)

        profile = self.scorer.build_profile(
            catalog, swipes, preferred_genre_ids, preferred_mood_ids
        )
        scored = self.scorer.score_candidates(candidates, profile, rng)

        ranked = []
        seen = set()
        for item in scored:
            if item.track.id in seen:
                continue
            seen.add(item.track.id)
            ranked.append(item.track)
            if len(ranked) >= max_results:
                break

        logger.debug("Scored %d candidates, returning %d", len(scored), len(ranked))
        return self._explore_tail(ranked, rng)

    def mode_for(
        self,
        swipes: Optional[Iterable[SwipeEvent]],
        preferred_genre_ids: Optional[Iterable[int]] = None,
        preferred_mood_ids: Optional[Iterable[int]] = None,
    ) -> str:
        if is_cold_start(list(swipes or ()), preferred_genre_ids, preferred_mood_ids):
            return self.COLD_START
        return self.SCORED

    def _cold_start(
        self,
        candidates: List[Track],
        max_results: int,
        rng: np.random.Generator,
    ) -> List[Track]:
        """Uniform random sample without replacement, in random order."""
        unique = []
        seen = set()
        for track in candidates:
            if track.id not in seen:
                seen.add(track.id)
                unique.append(track)

        order = rng.permutation(len(unique))[:max_results]
        return [unique[i] for i in order]

    def _explore_tail(self, ranked: List[Track], rng: np.random.Generator) -> List[Track]:
        """
        Keep the anchors in place and shuffle the rest.

        Args:
            ranked: Deduplicated, truncated ranking
            rng: Request-scoped random generator

        Returns:
            New list with the same tracks
        """
        anchors = max(self.ranking_config.anchor_count, 0)
        if len(ranked) <= anchors:
            return list(ranked)

        tail = ranked[anchors:]
        order = rng.permutation(len(tail))
        return ranked[:anchors] + [tail[i] for i in order]


class RecommendationService:
    """
    Per-user recommendations backed by the external data providers.

    Usage:
        store = InMemoryStore.from_json("snapshot.json")
        service = RecommendationService(store, store, store)
        output = service.recommend_for_user(7)
        print(output.to_json())
    """

    def __init__(
        self,
        catalog_provider: CatalogProvider,
        history_provider: SwipeHistoryProvider,
        preference_provider: PreferenceProvider,
        engine: Optional[RecommendationEngine] = None,
    ):
        self.catalog_provider = catalog_provider
        self.history_provider = history_provider
        self.preference_provider = preference_provider
        self.engine = engine or RecommendationEngine()

    def merged_history(
        self,
        user_id: Optional[int],
        session_swipes: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> List[SwipeEvent]:
        """
        Merge stored history with not-yet-persisted session swipes.

        Session swipes are stamped with the requesting user's id, or the
        anonymous id when nobody is logged in. A session swipe without a
        direction counts as a dislike.
        """
        stored = []
        if user_id is not None:
            stored = list(self.history_provider.get_swipe_history(user_id) or ())

        owner = ANONYMOUS_USER_ID if user_id is None else user_id
        session = [
            SwipeEvent.from_dict(row, user_id=owner, default_direction=DISLIKE)
            for row in session_swipes or ()
        ]
        return stored + session

    def recommend_for_user(
        self,
        user_id: Optional[int],
        session_swipes: Optional[Iterable[Dict[str, Any]]] = None,
        max_results: int = NUM_RECOMMENDATIONS,
        rng: Seed = None,
    ) -> RecommendationOutput:
        """
        Generate the next swipe deck for a user.

        Args:
            user_id: Logged-in user id, or None for an anonymous visitor
            session_swipes: Ephemeral swipe payloads from the current session
            max_results: Deck size
            rng: Generator or seed for this request

        Returns:
            RecommendationOutput; falls back to the (explicit-filtered) catalog
            when ranking yields nothing
        """
        catalog = list(self.catalog_provider.get_catalog() or ())
        swipes = self.merged_history(user_id, session_swipes)

        if user_id is not None:
            preference = self.preference_provider.get_preferences(user_id) or Preference()
        else:
            preference = Preference()

        mode = self.engine.mode_for(swipes, preference.genre_ids, preference.mood_ids)
        tracks = self.engine.recommend(
            catalog,
            swipes,
            no_explicit=preference.no_explicit,
            language_id=preference.language_id,
            preferred_genre_ids=preference.genre_ids,
            preferred_mood_ids=preference.mood_ids,
            max_results=max_results,
            rng=rng,
        )

        fallback = False
        if not tracks and max_results > 0:
            logger.info(
                "No recommendations found for user %s. Falling back to catalog tracks.",
                user_id,
            )
            tracks = [
                t for t in catalog
                if not (preference.no_explicit and t.is_explicit)
            ][:max_results]
            fallback = True

        return RecommendationOutput(
            user_id=ANONYMOUS_USER_ID if user_id is None else user_id,
            mode=mode,
            tracks=tracks,
            fallback=fallback,
            swipe_count=len(swipes),
        )
