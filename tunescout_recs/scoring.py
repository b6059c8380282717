"""
Preference Scoring Engine
=========================

Turns a user's swipe history and declared preferences into per-category
scores, then scores candidate tracks against them.

Mathematical Formulation:
-------------------------

Category scores:
    genre[G] = Σ likes(G) × w_like - Σ dislikes(G) × w_dislike + w_pref_genre × [G preferred]
    mood[M]  = w_pref_mood × [M preferred]

Swipes on genre-less tracks are attributed to the NO_GENRE bucket. Swipes
never contribute to mood scores.

Candidate score:
    S(T) = genre[T.genre or NO_GENRE] + mood[T.mood]
         + (T.valence - pivot) × w_valence
         + U(-a/2, a/2)

Ordering is score descending, then valence descending. The uniform jitter is
the tertiary tier: it only matters between candidates whose deterministic
terms are close.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Optional

import numpy as np

from .config import DEFAULT_WEIGHTS, NO_GENRE, ScoringWeights
from .models import SwipeEvent, Track
from .utils import as_id_set, is_dislike, is_like

logger = logging.getLogger(__name__)


@dataclass
class TasteProfile:
    """Category scores derived from one request's inputs."""
    genre_scores: Dict[Hashable, float] = field(default_factory=dict)
    mood_scores: Dict[int, float] = field(default_factory=dict)

    # Counts kept for diagnostics only
    like_count: int = 0
    dislike_count: int = 0

    def genre_score(self, genre_id: Optional[int]) -> float:
        key = NO_GENRE if genre_id is None else genre_id
        return self.genre_scores.get(key, 0.0)

    def mood_score(self, mood_id: Optional[int]) -> float:
        if mood_id is None:
            return 0.0
        return self.mood_scores.get(mood_id, 0.0)


@dataclass
class ScoreBreakdown:
    """How a candidate's score was assembled."""
    genre_score: float = 0.0
    mood_score: float = 0.0
    valence_tilt: float = 0.0
    jitter: float = 0.0

    @property
    def preference_score(self) -> float:
        """Score without the random term."""
        return self.genre_score + self.mood_score + self.valence_tilt

    def to_dict(self) -> Dict[str, float]:
        return {
            "genre": round(self.genre_score, 3),
            "mood": round(self.mood_score, 3),
            "valence_tilt": round(self.valence_tilt, 3),
            "jitter": round(self.jitter, 3),
        }


@dataclass
class ScoredTrack:
    track: Track
    score: float
    breakdown: ScoreBreakdown


class ScoringEngine:
    """
    Scores candidate tracks from swipe history and explicit preferences.

    The engine holds only its weights; profiles and random generators are
    passed per call, so one instance can serve concurrent requests.
    """

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        """
        Args:
            weights: Scoring weights configuration
        """
        self.weights = weights

    def build_profile(
        self,
        catalog: Iterable[Track],
        swipes: Optional[Iterable[SwipeEvent]],
        preferred_genre_ids: Optional[Iterable[int]] = None,
        preferred_mood_ids: Optional[Iterable[int]] = None,
    ) -> TasteProfile:
        """
        Compute genre and mood score maps.

        Args:
            catalog: Full track catalog (used to look up swiped tracks)
            swipes: The user's swipe history
            preferred_genre_ids: Explicitly preferred genres
            preferred_mood_ids: Explicitly preferred moods

        Returns:
            TasteProfile with only categories that received a contribution
        """
        tracks_by_id = {t.id: t for t in catalog or ()}
        profile = TasteProfile()

        for swipe in swipes or ():
            if is_like(swipe.direction):
                delta = self.weights.like
                profile.like_count += 1
            elif is_dislike(swipe.direction):
                delta = -self.weights.dislike
                profile.dislike_count += 1
            else:
                continue

            track = tracks_by_id.get(swipe.track_id)
            if track is None:
                continue

            key = NO_GENRE if track.genre_id is None else track.genre_id
            profile.genre_scores[key] = profile.genre_scores.get(key, 0.0) + delta

        for genre_id in as_id_set(preferred_genre_ids):
            profile.genre_scores[genre_id] = (
                profile.genre_scores.get(genre_id, 0.0) + self.weights.preferred_genre
            )

        for mood_id in as_id_set(preferred_mood_ids):
            profile.mood_scores[mood_id] = (
                profile.mood_scores.get(mood_id, 0.0) + self.weights.preferred_mood
            )

        logger.debug(
            "Built taste profile: %d likes, %d dislikes, %d genre buckets, %d mood buckets",
            profile.like_count,
            profile.dislike_count,
            len(profile.genre_scores),
            len(profile.mood_scores),
        )
        return profile

    def score_track(
        self,
        track: Track,
        profile: TasteProfile,
        jitter: float = 0.0,
    ) -> ScoredTrack:
        breakdown = ScoreBreakdown(
            genre_score=profile.genre_score(track.genre_id),
            mood_score=profile.mood_score(track.mood_id),
            valence_tilt=(track.valence - self.weights.valence_pivot) * self.weights.valence_weight,
            jitter=jitter,
        )
        return ScoredTrack(
            track=track,
            score=breakdown.preference_score + jitter,
            breakdown=breakdown,
        )

    def score_candidates(
        self,
        candidates: List[Track],
        profile: TasteProfile,
        rng: np.random.Generator,
    ) -> List[ScoredTrack]:
        """
        Score and order candidates.

        Args:
            candidates: Filtered candidate tracks
            profile: Category scores for this request
            rng: Request-scoped random generator for the jitter term

        Returns:
            Scored tracks sorted by score desc, then valence desc
        """
        if not candidates:
            return []

        half = self.weights.jitter_amplitude / 2
        jitters = rng.uniform(-half, half, size=len(candidates))

        scored = [
            self.score_track(track, profile, float(jitter))
            for track, jitter in zip(candidates, jitters)
        ]
        scored.sort(key=lambda s: (s.score, s.track.valence), reverse=True)
        return scored
