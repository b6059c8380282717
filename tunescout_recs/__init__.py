"""
TuneScout Recs - Swipe-driven Music Discovery Core
==================================================

Ranks unseen tracks from a user's like/dislike swipes and declared
preferences, and summarizes liked tracks into a taste timeline.

Modules:
    - config: Configuration and constants
    - models: Track, swipe, preference and timeline data types
    - providers: Catalog/history/preference contracts and an in-memory store
    - scoring: Preference scoring engine
    - candidates: Candidate filtering
    - recommender: Ranking engine and per-user recommendation service
    - timeline: Taste timeline aggregation
    - cli: Command-line interface
"""

from .models import Preference, SwipeEvent, TimelineResult, TopItem, Track
from .recommender import RecommendationEngine, RecommendationService
from .timeline import TimelineAggregator

__version__ = "1.0.0"
__author__ = "TuneScout Team"

__all__ = [
    "Preference",
    "RecommendationEngine",
    "RecommendationService",
    "SwipeEvent",
    "TimelineAggregator",
    "TimelineResult",
    "TopItem",
    "Track",
]
