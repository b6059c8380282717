"""
Configuration and constants for the TuneScout recommendation core.
"""
import os
from dataclasses import dataclass
from typing import Dict, Optional

# =============================================================================
# SWIPE DIRECTIONS
# =============================================================================
LIKE = "like"
DISLIKE = "dislike"

# Session swipes recorded before login carry this user id
ANONYMOUS_USER_ID = 0

# =============================================================================
# TRACK DEFAULTS
# =============================================================================
DEFAULT_VALENCE = 0.5

# Score bucket for tracks without a genre; never equal to an integer genre id
NO_GENRE = "no_genre"

# =============================================================================
# SCORING WEIGHTS
# =============================================================================
@dataclass(frozen=True)
class ScoringWeights:
    """Weights for the preference scoring function."""
    like: float = 1.0
    dislike: float = 0.8

    # Flat bonus per explicitly preferred category
    preferred_genre: float = 5.0
    preferred_mood: float = 5.0

    # Continuous mood tilt: (valence - pivot) * weight
    valence_weight: float = 0.5
    valence_pivot: float = 0.5

    # Total width of the uniform noise term, centred on zero
    jitter_amplitude: float = 0.1

DEFAULT_WEIGHTS = ScoringWeights()

# =============================================================================
# RANKING CONFIGURATION
# =============================================================================
@dataclass(frozen=True)
class RankingConfig:
    """Configuration for ordering and truncating candidates."""
    # Top results exempt from the exploration shuffle
    anchor_count: int = 3

    # Result size when the caller does not pass one
    max_results: int = 50

DEFAULT_RANKING_CONFIG = RankingConfig()

# Result size used by the per-user service (the swipe deck)
NUM_RECOMMENDATIONS = 100

# =============================================================================
# TIMELINE CONFIGURATION
# =============================================================================
@dataclass(frozen=True)
class TimelineConfig:
    """Configuration for taste timeline aggregation."""
    top_n: int = 5

    # Fallback label templates when a category name cannot be resolved
    fallback_labels: Optional[Dict[str, str]] = None

    def fallback_label(self, dimension: str, category_id: int) -> str:
        labels = self.fallback_labels or FALLBACK_LABELS
        template = labels.get(dimension, "{dimension} {id}")
        return template.format(dimension=dimension.capitalize(), id=category_id)

GENRE = "genre"
MOOD = "mood"
LANGUAGE = "language"
DIMENSIONS = (GENRE, MOOD, LANGUAGE)

FALLBACK_LABELS = {
    GENRE: "Genre {id}",
    MOOD: "Mood {id}",
    LANGUAGE: "Language {id}",
}

DEFAULT_TIMELINE_CONFIG = TimelineConfig()

# Named periods accepted by timeline window resolution
PERIODS = ("all", "week", "month")

# =============================================================================
# ENVIRONMENT
# =============================================================================
SNAPSHOT_PATH = os.environ.get("TUNESCOUT_SNAPSHOT", "snapshot.json")
RANDOM_SEED = os.environ.get("TUNESCOUT_SEED")
