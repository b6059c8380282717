from datetime import datetime

import pytest

from tunescout_recs.models import SwipeEvent, Track
from tunescout_recs.providers import InMemoryStore


def make_track(track_id, genre=None, mood=None, language=None, explicit=None, valence=0.5):
    return Track(
        id=track_id,
        genre_id=genre,
        mood_id=mood,
        language_id=language,
        explicit=explicit,
        valence=valence,
        name=f"Song{track_id}",
        artist=f"Artist{track_id}",
    )


def make_swipe(track_id, direction="like", user_id=1, when=None):
    return SwipeEvent(
        user_id=user_id,
        track_id=track_id,
        direction=direction,
        timestamp=when or datetime(2024, 5, 1, 12, 0),
    )


@pytest.fixture
def catalog():
    return [make_track(i, genre=(i % 3) + 1, valence=0.5) for i in range(1, 31)]


@pytest.fixture
def snapshot_data():
    return {
        "tracks": [
            {"id": 1, "genre_id": 1, "mood_id": 1, "language_id": 1, "name": "A", "artist": "X", "valence": 0.8},
            {"id": 2, "genre_id": 1, "mood_id": 2, "language_id": 1, "name": "B", "artist": "X", "explicit": True},
            {"id": 3, "genre_id": 2, "mood_id": None, "language_id": 2, "name": "C", "artist": "Y"},
            {"id": 4, "genre_id": 2, "mood_id": 1, "language_id": 1, "name": "D", "artist": "Y", "valence": 0.3},
            {"id": 5, "genre_id": None, "mood_id": 2, "language_id": None, "name": "E", "artist": "Z"},
            {"id": 6, "genre_id": 1, "mood_id": 1, "language_id": 1, "name": "F", "artist": "Z", "explicit": False},
        ],
        "swipes": [
            {"user_id": 1, "track_id": 1, "direction": "like", "timestamp": "2024-05-01T10:00:00"},
            {"user_id": 1, "track_id": 3, "direction": "dislike", "timestamp": "2024-05-02T10:00:00"},
            {"user_id": 2, "track_id": 4, "direction": "Like", "timestamp": "2024-05-03T10:00:00"},
        ],
        "preferences": [
            {"user_id": 2, "genre_id": 2, "mood_id": None, "language_id": None},
            {"user_id": 2, "genre_id": None, "mood_id": 1, "language_id": None},
        ],
        "users": [
            {"id": 1, "no_explicit": True},
            {"id": 2, "no_explicit": False},
        ],
        "genres": {"1": "Pop", "2": "Rock"},
        "moods": [{"id": 1, "name": "Happy"}],
        "languages": {"1": "English"},
    }


@pytest.fixture
def store(snapshot_data):
    return InMemoryStore.from_dict(snapshot_data)
