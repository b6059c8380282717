import json
from datetime import datetime, timedelta, timezone

import pytest

from tunescout_recs.models import Preference, SwipeEvent, Track
from tunescout_recs.providers import InMemoryStore, SnapshotError


def test_track_from_dict_defaults():
    track = Track.from_dict({"id": "4", "name": "Song", "artist": "Band"})

    assert track.id == 4
    assert track.valence == 0.5
    assert track.explicit is None
    assert not track.is_explicit
    assert track.genre_id is None


def test_track_from_dict_accepts_camel_case():
    track = Track.from_dict(
        {"id": 1, "genreId": 2, "moodId": 3, "languageId": 4, "spotifyUri": "spotify:track:x",
         "previewUrl": "https://p", "explicit": True, "valence": 0.9}
    )

    assert (track.genre_id, track.mood_id, track.language_id) == (2, 3, 4)
    assert track.spotify_uri == "spotify:track:x"
    assert track.preview_url == "https://p"
    assert track.is_explicit


def test_swipe_from_dict_parses_timestamp():
    swipe = SwipeEvent.from_dict(
        {"user_id": 3, "track_id": 9, "direction": "like", "timestamp": "2024-05-01T10:00:00Z"}
    )

    assert swipe.timestamp == datetime(2024, 5, 1, 10)
    assert swipe.timestamp.tzinfo is None
    assert swipe.user_id == 3


def test_swipe_offsets_are_converted_to_utc():
    swipe = SwipeEvent.from_dict(
        {"user_id": 3, "track_id": 9, "direction": "like", "timestamp": "2024-05-01T12:30:00+02:00"}
    )
    aware = SwipeEvent.from_dict(
        {"user_id": 3, "track_id": 9, "direction": "like",
         "timestamp": datetime(2024, 5, 1, 5, tzinfo=timezone(timedelta(hours=-5)))}
    )

    assert swipe.timestamp == datetime(2024, 5, 1, 10, 30)
    assert aware.timestamp == datetime(2024, 5, 1, 10)


def test_swipe_from_dict_requires_direction():
    with pytest.raises(ValueError):
        SwipeEvent.from_dict({"user_id": 1, "track_id": 1, "timestamp": "2024-05-01"})


def test_preference_from_rows_collects_ids():
    rows = [
        {"user_id": 1, "genre_id": 2, "mood_id": None, "language_id": None},
        {"user_id": 1, "genre_id": 5, "mood_id": 7, "language_id": 3},
        {"user_id": 1, "genre_id": None, "mood_id": None, "language_id": 4},
    ]

    pref = Preference.from_rows(rows, no_explicit=True)

    assert pref.genre_ids == {2, 5}
    assert pref.mood_ids == {7}
    assert pref.language_id == 3
    assert pref.no_explicit


def test_preference_from_no_rows():
    assert Preference.from_rows(None, None) == Preference()


def test_store_reads_per_user(store):
    assert len(store.get_catalog()) == 6
    assert [s.track_id for s in store.get_swipe_history(1)] == [1, 3]
    assert store.get_swipe_history(42) == []

    pref = store.get_preferences(2)
    assert pref.genre_ids == {2}
    assert pref.mood_ids == {1}
    assert not pref.no_explicit
    assert store.get_preferences(1).no_explicit
    assert store.get_preferences(42) == Preference()


def test_store_resolves_names(store):
    assert store.resolve_name("genre", 1) == "Pop"
    assert store.resolve_name("mood", 1) == "Happy"
    assert store.resolve_name("language", 9) is None
    assert store.resolve_name("artist", 1) is None


def test_store_from_json(tmp_path, snapshot_data):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")

    store = InMemoryStore.from_json(path)

    assert [t.id for t in store.get_catalog()] == [1, 2, 3, 4, 5, 6]


def test_store_from_json_errors(tmp_path):
    with pytest.raises(SnapshotError):
        InMemoryStore.from_json(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SnapshotError):
        InMemoryStore.from_json(bad)

    listed = tmp_path / "list.json"
    listed.write_text("[]", encoding="utf-8")
    with pytest.raises(SnapshotError):
        InMemoryStore.from_json(listed)


def test_store_from_dict_rejects_bad_rows():
    with pytest.raises(SnapshotError):
        InMemoryStore.from_dict({"tracks": [{"name": "no id"}]})

    with pytest.raises(SnapshotError):
        InMemoryStore.from_dict(
            {"swipes": [{"user_id": 1, "track_id": 1, "direction": "like", "timestamp": "yesterday"}]}
        )
