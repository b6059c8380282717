import json

import pytest

from tunescout_recs.cli import create_parser, main


@pytest.fixture
def snapshot_file(tmp_path, snapshot_data):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")
    return str(path)


def test_recommend_json(snapshot_file, capsys):
    code = main(["recommend", "1", "--snapshot", snapshot_file, "--seed", "3"])

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["user_id"] == 1
    assert [t["id"] for t in data["tracks"]] == [6, 5, 4]


def test_recommend_anonymous_with_session_swipes(snapshot_file, tmp_path, capsys):
    session = tmp_path / "session.json"
    session.write_text(
        json.dumps([{"track_id": 2, "direction": "like", "timestamp": "2024-06-01T10:00:00"}]),
        encoding="utf-8",
    )

    code = main(["recommend", "0", "--snapshot", snapshot_file, "--session-swipes", str(session)])

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["user_id"] == 0
    assert 2 not in [t["id"] for t in data["tracks"]]


def test_recommend_simple_format(snapshot_file, capsys):
    assert main(["recommend", "1", "--snapshot", snapshot_file, "--format", "simple", "-n", "2"]) == 0

    out = capsys.readouterr().out
    assert "Recommendations for user 1" in out
    assert "Mode: scored" in out


def test_timeline_json(snapshot_file, capsys):
    assert main(["timeline", "2", "--snapshot", snapshot_file]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["top_genres"] == [{"id": 2, "name": "Rock", "count": 1}]
    assert data["top_moods"] == [{"id": 1, "name": "Happy", "count": 1}]


def test_timeline_invalid_window_falls_back_to_all_time(snapshot_file, capsys):
    code = main([
        "timeline", "1", "--snapshot", snapshot_file, "--from", "2024-05-10", "--to", "2024-05-01",
    ])

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["top_genres"] == [{"id": 1, "name": "Pop", "count": 1}]


def test_timeline_window_excludes_old_likes(snapshot_file, capsys):
    code = main([
        "timeline", "1", "--snapshot", snapshot_file, "--from", "2024-05-02", "--format", "simple",
    ])

    assert code == 0
    out = capsys.readouterr().out
    assert "Top genres\n   (none)" in out


def test_liked_command(snapshot_file, capsys):
    assert main(["liked", "2", "genre", "2", "--snapshot", snapshot_file]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [t["id"] for t in data] == [4]


def test_output_file(snapshot_file, tmp_path, capsys):
    target = tmp_path / "out.json"

    assert main(["timeline", "2", "--snapshot", snapshot_file, "-o", str(target)]) == 0

    assert json.loads(target.read_text(encoding="utf-8"))["top_languages"][0]["name"] == "English"
    assert "Output saved to" in capsys.readouterr().out


def test_missing_snapshot_reports_error(tmp_path, capsys):
    code = main(["timeline", "1", "--snapshot", str(tmp_path / "nope.json")])

    assert code == 1
    assert "Error:" in capsys.readouterr().err


def test_parser_rejects_unknown_dimension():
    with pytest.raises(SystemExit):
        create_parser().parse_args(["liked", "1", "artist", "3"])


def test_timeline_period_with_utc_timestamps(snapshot_data, tmp_path, capsys):
    for swipe in snapshot_data["swipes"]:
        swipe["timestamp"] += "Z"
    path = tmp_path / "utc.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")

    assert main(["timeline", "1", "--snapshot", str(path), "--period", "week"]) == 0
    assert main(["liked", "2", "genre", "2", "--snapshot", str(path), "--from", "2024-05-03"]) == 0

    out = capsys.readouterr().out
    assert '"id": 4' in out
