"""Tests for hit-log CSV ingestion and JSON lookups."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from repositories.artifact_repository import ArtifactRepository
from repositories.hit_log_repository import (
    fetch_hit_log,
    load_json_mapping,
    parse_hit_log_csv,
    read_hit_log,
)

CSV_TEXT = (
    "Time,Attacker,Victim,Room,Value\r\n"
    "2025-12-20 10:00:00, frosty ,blizzard,12,1\r\n"
    '2025-12-20 10:00:05,"snow, man",frosty,99,\r\n'
    "2025-12-20 10:00:09,blizzard,,,abc\r\n"
    "\r\n"
)


def test_parse_hit_log_csv_trims_and_resolves_rooms() -> None:
    events = parse_hit_log_csv(CSV_TEXT, {"12": "Ice Rink"})

    assert len(events) == 3
    first, second, third = events
    assert first.attacker == "frosty"
    assert first.victim == "blizzard"
    assert first.room_id == "12"
    assert first.room_name == "Ice Rink"
    assert first.value == pytest.approx(1.0)

    assert second.attacker == "snow, man"
    assert second.room_name == "99"
    assert second.value == pytest.approx(0.0)

    assert third.victim == ""
    assert third.room_name == "Unknown"
    assert third.value == pytest.approx(0.0)


@pytest.mark.parametrize("raw_value", ["NaN", "inf", "-Infinity", "1e999"])
def test_parse_hit_log_csv_zeroes_non_finite_values(raw_value: str) -> None:
    text = f"Time,Attacker,Victim,Room,Value\n2025-12-20 10:00:00,a,b,1,{raw_value}\n"

    (event,) = parse_hit_log_csv(text)

    assert event.value == 0.0


def test_non_finite_value_rows_still_write_strict_json(tmp_path: Path) -> None:
    text = "Time,Attacker,Victim,Room,Value\n2025-12-20 10:00:00,a,b,1,NaN\n2025-12-20 10:00:05,b,a,1,1e999\n"
    repository = ArtifactRepository(tmp_path)

    repository.write("events.json", [event.as_payload() for event in parse_hit_log_csv(text)])

    def reject(token: str) -> None:
        raise ValueError(token)

    raw = (tmp_path / "events.json").read_text(encoding="utf-8")
    assert [row["value"] for row in json.loads(raw, parse_constant=reject)] == [0.0, 0.0]


def test_artifact_repository_refuses_non_finite_numbers(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        ArtifactRepository(tmp_path).write("bad.json", {"value": float("nan")})


def test_read_hit_log_from_file(tmp_path: Path) -> None:
    path = tmp_path / "hits.csv"
    path.write_text("Time,Attacker,Victim,Room,Value\n2025-12-20 10:00:00,a,b,1,2\n")

    events = read_hit_log(path)

    assert [(event.attacker, event.victim, event.room_name) for event in events] == [("a", "b", "1")]


def test_fetch_hit_log_uses_http_client() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=CSV_TEXT)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        events = fetch_hit_log("https://example.test/hits", {"12": "Ice Rink"}, client=client)

    assert requested == ["https://example.test/hits"]
    assert len(events) == 3
    assert events[0].room_name == "Ice Rink"


def test_fetch_hit_log_raises_on_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            fetch_hit_log("https://example.test/hits", client=client)


def test_load_json_mapping_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_json_mapping(tmp_path / "teams.json") == {}


def test_load_json_mapping_reads_object(tmp_path: Path) -> None:
    path = tmp_path / "teams.json"
    path.write_text(json.dumps({"frosty": "Penguin", "blizzard": "Reindeer"}))

    assert load_json_mapping(path) == {"frosty": "Penguin", "blizzard": "Reindeer"}


def test_load_json_mapping_rejects_non_objects(tmp_path: Path) -> None:
    path = tmp_path / "rooms.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError, match="expected a JSON object"):
        load_json_mapping(path)


def test_artifact_repository_round_trip(tmp_path: Path) -> None:
    repository = ArtifactRepository(tmp_path / "out")

    written = repository.write_all({"a.json": {"pair": "Penguin → Reindeer"}, "b.json": [1, 2]})

    assert [path.name for path in written] == ["a.json", "b.json"]
    assert repository.read("a.json") == {"pair": "Penguin → Reindeer"}
    assert repository.read("b.json") == [1, 2]
