"""Hit-log CSV ingestion and JSON lookup files."""

from __future__ import annotations

import csv
import io
import json
import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx

from domain.common import UNKNOWN_ROOM, HitEvent

DEFAULT_HIT_LOG_URL = "https://www.myvmk.com/api/gethits"
DEFAULT_TIMEOUT_SECONDS = 30.0


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _parse_value(raw: str) -> float:
    try:
        value = float(raw) if raw else 0.0
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def parse_hit_log_csv(text: str, rooms: Mapping[str, str] | None = None) -> list[HitEvent]:
    """Convert the `Time,Attacker,Victim,Room,Value` feed into hit events.

    Room ids are resolved through `rooms`, falling back to the id itself.
    Empty lines are skipped; missing columns become empty strings.
    """
    room_names = rooms or {}
    reader = csv.DictReader(io.StringIO(text, newline=""))

    events: list[HitEvent] = []
    for row in reader:
        room_id = _clean(row.get("Room"))
        events.append(
            HitEvent(
                time=_clean(row.get("Time")),
                attacker=_clean(row.get("Attacker")),
                victim=_clean(row.get("Victim")),
                room_id=room_id,
                room_name=room_names.get(room_id) or room_id or UNKNOWN_ROOM,
                value=_parse_value(_clean(row.get("Value"))),
            )
        )
    return events


def read_hit_log(path: Path, rooms: Mapping[str, str] | None = None) -> list[HitEvent]:
    return parse_hit_log_csv(path.read_text(encoding="utf-8"), rooms)


def fetch_hit_log_text(
    url: str = DEFAULT_HIT_LOG_URL,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> str:
    """Download the raw CSV feed; non-2xx responses raise `httpx.HTTPStatusError`."""
    if client is not None:
        response = client.get(url)
        response.raise_for_status()
        return response.text

    with httpx.Client(
        timeout=timeout,
        headers={"User-Agent": "snowball-stats-build/1.0"},
        follow_redirects=True,
    ) as owned_client:
        response = owned_client.get(url)
        response.raise_for_status()
        return response.text


def fetch_hit_log(
    url: str = DEFAULT_HIT_LOG_URL,
    rooms: Mapping[str, str] | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.Client | None = None,
) -> list[HitEvent]:
    return parse_hit_log_csv(fetch_hit_log_text(url, timeout=timeout, client=client), rooms)


def load_json_mapping(path: Path) -> dict[str, str]:
    """Read a flat JSON object of strings; a missing file yields an empty mapping."""
    if not path.exists():
        return {}

    with path.open("r", encoding="utf-8") as file:
        raw = json.load(file)
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return {str(key): str(value) for key, value in raw.items()}
