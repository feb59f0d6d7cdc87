"""Shared types for hit-log analysis."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
UNKNOWN_ROOM = "Unknown"


class Team(str, Enum):
    """Snowball-fight factions."""

    PENGUIN = "Penguin"
    REINDEER = "Reindeer"
    UNKNOWN = "Unknown"

    def opposite(self) -> Team:
        if self is Team.PENGUIN:
            return Team.REINDEER
        if self is Team.REINDEER:
            return Team.PENGUIN
        return Team.UNKNOWN

    @classmethod
    def parse(cls, value: object) -> Team | None:
        """Return a real faction for `value`, or None for anything else."""
        if isinstance(value, Team):
            return value if value is not Team.UNKNOWN else None
        if value == Team.PENGUIN.value:
            return Team.PENGUIN
        if value == Team.REINDEER.value:
            return Team.REINDEER
        return None


class AssignmentSource(str, Enum):
    """Where a team assignment came from."""

    SEEDED = "seeded"
    INFERRED = "inferred"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class HitEvent:
    """One parsed row of the hit log."""

    time: str
    attacker: str
    victim: str
    room_id: str = ""
    room_name: str = ""
    value: float = 0.0

    def as_payload(self) -> dict[str, object]:
        return {
            "time": self.time,
            "attacker": self.attacker,
            "victim": self.victim,
            "roomId": self.room_id,
            "roomName": self.room_name,
            "value": self.value,
        }


def parse_local_timestamp(value: str) -> datetime | None:
    """Parse a naive local `YYYY-MM-DD HH:MM:SS` timestamp.

    Returns None when any of the six components is missing or invalid.
    """
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    except (AttributeError, ValueError):
        return None


def format_local_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (`round` would round half to even)."""
    factor = 10.0**digits
    return math.floor(value * factor + 0.5) / factor


def safe_ratio(attacks: int, hits_taken: int) -> float:
    """Attack/hit-taken ratio where a zero denominator yields `attacks`."""
    if not hits_taken:
        return float(attacks) if attacks else 0.0
    return attacks / hits_taken


__all__ = [
    "AssignmentSource",
    "HitEvent",
    "Team",
    "TIMESTAMP_FORMAT",
    "UNKNOWN_ROOM",
    "format_local_timestamp",
    "parse_local_timestamp",
    "round_half_up",
    "safe_ratio",
]
