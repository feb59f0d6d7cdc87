"""Gap-based battle segmentation of per-room hit streams."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from domain.common import (
    UNKNOWN_ROOM,
    HitEvent,
    format_local_timestamp,
    parse_local_timestamp,
    round_half_up,
    safe_ratio,
)


@dataclass(frozen=True)
class SegmentationParameters:
    min_hits: int = 30
    max_gap_seconds: int = 120
    top_participants: int = 3


@dataclass(frozen=True)
class ParticipantStats:
    user: str
    attacks: int = 0
    hits_taken: int = 0

    @property
    def ratio(self) -> float:
        return safe_ratio(self.attacks, self.hits_taken)

    def as_payload(self) -> dict[str, object]:
        return {
            "user": self.user,
            "attacks": self.attacks,
            "hitsTaken": self.hits_taken,
            "ratio": self.ratio,
        }


@dataclass(frozen=True)
class Battle:
    """One burst of activity in a single room."""

    id: str
    room_name: str
    start: datetime
    end: datetime
    duration_minutes: int
    hit_count: int
    unique_users: int
    participants: tuple[ParticipantStats, ...]
    top_attackers: tuple[ParticipantStats, ...]
    top_victims: tuple[ParticipantStats, ...]

    def as_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "roomName": self.room_name,
            "start": format_local_timestamp(self.start),
            "end": format_local_timestamp(self.end),
            "durationMinutes": self.duration_minutes,
            "hitCount": self.hit_count,
            "uniqueUsers": self.unique_users,
            "participants": [participant.as_payload() for participant in self.participants],
            "topAttackers": [
                {"user": participant.user, "attacks": participant.attacks}
                for participant in self.top_attackers
            ],
            "topVictims": [
                {"user": participant.user, "hitsTaken": participant.hits_taken}
                for participant in self.top_victims
            ],
        }


@dataclass(frozen=True)
class _TimedHit:
    time: datetime
    event: HitEvent


def room_key(event: HitEvent) -> str:
    """Room label used for grouping: name, then id, then a fixed fallback."""
    return event.room_name or event.room_id or UNKNOWN_ROOM


class BattleSegmenter:
    """Split each room's chronological hits wherever the gap exceeds the threshold."""

    def __init__(self, params: SegmentationParameters | None = None) -> None:
        self.params = params or SegmentationParameters()

    def segment(self, events: Iterable[HitEvent]) -> list[Battle]:
        battles: list[Battle] = []
        for room_name, room_hits in self._hits_by_room(events).items():
            battles.extend(self._segment_room(room_name, room_hits))

        # Stable sort keeps room discovery order for identical start times.
        return sorted(battles, key=lambda battle: battle.start, reverse=True)

    def _hits_by_room(self, events: Iterable[HitEvent]) -> dict[str, list[_TimedHit]]:
        rooms: dict[str, list[_TimedHit]] = {}
        for event in events:
            parsed = parse_local_timestamp(event.time)
            if parsed is None:
                continue
            rooms.setdefault(room_key(event), []).append(_TimedHit(time=parsed, event=event))

        for hits in rooms.values():
            hits.sort(key=lambda hit: hit.time)
        return rooms

    def _segment_room(self, room_name: str, hits: Sequence[_TimedHit]) -> list[Battle]:
        battles: list[Battle] = []
        cluster: list[_TimedHit] = []
        sequence = 0

        def flush() -> None:
            nonlocal sequence
            if len(cluster) >= self.params.min_hits:
                sequence += 1
                battles.append(self._build_battle(f"{room_name}-{sequence}", room_name, cluster))

        for hit in hits:
            if cluster:
                gap_seconds = (hit.time - cluster[-1].time).total_seconds()
                if gap_seconds > self.params.max_gap_seconds:
                    flush()
                    cluster = []
            cluster.append(hit)

        if cluster:
            flush()
        return battles

    def _build_battle(self, battle_id: str, room_name: str, cluster: Sequence[_TimedHit]) -> Battle:
        start = cluster[0].time
        end = cluster[-1].time
        duration_minutes = max(1, int(round_half_up((end - start).total_seconds() / 60.0)))

        attacks: dict[str, int] = {}
        hits_taken: dict[str, int] = {}
        for hit in cluster:
            attacker = hit.event.attacker
            victim = hit.event.victim
            if attacker:
                attacks[attacker] = attacks.get(attacker, 0) + 1
                hits_taken.setdefault(attacker, 0)
            if victim:
                attacks.setdefault(victim, 0)
                hits_taken[victim] = hits_taken.get(victim, 0) + 1

        participants = tuple(
            ParticipantStats(user=user, attacks=attacks[user], hits_taken=hits_taken[user])
            for user in attacks
        )
        top_n = self.params.top_participants
        top_attackers = tuple(
            sorted(participants, key=lambda participant: participant.attacks, reverse=True)[:top_n]
        )
        top_victims = tuple(
            sorted(participants, key=lambda participant: participant.hits_taken, reverse=True)[:top_n]
        )

        return Battle(
            id=battle_id,
            room_name=room_name,
            start=start,
            end=end,
            duration_minutes=duration_minutes,
            hit_count=len(cluster),
            unique_users=len(participants),
            participants=participants,
            top_attackers=top_attackers,
            top_victims=top_victims,
        )


def detect_battles(
    events: Iterable[HitEvent],
    *,
    min_hits: int = 30,
    max_gap_seconds: int = 120,
) -> list[Battle]:
    """Segment events into battles with the given thresholds."""
    params = SegmentationParameters(min_hits=min_hits, max_gap_seconds=max_gap_seconds)
    return BattleSegmenter(params).segment(events)
