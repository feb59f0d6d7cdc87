"""Per-user, per-room and per-team hit aggregates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from domain.battles.segmentation import room_key
from domain.common import HitEvent, Team, round_half_up, safe_ratio
from domain.teams.inference import TeamInferenceResult


@dataclass(frozen=True)
class UserStats:
    user: str
    team: Team
    team_confidence: float
    team_source: str
    attacks: int
    hits_taken: int

    @property
    def ratio(self) -> float:
        return safe_ratio(self.attacks, self.hits_taken)

    def as_payload(self) -> dict[str, object]:
        return {
            "user": self.user,
            "team": self.team.value,
            "teamConfidence": self.team_confidence,
            "teamSource": self.team_source,
            "attacks": self.attacks,
            "hitsTaken": self.hits_taken,
            "ratio": self.ratio,
        }


@dataclass(frozen=True)
class RoomSummary:
    room_name: str
    hit_count: int
    avg_user_ratio: float
    active_users: int

    def as_payload(self) -> dict[str, object]:
        return {
            "roomName": self.room_name,
            "hitCount": self.hit_count,
            "avgUserRatio": self.avg_user_ratio,
            "activeUsers": self.active_users,
        }


@dataclass(frozen=True)
class TeamTotals:
    users: int = 0
    attacks: int = 0
    hits_taken: int = 0

    def as_payload(self) -> dict[str, int]:
        return {"users": self.users, "attacks": self.attacks, "hitsTaken": self.hits_taken}


def _count_hits(events: Iterable[HitEvent]) -> tuple[dict[str, int], dict[str, int]]:
    attacks: dict[str, int] = {}
    hits_taken: dict[str, int] = {}
    for event in events:
        if event.attacker:
            attacks[event.attacker] = attacks.get(event.attacker, 0) + 1
        if event.victim:
            hits_taken[event.victim] = hits_taken.get(event.victim, 0) + 1
    return attacks, hits_taken


def build_user_stats(events: Sequence[HitEvent], inference: TeamInferenceResult) -> list[UserStats]:
    """Every attacker or victim with their team labels, most attacks first."""
    attacks, hits_taken = _count_hits(events)
    users = dict.fromkeys([*attacks, *hits_taken])

    stats = []
    for user in users:
        assignment = inference.assignments.get(user)
        stats.append(
            UserStats(
                user=user,
                team=Team.UNKNOWN if assignment is None else assignment.team,
                team_confidence=0.0 if assignment is None else assignment.confidence,
                team_source="unknown" if assignment is None else assignment.source.value,
                attacks=attacks.get(user, 0),
                hits_taken=hits_taken.get(user, 0),
            )
        )
    return sorted(stats, key=lambda item: item.attacks, reverse=True)


def build_room_summaries(events: Iterable[HitEvent]) -> list[RoomSummary]:
    """Hit volume per room with the mean per-user ratio inside that room."""
    hit_counts: dict[str, int] = {}
    per_user: dict[str, dict[str, list[int]]] = {}

    for event in events:
        room_name = room_key(event)
        hit_counts[room_name] = hit_counts.get(room_name, 0) + 1
        room_users = per_user.setdefault(room_name, {})
        if event.attacker:
            room_users.setdefault(event.attacker, [0, 0])[0] += 1
        if event.victim:
            room_users.setdefault(event.victim, [0, 0])[1] += 1

    summaries = []
    for room_name, hit_count in hit_counts.items():
        ratios = [
            safe_ratio(attacks, taken)
            for attacks, taken in per_user.get(room_name, {}).values()
            if attacks or taken
        ]
        avg_ratio = sum(ratios) / len(ratios) if ratios else 0.0
        summaries.append(
            RoomSummary(
                room_name=room_name,
                hit_count=hit_count,
                avg_user_ratio=round_half_up(avg_ratio, 2),
                active_users=len(ratios),
            )
        )
    return sorted(summaries, key=lambda item: item.hit_count, reverse=True)


def build_team_totals(users: Iterable[UserStats]) -> dict[Team, TeamTotals]:
    totals = {team: TeamTotals() for team in (Team.PENGUIN, Team.REINDEER, Team.UNKNOWN)}
    for user in users:
        current = totals[user.team]
        totals[user.team] = TeamTotals(
            users=current.users + 1,
            attacks=current.attacks + user.attacks,
            hits_taken=current.hits_taken + user.hits_taken,
        )
    return totals


def count_team_matchups(
    events: Iterable[HitEvent],
    inference: TeamInferenceResult,
    *,
    limit: int = 12,
) -> list[tuple[str, int]]:
    """Most frequent `attacker team → victim team` pairs where both teams are known."""
    counts: dict[str, int] = {}
    for event in events:
        attacker_team = inference.team_of(event.attacker)
        victim_team = inference.team_of(event.victim)
        if attacker_team is Team.UNKNOWN or victim_team is Team.UNKNOWN:
            continue
        pair = f"{attacker_team.value} → {victim_team.value}"
        counts[pair] = counts.get(pair, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]


def enrich_events(events: Iterable[HitEvent], inference: TeamInferenceResult) -> list[dict[str, object]]:
    """Event payloads with the resolved team of each side attached."""
    enriched = []
    for event in events:
        payload = event.as_payload()
        payload["attackerTeam"] = inference.team_of(event.attacker).value
        payload["victimTeam"] = inference.team_of(event.victim).value
        enriched.append(payload)
    return enriched
