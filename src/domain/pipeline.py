"""Batch build of dashboard artifacts from a hit log."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from domain.battles.segmentation import Battle, BattleSegmenter
from domain.common import HitEvent, Team
from domain.config import AnalysisConfig
from domain.stats import (
    build_room_summaries,
    build_team_totals,
    build_user_stats,
    count_team_matchups,
    enrich_events,
)
from domain.teams.inference import TeamInferenceEngine, TeamInferenceResult

EVENTS_ARTIFACT = "events.json"
USERS_ARTIFACT = "users.json"
ROOMS_ARTIFACT = "rooms_summary.json"
SUMMARY_ARTIFACT = "summary.json"
CONFLICTS_ARTIFACT = "team_conflicts.json"
BATTLES_ARTIFACT = "battles.json"


class ArtifactWriter(Protocol):
    def write_all(self, artifacts: Mapping[str, Any]) -> list[Any]: ...


@dataclass(frozen=True)
class BuildSummary:
    """Outcome for one dashboard build."""

    config_name: str
    total_events: int
    total_users: int
    penguin_users: int
    reindeer_users: int
    unknown_users: int
    conflicts: int
    battles: int
    written_artifacts: int
    dry_run: bool


@dataclass(frozen=True)
class BuildResult:
    inference: TeamInferenceResult
    battles: list[Battle]
    artifacts: dict[str, Any]


def build_artifacts(
    events: Sequence[HitEvent],
    seed_teams: Mapping[str, str],
    config: AnalysisConfig,
    *,
    generated_at: datetime | None = None,
) -> BuildResult:
    """Run inference, battle detection and aggregates; nothing is written."""
    generated = (generated_at or datetime.now(UTC)).isoformat()
    limits = config.output

    inference = TeamInferenceEngine(config.inference).infer(events, seed_teams)
    battles = BattleSegmenter(config.battles).segment(events)

    users = build_user_stats(events, inference)
    rooms = build_room_summaries(events)
    team_totals = build_team_totals(users)
    top_victims = sorted(users, key=lambda user: user.hits_taken, reverse=True)

    summary = {
        "generatedAt": generated,
        "totalRows": len(events),
        "totalUsers": len(users),
        "teamStats": {team.value: totals.as_payload() for team, totals in team_totals.items()},
        "teamVsTeam": [
            {"pair": pair, "count": count}
            for pair, count in count_team_matchups(
                events, inference, limit=limits.team_vs_team_pairs
            )
        ],
        "topAttackers": [
            {"user": user.user, "attacks": user.attacks, "team": user.team.value}
            for user in users[: limits.top_users]
        ],
        "topVictims": [
            {"user": user.user, "hitsTaken": user.hits_taken, "team": user.team.value}
            for user in top_victims[: limits.top_users]
        ],
        "topRooms": [room.as_payload() for room in rooms[: limits.top_rooms]],
        "conflictCount": len(inference.conflicts),
        "battleCount": len(battles),
    }

    artifacts: dict[str, Any] = {
        EVENTS_ARTIFACT: enrich_events(events, inference),
        USERS_ARTIFACT: [user.as_payload() for user in users],
        ROOMS_ARTIFACT: [room.as_payload() for room in rooms],
        SUMMARY_ARTIFACT: summary,
        CONFLICTS_ARTIFACT: {
            "generatedAt": generated,
            "totalConflicts": len(inference.conflicts),
            "conflicts": [
                conflict.as_payload() for conflict in inference.conflicts[: limits.max_conflicts]
            ],
        },
        BATTLES_ARTIFACT: {
            "generatedAt": generated,
            "totalBattles": len(battles),
            "minHits": config.battles.min_hits,
            "maxGapSeconds": config.battles.max_gap_seconds,
            "battles": [battle.as_payload() for battle in battles],
        },
    }
    return BuildResult(inference=inference, battles=battles, artifacts=artifacts)


def run_build(
    *,
    events: Sequence[HitEvent],
    seed_teams: Mapping[str, str],
    config: AnalysisConfig,
    writer: ArtifactWriter | None,
    dry_run: bool = False,
    echo: Callable[[str], None] | None = None,
    generated_at: datetime | None = None,
) -> BuildSummary:
    """Build all artifacts for one config and write them unless `dry_run`."""
    if not dry_run and writer is None:
        raise ValueError("writer is required unless dry_run is set")

    if echo is not None:
        echo(
            f"config={config.file_path.name} system={config.name} "
            f"loaded_events={len(events)} seeded_users={len(seed_teams)}"
        )

    result = build_artifacts(events, seed_teams, config, generated_at=generated_at)
    counts = result.inference.team_counts()
    users_artifact = result.artifacts[USERS_ARTIFACT]

    if echo is not None:
        echo(
            f"team_assignments penguin={counts[Team.PENGUIN]} "
            f"reindeer={counts[Team.REINDEER]} unknown={counts[Team.UNKNOWN]} "
            f"conflicts={len(result.inference.conflicts)}"
        )
        echo(
            f"battles={len(result.battles)} "
            f"min_hits={config.battles.min_hits} "
            f"max_gap_seconds={config.battles.max_gap_seconds}"
        )

    written = 0
    if dry_run:
        if echo is not None:
            echo(
                f"[dry-run] system={config.name} "
                f"artifacts={','.join(result.artifacts)} written=0"
            )
    elif writer is not None:
        written = len(writer.write_all(result.artifacts))
        if echo is not None:
            echo(
                "completed "
                f"system={config.name} "
                f"total_events={len(events)} "
                f"total_users={len(users_artifact)} "
                f"written_artifacts={written}"
            )

    return BuildSummary(
        config_name=config.name,
        total_events=len(events),
        total_users=len(users_artifact),
        penguin_users=counts[Team.PENGUIN],
        reindeer_users=counts[Team.REINDEER],
        unknown_users=counts[Team.UNKNOWN],
        conflicts=len(result.inference.conflicts),
        battles=len(result.battles),
        written_artifacts=written,
        dry_run=dry_run,
    )
