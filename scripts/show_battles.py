#!/usr/bin/env python3
"""Show the largest detected battles from a built battles.json artifact."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, Any

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from domain.pipeline import BATTLES_ARTIFACT
from repositories.artifact_repository import ArtifactRepository

DEFAULT_DATA_DIR = ROOT_DIR / "docs" / "data"
SORT_KEYS = {
    "hits": "hitCount",
    "users": "uniqueUsers",
    "duration": "durationMinutes",
    "recent": "start",
}

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Query battles from a built artifact directory.",
)


def _render_battle(index: int, battle: dict[str, Any]) -> str:
    top = ", ".join(f"{entry['user']}({entry['attacks']})" for entry in battle["topAttackers"])
    return (
        f"{index:2d}. {battle['id']:<24} "
        f"start={battle['start']} minutes={battle['durationMinutes']:3d} "
        f"hits={battle['hitCount']:4d} users={battle['uniqueUsers']:3d} "
        f"top_attackers={top}"
    )


@app.command()
def show_battles(
    data_dir: Annotated[
        Path,
        typer.Option("--data-dir", help="Directory holding battles.json."),
    ] = DEFAULT_DATA_DIR,
    sort_by: Annotated[
        str,
        typer.Option("--sort-by", help="Sort key (hits, users, duration, recent)."),
    ] = "hits",
    room: Annotated[
        str | None,
        typer.Option("--room", help="Only show battles in this room."),
    ] = None,
    top_n: Annotated[
        int,
        typer.Option("--top-n", help="Number of battles to print."),
    ] = 20,
) -> None:
    """Print the top battles, optionally filtered to one room."""
    if top_n <= 0:
        raise typer.BadParameter("--top-n must be greater than 0")
    try:
        sort_key = SORT_KEYS[sort_by.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(SORT_KEYS))
        raise typer.BadParameter(
            f"Unsupported sort key '{sort_by}'. Choose one of: {available}.",
            param_hint="--sort-by",
        ) from exc

    repository = ArtifactRepository(data_dir)
    if not repository.path_for(BATTLES_ARTIFACT).is_file():
        raise typer.BadParameter(f"No {BATTLES_ARTIFACT} in {data_dir}", param_hint="--data-dir")

    payload = repository.read(BATTLES_ARTIFACT)
    battles = payload["battles"]
    if room is not None:
        battles = [battle for battle in battles if battle["roomName"] == room]

    if not battles:
        typer.echo(f"No battles found in {data_dir} for room={room or '*'}.")
        return

    ranked = sorted(battles, key=lambda battle: battle[sort_key], reverse=True)[:top_n]
    typer.echo(
        f"generated_at={payload['generatedAt']} total_battles={payload['totalBattles']} "
        f"min_hits={payload['minHits']} max_gap_seconds={payload['maxGapSeconds']} "
        f"sort_by={sort_by} room={room or '*'}"
    )
    for index, battle in enumerate(ranked, start=1):
        typer.echo(_render_battle(index, battle))


if __name__ == "__main__":
    app()
