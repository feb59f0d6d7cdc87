#!/usr/bin/env python3
"""Show team-inference conflicts from a built team_conflicts.json artifact."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from domain.pipeline import CONFLICTS_ARTIFACT
from domain.teams.inference import ConflictKind
from repositories.artifact_repository import ArtifactRepository

DEFAULT_DATA_DIR = ROOT_DIR / "docs" / "data"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Query team-inference conflicts from a built artifact directory.",
)


@app.command()
def show_conflicts(
    data_dir: Annotated[
        Path,
        typer.Option("--data-dir", help="Directory holding team_conflicts.json."),
    ] = DEFAULT_DATA_DIR,
    kind: Annotated[
        ConflictKind | None,
        typer.Option("--kind", help="Only show one conflict kind (edge, evidence)."),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", help="Only show conflicts involving this user."),
    ] = None,
    top_n: Annotated[
        int,
        typer.Option("--top-n", help="Number of conflicts to print, heaviest first."),
    ] = 20,
) -> None:
    """Print conflicts ordered by the number of hits behind them."""
    if top_n <= 0:
        raise typer.BadParameter("--top-n must be greater than 0")

    repository = ArtifactRepository(data_dir)
    if not repository.path_for(CONFLICTS_ARTIFACT).is_file():
        raise typer.BadParameter(f"No {CONFLICTS_ARTIFACT} in {data_dir}", param_hint="--data-dir")

    payload = repository.read(CONFLICTS_ARTIFACT)
    conflicts = payload["conflicts"]
    if kind is not None:
        conflicts = [conflict for conflict in conflicts if conflict["kind"] == kind.value]
    if user is not None:
        conflicts = [
            conflict for conflict in conflicts if user in (conflict["user1"], conflict["user2"])
        ]

    if not conflicts:
        typer.echo(f"No conflicts found in {data_dir}.")
        return

    typer.echo(
        f"generated_at={payload['generatedAt']} total_conflicts={payload['totalConflicts']} "
        f"shown={min(top_n, len(conflicts))}"
    )
    ranked = sorted(conflicts, key=lambda conflict: conflict["edgeCount"], reverse=True)
    for index, conflict in enumerate(ranked[:top_n], start=1):
        typer.echo(
            f"{index:2d}. [{conflict['kind']}] edges={conflict['edgeCount']:3d} "
            f"{conflict['description']}"
        )


if __name__ == "__main__":
    app()
