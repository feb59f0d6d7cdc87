#!/usr/bin/env python3
"""Build dashboard JSON artifacts from the snowball hit log."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from domain.config import AnalysisConfig, load_analysis_config_dir
from domain.pipeline import run_build
from repositories.artifact_repository import ArtifactRepository
from repositories.hit_log_repository import (
    DEFAULT_HIT_LOG_URL,
    fetch_hit_log,
    load_json_mapping,
    read_hit_log,
)

DEFAULT_CONFIG_DIR = ROOT_DIR / "configs" / "analysis"
DEFAULT_DATA_DIR = ROOT_DIR / "docs" / "data"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Hit-log dashboard build commands.",
)


def _select_config(config_dir: Path, config_name: str | None) -> AnalysisConfig:
    configs = load_analysis_config_dir(config_dir)
    if config_name is None:
        return configs[0]

    for config in configs:
        if config.file_path.name == config_name or config.name == config_name:
            return config
    raise typer.BadParameter(
        f"No config named '{config_name}' found in {config_dir}",
        param_hint="--config-name",
    )


@app.command()
def build(
    csv_path: Annotated[
        Path | None,
        typer.Option(
            "--csv-path",
            help="Read the hit log from a local CSV file instead of downloading it.",
        ),
    ] = None,
    url: Annotated[
        str,
        typer.Option("--url", help="Hit-log CSV endpoint used when --csv-path is not given."),
    ] = DEFAULT_HIT_LOG_URL,
    rooms_path: Annotated[
        Path,
        typer.Option("--rooms", help="JSON mapping of room id to room name."),
    ] = DEFAULT_DATA_DIR / "rooms.json",
    teams_path: Annotated[
        Path,
        typer.Option("--teams", help="JSON mapping of username to Penguin/Reindeer seed team."),
    ] = DEFAULT_DATA_DIR / "teams.json",
    out_dir: Annotated[
        Path,
        typer.Option("--out-dir", help="Directory receiving the JSON artifacts."),
    ] = DEFAULT_DATA_DIR,
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory of analysis TOML configs."),
    ] = DEFAULT_CONFIG_DIR,
    config_name: Annotated[
        str | None,
        typer.Option(
            "--config-name",
            help="Config filename or [system].name (defaults to the first config in sort order).",
        ),
    ] = None,
    min_hits: Annotated[
        int | None,
        typer.Option("--min-hits", help="Override the minimum hits for a battle."),
    ] = None,
    max_gap_seconds: Annotated[
        int | None,
        typer.Option("--max-gap-seconds", help="Override the maximum gap inside a battle."),
    ] = None,
    timeout: Annotated[
        float,
        typer.Option("--timeout", help="HTTP timeout in seconds for the hit-log download."),
    ] = 30.0,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Compute everything without writing artifacts."),
    ] = False,
) -> None:
    """Run team inference, battle detection and aggregates, then write artifacts."""
    if min_hits is not None and min_hits <= 0:
        raise typer.BadParameter("--min-hits must be greater than 0")
    if max_gap_seconds is not None and max_gap_seconds <= 0:
        raise typer.BadParameter("--max-gap-seconds must be greater than 0")
    if timeout <= 0:
        raise typer.BadParameter("--timeout must be greater than 0")

    config = _select_config(config_dir, config_name).with_battle_overrides(
        min_hits=min_hits,
        max_gap_seconds=max_gap_seconds,
    )

    rooms = load_json_mapping(rooms_path)
    seed_teams = load_json_mapping(teams_path)
    typer.echo(f"loaded_room_mappings={len(rooms)} loaded_seed_teams={len(seed_teams)}")

    if csv_path is not None:
        if not csv_path.is_file():
            raise typer.BadParameter(f"CSV file not found: {csv_path}", param_hint="--csv-path")
        typer.echo(f"reading hit log path={csv_path}")
        events = read_hit_log(csv_path, rooms)
    else:
        typer.echo(f"fetching hit log url={url}")
        events = fetch_hit_log(url, rooms, timeout=timeout)

    run_build(
        events=events,
        seed_teams=seed_teams,
        config=config,
        writer=ArtifactRepository(out_dir),
        dry_run=dry_run,
        echo=typer.echo,
    )


@app.command()
def list_configs(
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory of analysis TOML configs."),
    ] = DEFAULT_CONFIG_DIR,
) -> None:
    """Print every analysis config with its battle thresholds."""
    for config in load_analysis_config_dir(config_dir):
        typer.echo(
            f"{config.file_path.name} system={config.name} "
            f"min_hits={config.battles.min_hits} "
            f"max_gap_seconds={config.battles.max_gap_seconds} "
            f"conflict_vote_ratio={config.inference.conflict_vote_ratio}"
        )


if __name__ == "__main__":
    app()
