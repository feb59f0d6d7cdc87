"""Load hit-log analysis settings from TOML files."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any
import tomllib

from domain.battles.segmentation import SegmentationParameters
from domain.teams.inference import DEFAULT_CONFLICT_VOTE_RATIO, InferenceParameters


@dataclass(frozen=True)
class OutputLimits:
    max_conflicts: int = 500
    top_users: int = 25
    top_rooms: int = 25
    team_vs_team_pairs: int = 12


@dataclass(frozen=True)
class AnalysisConfig:
    """Everything one dashboard build needs besides the input data."""

    name: str
    description: str | None
    file_path: Path
    inference: InferenceParameters = field(default_factory=InferenceParameters)
    battles: SegmentationParameters = field(default_factory=SegmentationParameters)
    output: OutputLimits = field(default_factory=OutputLimits)

    def with_battle_overrides(
        self,
        *,
        min_hits: int | None = None,
        max_gap_seconds: int | None = None,
    ) -> AnalysisConfig:
        battles = self.battles
        if min_hits is not None:
            battles = replace(battles, min_hits=min_hits)
        if max_gap_seconds is not None:
            battles = replace(battles, max_gap_seconds=max_gap_seconds)
        _validate_battles(file_path=self.file_path, battles=battles)
        return replace(self, battles=battles)

    def as_config_json(self) -> dict[str, Any]:
        return {
            "conflict_vote_ratio": self.inference.conflict_vote_ratio,
            "evidence_saturation": self.inference.evidence_saturation,
            "margin_weight": self.inference.margin_weight,
            "evidence_weight": self.inference.evidence_weight,
            "min_hits": self.battles.min_hits,
            "max_gap_seconds": self.battles.max_gap_seconds,
            "top_participants": self.battles.top_participants,
            "max_conflicts": self.output.max_conflicts,
            "top_users": self.output.top_users,
            "top_rooms": self.output.top_rooms,
            "team_vs_team_pairs": self.output.team_vs_team_pairs,
        }


def load_analysis_config_dir(config_dir: Path) -> list[AnalysisConfig]:
    """Load and validate all analysis TOML config files in a directory."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    configs = [parse_analysis_config(_read_toml(file_path), file_path) for file_path in config_files]

    names = [config.name for config in configs]
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate analysis config names found in {config_dir}: {names}")
    return configs


def load_analysis_config_file(file_path: Path) -> AnalysisConfig:
    if not file_path.is_file():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    return parse_analysis_config(_read_toml(file_path), file_path)


def _read_toml(file_path: Path) -> dict[str, Any]:
    with file_path.open("rb") as file:
        return tomllib.load(file)


def _parse_system_section(raw: dict[str, Any], file_path: Path) -> tuple[str, str | None]:
    system_raw = raw.get("system", {})
    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    return name, None if description_value is None else str(description_value)


def parse_analysis_config(raw: dict[str, Any], file_path: Path) -> AnalysisConfig:
    name, description = _parse_system_section(raw, file_path)
    inference_raw = raw.get("inference", {})
    battles_raw = raw.get("battles", {})
    output_raw = raw.get("output", {})

    inference = InferenceParameters(
        conflict_vote_ratio=float(
            inference_raw.get("conflict_vote_ratio", DEFAULT_CONFLICT_VOTE_RATIO)
        ),
        evidence_saturation=float(inference_raw.get("evidence_saturation", 20.0)),
        margin_weight=float(inference_raw.get("margin_weight", 0.6)),
        evidence_weight=float(inference_raw.get("evidence_weight", 0.4)),
    )
    battles = SegmentationParameters(
        min_hits=int(battles_raw.get("min_hits", 30)),
        max_gap_seconds=int(battles_raw.get("max_gap_seconds", 120)),
        top_participants=int(battles_raw.get("top_participants", 3)),
    )
    output = OutputLimits(
        max_conflicts=int(output_raw.get("max_conflicts", 500)),
        top_users=int(output_raw.get("top_users", 25)),
        top_rooms=int(output_raw.get("top_rooms", 25)),
        team_vs_team_pairs=int(output_raw.get("team_vs_team_pairs", 12)),
    )
    _validate_inference(file_path=file_path, inference=inference)
    _validate_battles(file_path=file_path, battles=battles)
    _validate_output(file_path=file_path, output=output)

    return AnalysisConfig(
        name=name,
        description=description,
        file_path=file_path,
        inference=inference,
        battles=battles,
        output=output,
    )


def _validate_inference(*, file_path: Path, inference: InferenceParameters) -> None:
    if inference.conflict_vote_ratio <= 0.0:
        raise ValueError(f"{file_path}: [inference].conflict_vote_ratio must be > 0")
    if inference.evidence_saturation <= 0.0:
        raise ValueError(f"{file_path}: [inference].evidence_saturation must be > 0")
    if inference.margin_weight < 0.0 or inference.evidence_weight < 0.0:
        raise ValueError(f"{file_path}: [inference] weights must be >= 0")
    if abs(inference.margin_weight + inference.evidence_weight - 1.0) > 1e-9:
        raise ValueError(f"{file_path}: [inference] margin_weight + evidence_weight must equal 1")


def _validate_battles(*, file_path: Path, battles: SegmentationParameters) -> None:
    if battles.min_hits <= 0:
        raise ValueError(f"{file_path}: [battles].min_hits must be > 0")
    if battles.max_gap_seconds <= 0:
        raise ValueError(f"{file_path}: [battles].max_gap_seconds must be > 0")
    if battles.top_participants <= 0:
        raise ValueError(f"{file_path}: [battles].top_participants must be > 0")


def _validate_output(*, file_path: Path, output: OutputLimits) -> None:
    if output.max_conflicts < 0:
        raise ValueError(f"{file_path}: [output].max_conflicts must be >= 0")
    if output.top_users <= 0:
        raise ValueError(f"{file_path}: [output].top_users must be > 0")
    if output.top_rooms <= 0:
        raise ValueError(f"{file_path}: [output].top_rooms must be > 0")
    if output.team_vs_team_pairs <= 0:
        raise ValueError(f"{file_path}: [output].team_vs_team_pairs must be > 0")
