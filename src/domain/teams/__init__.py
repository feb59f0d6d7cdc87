"""Team inference from combat structure."""

from domain.teams.inference import (
    CombatGraph,
    Conflict,
    ConflictKind,
    InferenceParameters,
    TeamAssignment,
    TeamInferenceEngine,
    TeamInferenceResult,
    VoteTally,
    calculate_confidence,
    infer_teams,
)

__all__ = [
    "CombatGraph",
    "Conflict",
    "ConflictKind",
    "InferenceParameters",
    "TeamAssignment",
    "TeamInferenceEngine",
    "TeamInferenceResult",
    "VoteTally",
    "calculate_confidence",
    "infer_teams",
]
