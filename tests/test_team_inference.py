"""Unit tests for breadth-first team inference."""

from __future__ import annotations

import pytest

from domain.common import AssignmentSource, HitEvent, Team
from domain.teams.inference import (
    CombatGraph,
    ConflictKind,
    InferenceParameters,
    TeamInferenceEngine,
    VoteTally,
    calculate_confidence,
    infer_teams,
)


def _hit(attacker: str, victim: str, time: str = "2025-12-20 10:00:00") -> HitEvent:
    return HitEvent(time=time, attacker=attacker, victim=victim, room_id="1", room_name="Lobby")


def test_chain_alternates_teams_from_single_seed() -> None:
    result = infer_teams([_hit("A", "B"), _hit("B", "C")], {"A": "Penguin"})

    assert result.team_map == {"A": Team.PENGUIN, "B": Team.REINDEER, "C": Team.PENGUIN}
    assert result.source == {
        "A": AssignmentSource.SEEDED,
        "B": AssignmentSource.INFERRED,
        "C": AssignmentSource.INFERRED,
    }
    assert result.confidence["A"] == pytest.approx(1.0)
    assert result.conflicts == []
    assert "A" not in result.evidence


def test_chain_confidence_counts_reverse_edge_evidence() -> None:
    result = infer_teams([_hit("A", "B"), _hit("B", "C")], {"A": "Penguin"})

    # B gets a second vote when C, once dequeued, looks back at it.
    assert result.evidence["B"].reindeer_votes == 2
    assert result.evidence["C"].penguin_votes == 1
    assert result.confidence["B"] == pytest.approx(0.64)
    assert result.confidence["C"] == pytest.approx(0.62)


def test_seeded_users_are_never_overwritten() -> None:
    events = [_hit("A", "B"), _hit("B", "C"), _hit("A", "C")]
    result = infer_teams(events, {"A": "Penguin", "C": "Penguin"})

    assert result.team_map["A"] is Team.PENGUIN
    assert result.team_map["C"] is Team.PENGUIN
    assert result.confidence["A"] == pytest.approx(1.0)
    assert result.confidence["C"] == pytest.approx(1.0)
    assert result.source["C"] is AssignmentSource.SEEDED


def test_same_team_seeds_connected_by_edge_record_conflicts_both_ways() -> None:
    result = infer_teams([_hit("A", "C")], {"A": "Penguin", "C": "Penguin"})

    assert [conflict.kind for conflict in result.conflicts] == [ConflictKind.EDGE] * 2
    first = result.conflicts[0]
    assert first.user1 == "A"
    assert first.user2 == "C"
    assert first.team2 is Team.PENGUIN
    assert first.expected is Team.REINDEER
    assert first.source2 is AssignmentSource.SEEDED
    assert "expected C to be Reindeer" in first.description
    assert result.team_map == {"A": Team.PENGUIN, "C": Team.PENGUIN}


def test_odd_cycle_keeps_first_assignment_and_reports_conflict() -> None:
    events = [_hit("S", "X"), _hit("S", "Y"), _hit("X", "Y")]
    result = infer_teams(events, {"S": "Penguin"})

    assert result.team_map["X"] is Team.REINDEER
    assert result.team_map["Y"] is Team.REINDEER
    edge_conflicts = [c for c in result.conflicts if c.kind is ConflictKind.EDGE]
    assert {(c.user1, c.user2) for c in edge_conflicts} == {("X", "Y"), ("Y", "X")}


def test_unreachable_users_are_unknown_with_zero_confidence() -> None:
    result = infer_teams([_hit("A", "B"), _hit("C", "D")], {"A": "Reindeer"})

    assert result.team_map["C"] is Team.UNKNOWN
    assert result.team_map["D"] is Team.UNKNOWN
    assert result.source["D"] is AssignmentSource.UNKNOWN
    assert result.confidence["C"] == pytest.approx(0.0)


def test_empty_seed_yields_all_unknown_without_conflicts() -> None:
    result = infer_teams([_hit("A", "B"), _hit("B", "C")], {})

    assert set(result.team_map.values()) == {Team.UNKNOWN}
    assert result.conflicts == []
    assert result.team_counts()[Team.UNKNOWN] == 3


def test_invalid_seed_values_are_ignored() -> None:
    result = infer_teams([_hit("A", "B")], {"A": "Elf", "B": "Unknown"})

    assert result.team_map == {"A": Team.UNKNOWN, "B": Team.UNKNOWN}


def test_events_missing_a_side_add_user_without_edges() -> None:
    events = [_hit("A", ""), _hit("", "B"), _hit("A", "C")]
    result = infer_teams(events, {"A": "Penguin"})

    assert result.team_map["B"] is Team.UNKNOWN
    assert result.team_map["C"] is Team.REINDEER
    assert set(result.team_map) == {"A", "B", "C"}


def test_seeded_user_absent_from_events_is_still_reported() -> None:
    result = infer_teams([_hit("A", "B")], {"Z": "Reindeer"})

    assert result.team_map["Z"] is Team.REINDEER
    assert result.source["Z"] is AssignmentSource.SEEDED


def test_every_user_is_covered_and_confidence_is_bounded() -> None:
    events = [_hit(f"u{i}", f"u{(i * 7) % 13}") for i in range(40)]
    result = infer_teams(events, {"u0": "Penguin", "u5": "Reindeer"})

    users = {e.attacker for e in events} | {e.victim for e in events}
    assert users <= set(result.team_map)
    assert users <= set(result.confidence)
    assert users <= set(result.source)
    assert all(0.0 <= value <= 1.0 for value in result.confidence.values())


def test_inference_is_deterministic() -> None:
    events = [_hit(f"u{i % 9}", f"u{(i * 5 + 1) % 11}") for i in range(60)]
    seed = {"u0": "Penguin", "u3": "Reindeer"}

    first = infer_teams(events, seed)
    second = infer_teams(events, seed)

    assert first.team_map == second.team_map
    assert first.confidence == second.confidence
    assert first.conflicts == second.conflicts


def test_propagated_votes_always_back_the_assigned_team() -> None:
    events = [_hit("P", "B"), _hit("P", "C"), _hit("C", "D")] + [_hit("D", "B")] * 5
    result = infer_teams(events, {"P": "Penguin"})

    assert result.team_map["B"] is Team.REINDEER
    assert result.evidence["B"].reindeer_votes == 6
    for user, tally in result.evidence.items():
        assert tally.votes_for(result.team_map[user].opposite()) == 0
    assert not [c for c in result.conflicts if c.kind is ConflictKind.EVIDENCE]


def test_conflict_vote_ratio_threshold_is_strictly_greater() -> None:
    engine = TeamInferenceEngine(InferenceParameters(conflict_vote_ratio=2.0))
    balanced = VoteTally(penguin_votes=2, reindeer_votes=4)
    contradicted = VoteTally(penguin_votes=2, reindeer_votes=5)

    assert engine._evidence_conflict("u", Team.PENGUIN, balanced) is None
    conflict = engine._evidence_conflict("u", Team.PENGUIN, contradicted)
    assert conflict is not None
    assert conflict.kind is ConflictKind.EVIDENCE
    assert conflict.expected is Team.REINDEER
    assert conflict.edge_count == 5
    assert conflict.user2 is None
    assert conflict.description == (
        "u was inferred as Penguin but 5 edges suggest Reindeer (only 2 suggest Penguin)"
    )


def test_confidence_formula() -> None:
    params = InferenceParameters()

    assert calculate_confidence(VoteTally(), params) == pytest.approx(0.0)
    assert calculate_confidence(VoteTally(penguin_votes=1), params) == pytest.approx(0.62)
    assert calculate_confidence(VoteTally(penguin_votes=20), params) == pytest.approx(1.0)
    split = VoteTally(penguin_votes=5, reindeer_votes=5)
    assert calculate_confidence(split, params) == pytest.approx(0.2)
    lopsided = VoteTally(penguin_votes=30, reindeer_votes=10)
    assert calculate_confidence(lopsided, params) == pytest.approx(0.7)


def test_combat_graph_counts_both_directions_on_one_edge() -> None:
    graph = CombatGraph.from_events(
        [_hit("A", "B"), _hit("B", "A"), _hit("A", "C"), _hit("A", "A")]
    )

    assert graph.edge_weight("A", "B") == 2
    assert graph.edge_weight("B", "A") == 2
    assert list(graph.neighbors("A")) == ["B", "C"]
    assert graph.edge_weight("A", "A") == 0
    assert graph.users() == ["A", "B", "C"]
    assert len(graph) == 3


def test_edge_weight_becomes_vote_weight() -> None:
    result = infer_teams([_hit("A", "B")] * 4, {"A": "Reindeer"})

    assert result.evidence["B"].penguin_votes == 4
    assert result.confidence["B"] == pytest.approx(0.68)
