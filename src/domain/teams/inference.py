"""Team inference from attacker/victim combat structure.

Every hit is assumed to be thrown across the two factions, so the combat
graph is two-colored breadth-first from the seeded users. The first label a
user receives is kept; later edges only add evidence (agreeing) or conflict
records (contradicting).
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from domain.common import AssignmentSource, HitEvent, Team, round_half_up

# An inferred user is flagged when the opposing team's votes exceed this
# multiple of the votes for its assigned team.
DEFAULT_CONFLICT_VOTE_RATIO = 2.0


@dataclass(frozen=True)
class InferenceParameters:
    conflict_vote_ratio: float = DEFAULT_CONFLICT_VOTE_RATIO
    evidence_saturation: float = 20.0
    margin_weight: float = 0.6
    evidence_weight: float = 0.4


class ConflictKind(str, Enum):
    """Kinds of contradiction found during inference."""

    EDGE = "edge"
    EVIDENCE = "evidence"


@dataclass(frozen=True)
class TeamAssignment:
    team: Team
    source: AssignmentSource
    confidence: float


@dataclass
class VoteTally:
    penguin_votes: int = 0
    reindeer_votes: int = 0

    @property
    def total(self) -> int:
        return self.penguin_votes + self.reindeer_votes

    def add(self, team: Team, votes: int) -> None:
        if team is Team.PENGUIN:
            self.penguin_votes += votes
        elif team is Team.REINDEER:
            self.reindeer_votes += votes

    def votes_for(self, team: Team) -> int:
        if team is Team.PENGUIN:
            return self.penguin_votes
        if team is Team.REINDEER:
            return self.reindeer_votes
        return 0


@dataclass(frozen=True)
class Conflict:
    """One contradiction between the two-faction assumption and the data.

    Edge conflicts name both users; evidence conflicts leave the second user
    empty and carry the stronger alternative in `expected`.
    """

    kind: ConflictKind
    user1: str
    team1: Team
    source1: AssignmentSource
    user2: str | None
    team2: Team | None
    source2: AssignmentSource | None
    expected: Team
    edge_count: int
    description: str

    def as_payload(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "user1": self.user1,
            "team1": self.team1.value,
            "source1": self.source1.value,
            "user2": self.user2,
            "team2": None if self.team2 is None else self.team2.value,
            "source2": None if self.source2 is None else self.source2.value,
            "expected": self.expected.value,
            "edgeCount": self.edge_count,
            "description": self.description,
        }


class CombatGraph:
    """Undirected hit-count graph with insertion-ordered adjacency.

    Neighbor iteration follows the order in which each pair first met, which
    fixes the order evidence accumulates during propagation.
    """

    def __init__(self) -> None:
        self._adjacency: dict[str, dict[str, int]] = {}
        self._users: dict[str, None] = {}

    @classmethod
    def from_events(cls, events: Iterable[HitEvent]) -> CombatGraph:
        graph = cls()
        for event in events:
            graph.add_event(event)
        return graph

    def add_event(self, event: HitEvent) -> None:
        attacker = event.attacker
        victim = event.victim
        if attacker:
            self._users.setdefault(attacker, None)
        if victim:
            self._users.setdefault(victim, None)
        if attacker and victim and attacker != victim:
            self._add_edge(attacker, victim)

    def _add_edge(self, a: str, b: str) -> None:
        a_neighbors = self._adjacency.setdefault(a, {})
        b_neighbors = self._adjacency.setdefault(b, {})
        a_neighbors[b] = a_neighbors.get(b, 0) + 1
        b_neighbors[a] = b_neighbors.get(a, 0) + 1

    def users(self) -> list[str]:
        return list(self._users)

    def neighbors(self, user: str) -> dict[str, int]:
        return dict(self._adjacency.get(user, {}))

    def edge_weight(self, a: str, b: str) -> int:
        return self._adjacency.get(a, {}).get(b, 0)

    def __len__(self) -> int:
        return len(self._users)


@dataclass
class TeamInferenceResult:
    assignments: dict[str, TeamAssignment] = field(default_factory=dict)
    conflicts: list[Conflict] = field(default_factory=list)
    evidence: dict[str, VoteTally] = field(default_factory=dict)

    @property
    def team_map(self) -> dict[str, Team]:
        return {user: assignment.team for user, assignment in self.assignments.items()}

    @property
    def confidence(self) -> dict[str, float]:
        return {user: assignment.confidence for user, assignment in self.assignments.items()}

    @property
    def source(self) -> dict[str, AssignmentSource]:
        return {user: assignment.source for user, assignment in self.assignments.items()}

    def team_of(self, user: str) -> Team:
        assignment = self.assignments.get(user)
        return Team.UNKNOWN if assignment is None else assignment.team

    def team_counts(self) -> dict[Team, int]:
        counts = {Team.PENGUIN: 0, Team.REINDEER: 0, Team.UNKNOWN: 0}
        for assignment in self.assignments.values():
            counts[assignment.team] += 1
        return counts


def calculate_confidence(tally: VoteTally, params: InferenceParameters) -> float:
    """Blend vote agreement with the amount of evidence, rounded to 2 places."""
    total = tally.total
    if total == 0:
        return 0.0

    margin_ratio = abs(tally.penguin_votes - tally.reindeer_votes) / total
    evidence_bonus = min(1.0, total / params.evidence_saturation)
    confidence = params.margin_weight * margin_ratio + params.evidence_weight * evidence_bonus
    return max(0.0, min(round_half_up(confidence, 2), 1.0))


class TeamInferenceEngine:
    """Breadth-first team propagation from a partial seed map."""

    def __init__(self, params: InferenceParameters | None = None) -> None:
        self.params = params or InferenceParameters()

    def infer(
        self,
        events: Iterable[HitEvent],
        seed_teams: Mapping[str, Team | str],
    ) -> TeamInferenceResult:
        graph = CombatGraph.from_events(events)

        teams: dict[str, Team] = {}
        sources: dict[str, AssignmentSource] = {}
        evidence: dict[str, VoteTally] = {}
        conflicts: list[Conflict] = []

        for user, raw_team in seed_teams.items():
            team = Team.parse(raw_team)
            if team is None:
                continue
            teams[user] = team
            sources[user] = AssignmentSource.SEEDED

        queue: deque[str] = deque(teams)
        visited = set(queue)

        while queue:
            user = queue.popleft()
            user_team = teams[user]
            expected = user_team.opposite()

            for neighbor, edge_count in graph.neighbors(user).items():
                current = teams.get(neighbor)

                if current is None:
                    teams[neighbor] = expected
                    sources[neighbor] = AssignmentSource.INFERRED
                    evidence.setdefault(neighbor, VoteTally()).add(expected, edge_count)
                    if neighbor not in visited:
                        visited.add(neighbor)
                        queue.append(neighbor)
                elif current is not expected:
                    conflicts.append(
                        _edge_conflict(
                            user=user,
                            user_team=user_team,
                            user_source=sources[user],
                            neighbor=neighbor,
                            neighbor_team=current,
                            neighbor_source=sources[neighbor],
                            expected=expected,
                            edge_count=edge_count,
                        )
                    )
                elif sources[neighbor] is AssignmentSource.INFERRED:
                    evidence.setdefault(neighbor, VoteTally()).add(expected, edge_count)

        assignments: dict[str, TeamAssignment] = {}
        for user, team in teams.items():
            if sources[user] is AssignmentSource.SEEDED:
                confidence = 1.0
            else:
                confidence = calculate_confidence(evidence.get(user, VoteTally()), self.params)
            assignments[user] = TeamAssignment(team=team, source=sources[user], confidence=confidence)

        for user, tally in evidence.items():
            conflict = self._evidence_conflict(user, teams[user], tally)
            if conflict is not None:
                conflicts.append(conflict)

        for user in graph.users():
            if user not in assignments:
                assignments[user] = TeamAssignment(
                    team=Team.UNKNOWN,
                    source=AssignmentSource.UNKNOWN,
                    confidence=0.0,
                )

        return TeamInferenceResult(assignments=assignments, conflicts=conflicts, evidence=evidence)

    def _evidence_conflict(self, user: str, assigned: Team, tally: VoteTally) -> Conflict | None:
        alternative = assigned.opposite()
        assigned_votes = tally.votes_for(assigned)
        alternative_votes = tally.votes_for(alternative)
        if alternative_votes <= assigned_votes * self.params.conflict_vote_ratio:
            return None

        return Conflict(
            kind=ConflictKind.EVIDENCE,
            user1=user,
            team1=assigned,
            source1=AssignmentSource.INFERRED,
            user2=None,
            team2=None,
            source2=None,
            expected=alternative,
            edge_count=alternative_votes,
            description=(
                f"{user} was inferred as {assigned.value} but {alternative_votes} edges suggest "
                f"{alternative.value} (only {assigned_votes} suggest {assigned.value})"
            ),
        )


def _edge_conflict(
    *,
    user: str,
    user_team: Team,
    user_source: AssignmentSource,
    neighbor: str,
    neighbor_team: Team,
    neighbor_source: AssignmentSource,
    expected: Team,
    edge_count: int,
) -> Conflict:
    return Conflict(
        kind=ConflictKind.EDGE,
        user1=user,
        team1=user_team,
        source1=user_source,
        user2=neighbor,
        team2=neighbor_team,
        source2=neighbor_source,
        expected=expected,
        edge_count=edge_count,
        description=(
            f"{user} ({user_team.value}, {user_source.value}) hit/was hit by "
            f"{neighbor} ({neighbor_team.value}, {neighbor_source.value}), "
            f"expected {neighbor} to be {expected.value}"
        ),
    )


def infer_teams(
    events: Iterable[HitEvent],
    seed_teams: Mapping[str, Team | str],
    params: InferenceParameters | None = None,
) -> TeamInferenceResult:
    """Run team inference with default or supplied parameters."""
    return TeamInferenceEngine(params).infer(events, seed_teams)
