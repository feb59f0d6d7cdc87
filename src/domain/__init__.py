"""Hit-log analysis domain modules."""

from domain.common import AssignmentSource, HitEvent, Team

__all__ = ["AssignmentSource", "HitEvent", "Team"]
