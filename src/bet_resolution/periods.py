"""Map a window key onto the concrete period indices it covers for one game."""

from __future__ import annotations

from bet_resolution.snapshot import GameSnapshot
from bet_resolution.sports.profile import PeriodDefinition


def discover_max_period(snapshot: GameSnapshot) -> int:
    """Highest period index seen in per-period team scores or the play log (0 if none)."""
    highest = 0
    for team in snapshot.teams:
        highest = max(highest, len(team.period_scores))
    for play in snapshot.plays:
        highest = max(highest, play.period)
    return highest


def resolve_periods(
    definition: PeriodDefinition, snapshot: GameSnapshot, regulation_periods: int
) -> tuple[int, ...]:
    """Ascending unique period indices for ``definition`` in ``snapshot``.

    Overtime resolves to an empty tuple when the game never went past regulation.
    """
    if not definition.dynamic:
        return definition.periods

    highest = discover_max_period(snapshot)
    if highest == 0:
        return definition.fallback
    if definition.kind == "overtime":
        return tuple(range(regulation_periods + 1, highest + 1))
    return tuple(range(1, highest + 1))
