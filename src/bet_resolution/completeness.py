"""Decide whether a window has elapsed far enough to grade."""

from __future__ import annotations

from dataclasses import dataclass

from bet_resolution.predicates import all_match
from bet_resolution.snapshot import GameSnapshot
from bet_resolution.sports.profile import PeriodDefinition, SportProfile


@dataclass(frozen=True)
class Completeness:
    complete: bool
    reason: str = ""
    missing_periods: tuple[int, ...] = ()


def _summary_has_period(snapshot: GameSnapshot, period: int) -> bool:
    if not snapshot.teams:
        return False
    return all(team.period_score(period) not in (None, "") for team in snapshot.teams)


def _ended_periods(snapshot: GameSnapshot, profile: SportProfile) -> set[int]:
    if not profile.period_end:
        return set()
    return {play.period for play in snapshot.plays if all_match(profile.period_end, play)}


def check_completeness(
    definition: PeriodDefinition,
    snapshot: GameSnapshot,
    profile: SportProfile,
) -> Completeness:
    if definition.kind == "overtime":
        # Whether another period follows is only known once the game is over.
        if snapshot.is_final:
            return Completeness(complete=True)
        return Completeness(
            complete=False,
            reason=f"{definition.key}: game is {snapshot.status}; overtime settles after the final",
        )

    if definition.dynamic:
        if snapshot.is_final or snapshot.plays:
            return Completeness(complete=True)
        return Completeness(
            complete=False,
            reason=f"{definition.key}: game is {snapshot.status} and has no play log yet",
        )

    if snapshot.is_final:
        return Completeness(complete=True)

    ended = _ended_periods(snapshot, profile)
    missing = tuple(
        period
        for period in definition.periods
        if not _summary_has_period(snapshot, period) and period not in ended
    )
    if not missing:
        return Completeness(complete=True)
    listed = ",".join(str(period) for period in missing)
    return Completeness(
        complete=False,
        reason=f"{definition.key}: period(s) {listed} not complete",
        missing_periods=missing,
    )
