"""Named summary-table strategies for values no single stat field holds."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from bet_resolution.errors import ConfigurationError
from bet_resolution.snapshot import GameSnapshot
from bet_resolution.sports.profile import SummaryRule
from bet_resolution.util.parsing import safe_float

FullGameFn = Callable[[GameSnapshot, str, SummaryRule], float | None]
PeriodFn = Callable[[GameSnapshot, str, tuple[int, ...]], float | None]


@dataclass(frozen=True)
class SpecialStrategy:
    """A team-level summary strategy; ``by_periods`` is set when per-period rows exist."""

    name: str
    full_game: FullGameFn
    by_periods: PeriodFn | None = None


def final_score(snapshot: GameSnapshot, team_id: str, rule: SummaryRule) -> float | None:
    team = snapshot.team(team_id)
    if team is None:
        return None
    return safe_float(team.score)


def final_score_by_periods(
    snapshot: GameSnapshot, team_id: str, periods: tuple[int, ...]
) -> float | None:
    team = snapshot.team(team_id)
    if team is None or not periods:
        return None
    total = 0.0
    for period in periods:
        value = safe_float(team.period_score(period))
        if value is None:
            return None
        total += value
    return total


def sum_player_field(snapshot: GameSnapshot, team_id: str, rule: SummaryRule) -> float | None:
    """Team total of a per-player field over the team's rows in the rule's groups."""
    if not rule.field:
        return None
    allowed = set(rule.groups)
    total = 0.0
    seen = False
    for player in snapshot.players:
        if player.team_id != str(team_id):
            continue
        if allowed and player.group not in allowed:
            continue
        if rule.field not in player.stats:
            continue
        value = safe_float(player.stats[rule.field])
        if value is None:
            return None
        total += value
        seen = True
    return total if seen else None


SPECIAL_STRATEGIES: dict[str, SpecialStrategy] = {
    strategy.name: strategy
    for strategy in (
        SpecialStrategy(
            name="final_score", full_game=final_score, by_periods=final_score_by_periods
        ),
        SpecialStrategy(name="sum_player_field", full_game=sum_player_field),
    )
}


def get_special(name: str) -> SpecialStrategy:
    strategy = SPECIAL_STRATEGIES.get(name)
    if strategy is None:
        options = ",".join(sorted(SPECIAL_STRATEGIES))
        raise ConfigurationError(f"unknown special strategy: {name} (options: {options})")
    return strategy
