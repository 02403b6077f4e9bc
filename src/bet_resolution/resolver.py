"""Resolve one bet against one game snapshot."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from bet_resolution.completeness import check_completeness
from bet_resolution.errors import (
    ComputationError,
    ConfigurationError,
    UnknownSportError,
    UnsupportedBetError,
)
from bet_resolution.models import (
    ComparisonBet,
    EventBet,
    ResolutionResult,
    ThresholdBet,
    bet_metrics,
    bet_windows,
    parse_bet_definition,
)
from bet_resolution.outcome import resolve_outcome
from bet_resolution.periods import resolve_periods
from bet_resolution.snapshot import GameSnapshot, Play, snapshot_from_payload
from bet_resolution.sports.profile import PeriodDefinition, SportProfile
from bet_resolution.sports.registry import SportRegistry, current_registry
from bet_resolution.time_utils import coerce_utc, utc_now

logger = logging.getLogger(__name__)

BetInput = ComparisonBet | ThresholdBet | EventBet | Mapping[str, Any]


def _window_plays(
    snapshot: GameSnapshot, profile: SportProfile, definitions: Sequence[PeriodDefinition]
) -> list[Play]:
    periods: set[int] = set()
    for definition in definitions:
        periods.update(resolve_periods(definition, snapshot, profile.regulation_periods))
    return snapshot.plays_in(periods)


def _resolution_time(
    plays: Sequence[Play],
    snapshot: GameSnapshot,
    completed_at: datetime | str | None,
    *,
    bet_id: str | None,
) -> tuple[datetime, str]:
    stamps = [play.wallclock for play in plays if play.wallclock is not None]
    if stamps:
        return max(stamps), "event_log"
    supplied = coerce_utc(completed_at) or snapshot.completed_at
    if supplied is not None:
        return supplied, "completion_time"
    logger.warning(
        "no event or completion time for bet %s in game %s; using current time",
        bet_id,
        snapshot.game_id,
    )
    return utc_now(), "now"


def _event_time(plays: Sequence[Play], snapshot: GameSnapshot, resolved_at: datetime) -> datetime:
    if snapshot.start_time is not None:
        return snapshot.start_time
    stamps = [play.wallclock for play in plays if play.wallclock is not None]
    if stamps:
        return min(stamps)
    return resolved_at


def resolve_bet(
    bet: BetInput,
    snapshot: GameSnapshot | Mapping[str, Any],
    profile: SportProfile,
    *,
    bet_id: str | None = None,
    completed_at: datetime | str | None = None,
) -> ResolutionResult:
    """Grade ``bet`` against ``snapshot``.

    Returns ``not_yet_resolvable`` while any window the bet needs is still open,
    ``unsupported`` when the profile has no way to grade it, and ``error`` for a
    malformed bet or profile. Unexpected failures are raised as
    ``ComputationError`` carrying the bet id, sport and metric.
    """
    context: dict[str, Any] = {"bet_id": bet_id, "sport": profile.sport_key}
    try:
        definition = parse_bet_definition(bet)
    except ValidationError as exc:
        return ResolutionResult.error(
            reason=f"invalid bet definition: {exc.error_count()} validation error(s)",
            window=None,
            context=context,
        )

    context["metric"] = ",".join(bet_metrics(definition))
    windows = bet_windows(definition)
    window = ",".join(windows)
    try:
        game = snapshot if isinstance(snapshot, GameSnapshot) else snapshot_from_payload(snapshot)
        definitions = [profile.period(key) for key in windows]
        for period_definition in definitions:
            gate = check_completeness(period_definition, game, profile)
            if not gate.complete:
                logger.debug("bet %s not yet resolvable: %s", bet_id, gate.reason)
                return ResolutionResult.not_yet_resolvable(
                    reason=gate.reason, window=window, context=context
                )
        decision = resolve_outcome(definition, game, profile)
    except UnsupportedBetError as exc:
        logger.debug("bet %s unsupported: %s", bet_id, exc)
        return ResolutionResult.unsupported(reason=str(exc), window=window, context=context)
    except ConfigurationError as exc:
        return ResolutionResult.error(reason=str(exc), window=window, context=context)
    except Exception as exc:
        raise ComputationError(f"failed resolving bet: {exc}", context=context) from exc

    plays = _window_plays(game, profile, definitions)
    resolved_at, source = _resolution_time(plays, game, completed_at, bet_id=bet_id)
    logger.debug("bet %s resolved %s: %s", bet_id, decision.outcome, decision.reason)
    return ResolutionResult.resolved_with(
        outcome=decision.outcome,
        reason=decision.reason,
        window=window,
        event_time=_event_time(plays, game, resolved_at),
        resolved_at=resolved_at,
        resolved_at_source=source,
        stat_snapshot=decision.stat_snapshot,
        context=context,
    )


def resolve_bet_for_sport(
    bet: BetInput,
    snapshot: GameSnapshot | Mapping[str, Any],
    sport_key: str,
    *,
    registry: SportRegistry | None = None,
    bet_id: str | None = None,
    completed_at: datetime | str | None = None,
) -> ResolutionResult:
    """Look the sport profile up in ``registry`` (default: the current one), then resolve."""
    lookup = registry if registry is not None else current_registry()
    try:
        profile = lookup.get(sport_key)
    except UnknownSportError as exc:
        return ResolutionResult.error(
            reason=str(exc), window=None, context={"bet_id": bet_id, "sport": sport_key}
        )
    return resolve_bet(bet, snapshot, profile, bet_id=bet_id, completed_at=completed_at)
