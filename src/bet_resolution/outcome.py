"""Grade a bet from its extracted stats."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bet_resolution.errors import UnsupportedBetError
from bet_resolution.extract import Extraction, extract_stat_detail
from bet_resolution.models import ComparisonBet, EventBet, Outcome, Participant, ThresholdBet
from bet_resolution.snapshot import GameSnapshot
from bet_resolution.sports.profile import SportProfile

EVENT_CATEGORIES: tuple[str, ...] = ("points", "rebounds", "assists")
DOUBLE_DIGITS = 10.0


@dataclass(frozen=True)
class OutcomeDecision:
    outcome: Outcome
    reason: str
    stat_snapshot: dict[str, Any] = field(default_factory=dict)


EventHandler = Callable[[EventBet, GameSnapshot, SportProfile], OutcomeDecision]


def _participant_audit(
    participant: Participant, extraction: Extraction, *, adjusted: float | None = None
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "subject_type": participant.subject_type,
        "subject_id": participant.subject_id,
        "metric": participant.metric,
        "time_period": participant.time_period,
        "periods": list(extraction.periods),
        "stat": extraction.value,
        "source": extraction.source,
    }
    if adjusted is not None:
        row["adjusted_stat"] = adjusted
    if extraction.reason:
        row["reason"] = extraction.reason
    return row


def _void(
    extraction: Extraction, participant: Participant, audit: dict[str, Any]
) -> OutcomeDecision:
    return OutcomeDecision(
        outcome=Outcome.VOID,
        reason=(
            f"{participant.metric} unavailable for {participant.subject_type} "
            f"{participant.subject_id}: {extraction.reason}"
        ),
        stat_snapshot=audit,
    )


def _resolve_comparison(
    bet: ComparisonBet, snapshot: GameSnapshot, profile: SportProfile
) -> OutcomeDecision:
    first = extract_stat_detail(bet.participant_1, snapshot, profile)
    second = extract_stat_detail(bet.participant_2, snapshot, profile)
    adjusted = first.value
    if bet.spread is not None and first.available:
        adjusted = bet.spread.apply(first.value)

    audit: dict[str, Any] = {
        "participant_1": _participant_audit(bet.participant_1, first, adjusted=adjusted),
        "participant_2": _participant_audit(bet.participant_2, second),
        "operator": bet.operator,
        "spread": bet.spread.model_dump() if bet.spread is not None else None,
    }
    if not first.available or adjusted is None:
        return _void(first, bet.participant_1, audit)
    if not second.available:
        return _void(second, bet.participant_2, audit)

    right = second.value
    if adjusted > right:
        outcome = Outcome.WIN
    elif adjusted < right:
        outcome = Outcome.LOSS
    elif bet.operator == "GREATER_THAN":
        outcome = Outcome.PUSH
    else:
        outcome = Outcome.WIN
    return OutcomeDecision(
        outcome=outcome,
        reason=f"{bet.operator}: {adjusted:g} vs {right:g}",
        stat_snapshot=audit,
    )


def _resolve_threshold(
    bet: ThresholdBet, snapshot: GameSnapshot, profile: SportProfile
) -> OutcomeDecision:
    extraction = extract_stat_detail(bet.participant, snapshot, profile)
    audit: dict[str, Any] = {
        "participant": _participant_audit(bet.participant, extraction),
        "operator": bet.operator,
        "threshold": bet.threshold,
    }
    if not extraction.available:
        return _void(extraction, bet.participant, audit)
    value = extraction.value

    line = bet.threshold
    if value == line:
        outcome = Outcome.PUSH
    elif (value > line) == (bet.operator == "OVER"):
        outcome = Outcome.WIN
    else:
        outcome = Outcome.LOSS
    return OutcomeDecision(
        outcome=outcome,
        reason=f"{bet.operator} {line:g}: {value:g}",
        stat_snapshot=audit,
    )


def _double_digit_event(required: int) -> EventHandler:
    def handler(bet: EventBet, snapshot: GameSnapshot, profile: SportProfile) -> OutcomeDecision:
        for category in EVENT_CATEGORIES:
            profile.metric(category)
        stats: dict[str, float | None] = {}
        periods: list[int] = []
        for category in EVENT_CATEGORIES:
            participant = bet.participant.model_copy(
                update={"metric": category, "time_period": bet.time_period}
            )
            extraction = extract_stat_detail(participant, snapshot, profile)
            stats[category] = extraction.value
            periods = list(extraction.periods)
            if not extraction.available:
                audit = {
                    "participant": _participant_audit(participant, extraction),
                    "event_type": bet.event_type,
                    "stats": stats,
                }
                return _void(extraction, participant, audit)

        hits = [
            name for name, value in stats.items() if value is not None and value >= DOUBLE_DIGITS
        ]
        audit = {
            "participant": {
                "subject_type": bet.participant.subject_type,
                "subject_id": bet.participant.subject_id,
                "time_period": bet.time_period,
                "periods": periods,
            },
            "event_type": bet.event_type,
            "stats": stats,
            "categories_at_least_10": hits,
        }
        outcome = Outcome.WIN if len(hits) >= required else Outcome.LOSS
        return OutcomeDecision(
            outcome=outcome,
            reason=f"{bet.event_type}: {len(hits)} of {len(EVENT_CATEGORIES)} categories at 10+",
            stat_snapshot=audit,
        )

    return handler


EVENT_HANDLERS: dict[str, EventHandler] = {
    "DOUBLE_DOUBLE": _double_digit_event(2),
    "TRIPLE_DOUBLE": _double_digit_event(3),
}


def _resolve_event(bet: EventBet, snapshot: GameSnapshot, profile: SportProfile) -> OutcomeDecision:
    handler = EVENT_HANDLERS.get(bet.event_type.strip().upper())
    if handler is None:
        options = ",".join(sorted(EVENT_HANDLERS))
        raise UnsupportedBetError(f"unsupported event type: {bet.event_type} (options: {options})")
    return handler(bet, snapshot, profile)


def resolve_outcome(
    bet: ComparisonBet | ThresholdBet | EventBet,
    snapshot: GameSnapshot,
    profile: SportProfile,
) -> OutcomeDecision:
    match bet:
        case ComparisonBet():
            return _resolve_comparison(bet, snapshot, profile)
        case ThresholdBet():
            return _resolve_threshold(bet, snapshot, profile)
        case EventBet():
            return _resolve_event(bet, snapshot, profile)
    raise UnsupportedBetError(f"unsupported bet type: {type(bet).__name__}")
