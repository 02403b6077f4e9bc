"""Bet definitions and resolution results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from bet_resolution.contracts import ResultPayload
from bet_resolution.time_utils import iso_z

SubjectType = Literal["TEAM", "PLAYER"]
ComparisonOperator = Literal["GREATER_THAN", "GREATER_EQUAL"]
ThresholdOperator = Literal["OVER", "UNDER"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Participant(_Frozen):
    subject_type: SubjectType
    subject_id: str
    subject_name: str = ""
    metric: str = ""
    time_period: str = "FULL_GAME"

    @field_validator("subject_id", mode="before")
    @classmethod
    def _coerce_subject_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Spread(_Frozen):
    direction: Literal["+", "-"]
    value: float

    @field_validator("value")
    @classmethod
    def _finite_non_negative(cls, value: float) -> float:
        if not math.isfinite(value) or value < 0:
            raise ValueError("spread value must be a finite non-negative number")
        return value

    def apply(self, stat: float) -> float:
        return stat + self.value if self.direction == "+" else stat - self.value


class ComparisonBet(_Frozen):
    type: Literal["COMPARISON"] = "COMPARISON"
    participant_1: Participant
    participant_2: Participant
    operator: ComparisonOperator
    spread: Spread | None = None


class ThresholdBet(_Frozen):
    type: Literal["THRESHOLD"] = "THRESHOLD"
    participant: Participant
    operator: ThresholdOperator
    threshold: float

    @field_validator("threshold")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("threshold must be finite")
        return value


class EventBet(_Frozen):
    type: Literal["EVENT"] = "EVENT"
    participant: Participant
    event_type: str
    time_period: str = "FULL_GAME"


BetDefinition = Annotated[ComparisonBet | ThresholdBet | EventBet, Field(discriminator="type")]

_BET_ADAPTER: TypeAdapter[ComparisonBet | ThresholdBet | EventBet] = TypeAdapter(BetDefinition)


def parse_bet_definition(payload: Any) -> ComparisonBet | ThresholdBet | EventBet:
    """Validate a bet config dict (or pass through an already-built definition)."""
    if isinstance(payload, (ComparisonBet, ThresholdBet, EventBet)):
        return payload
    return _BET_ADAPTER.validate_python(payload)


def bet_windows(bet: ComparisonBet | ThresholdBet | EventBet) -> tuple[str, ...]:
    """Windows the bet needs graded, in participant order and without duplicates."""
    match bet:
        case ComparisonBet():
            windows = [bet.participant_1.time_period, bet.participant_2.time_period]
        case ThresholdBet():
            windows = [bet.participant.time_period]
        case EventBet():
            windows = [bet.time_period]
    return tuple(dict.fromkeys(windows))


def bet_metrics(bet: ComparisonBet | ThresholdBet | EventBet) -> tuple[str, ...]:
    match bet:
        case ComparisonBet():
            metrics = [bet.participant_1.metric, bet.participant_2.metric]
        case ThresholdBet():
            metrics = [bet.participant.metric]
        case EventBet():
            metrics = [bet.event_type]
    return tuple(dict.fromkeys(metrics))


class Outcome(StrEnum):
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    VOID = "void"


class ResolutionStatus(StrEnum):
    RESOLVED = "resolved"
    NOT_YET_RESOLVABLE = "not_yet_resolvable"
    UNSUPPORTED = "unsupported"
    ERROR = "error"


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of one resolution attempt; build through the status constructors."""

    status: ResolutionStatus
    outcome: Outcome | None
    reason: str
    window: str | None = None
    event_time: datetime | None = None
    resolved_at: datetime | None = None
    resolved_at_source: str | None = None
    stat_snapshot: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    @classmethod
    def resolved_with(
        cls,
        *,
        outcome: Outcome,
        reason: str,
        window: str,
        event_time: datetime,
        resolved_at: datetime,
        resolved_at_source: str,
        stat_snapshot: dict[str, Any],
        context: dict[str, Any],
    ) -> ResolutionResult:
        return cls(
            status=ResolutionStatus.RESOLVED,
            outcome=outcome,
            reason=reason,
            window=window,
            event_time=event_time,
            resolved_at=resolved_at,
            resolved_at_source=resolved_at_source,
            stat_snapshot=stat_snapshot,
            context=context,
        )

    @classmethod
    def not_yet_resolvable(
        cls, *, reason: str, window: str, context: dict[str, Any]
    ) -> ResolutionResult:
        return cls(
            status=ResolutionStatus.NOT_YET_RESOLVABLE,
            outcome=None,
            reason=reason,
            window=window,
            context=context,
        )

    @classmethod
    def unsupported(
        cls, *, reason: str, window: str | None, context: dict[str, Any]
    ) -> ResolutionResult:
        return cls(
            status=ResolutionStatus.UNSUPPORTED,
            outcome=Outcome.VOID,
            reason=reason,
            window=window,
            context=context,
        )

    @classmethod
    def error(cls, *, reason: str, window: str | None, context: dict[str, Any]) -> ResolutionResult:
        return cls(
            status=ResolutionStatus.ERROR,
            outcome=None,
            reason=reason,
            window=window,
            context=context,
        )

    def to_dict(self) -> ResultPayload:
        return {
            "status": str(self.status),
            "outcome": str(self.outcome) if self.outcome is not None else None,
            "reason": self.reason,
            "event_time": iso_z(self.event_time) if self.event_time else None,
            "resolved_at": iso_z(self.resolved_at) if self.resolved_at else None,
            "resolved_at_source": self.resolved_at_source,
            "window": self.window,
            "stat_snapshot": self.stat_snapshot,
            "context": self.context,
        }
