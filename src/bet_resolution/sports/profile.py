"""Sport profile types: period taxonomy and per-metric extraction rules."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from bet_resolution.errors import UnsupportedBetError
from bet_resolution.util.parsing import CompoundSide

PeriodKind = Literal["static", "full_game", "overtime"]
PredicateOp = Literal["equals", "includes", "starts_with", "gt", "gte", "lt", "lte"]
Aggregate = Literal["count", "sum"]
CreditMode = Literal["actor", "against"]

PREDICATE_OPS: tuple[str, ...] = ("equals", "includes", "starts_with", "gt", "gte", "lt", "lte")


@dataclass(frozen=True)
class PeriodDefinition:
    key: str
    label: str
    kind: PeriodKind = "static"
    periods: tuple[int, ...] = ()
    fallback: tuple[int, ...] = ()

    @property
    def dynamic(self) -> bool:
        return self.kind != "static"


@dataclass(frozen=True)
class Predicate:
    field: str
    op: PredicateOp
    value: Any
    negate: bool = False


@dataclass(frozen=True)
class SummaryRule:
    field: str = ""
    side: CompoundSide | None = None
    special: str | None = None
    groups: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventLogRule:
    aggregate: Aggregate
    predicates: tuple[Predicate, ...] = ()
    sum_field: str = ""
    roles: tuple[str, ...] = ()
    role_index: int = 0
    opponent_check: bool = False
    credit: CreditMode = "actor"


@dataclass(frozen=True)
class MetricRule:
    key: str
    label: str
    team_summary: SummaryRule | None = None
    player_summary: SummaryRule | None = None
    event_log: EventLogRule | None = None
    sum_of: tuple[str, ...] = ()

    def summary_for(self, subject_type: str) -> SummaryRule | None:
        return self.team_summary if subject_type == "TEAM" else self.player_summary


@dataclass(frozen=True)
class SportProfile:
    sport_key: str
    display_name: str
    regulation_periods: int
    periods: tuple[PeriodDefinition, ...]
    metrics: Mapping[str, MetricRule] = field(default_factory=lambda: MappingProxyType({}))
    period_end: tuple[Predicate, ...] = ()

    def period(self, key: str) -> PeriodDefinition:
        for definition in self.periods:
            if definition.key == key:
                return definition
        options = ",".join(definition.key for definition in self.periods)
        raise UnsupportedBetError(
            f"time period {key!r} is not defined for {self.sport_key} (options: {options})"
        )

    def metric(self, key: str) -> MetricRule:
        rule = self.metrics.get(key)
        if rule is None:
            options = ",".join(sorted(self.metrics))
            raise UnsupportedBetError(
                f"metric {key!r} is not configured for {self.sport_key} (options: {options})"
            )
        return rule
