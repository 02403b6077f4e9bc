"""Stat extraction for one (subject, metric, window) triple.

Full-game windows read the summary tables; every other window replays the
event log over the periods the window resolves to, one period at a time.
Periods with no plays fall back to the per-period score line where one
exists. A value that cannot be read comes back as ``None`` with a reason,
never as a default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bet_resolution.errors import UnsupportedBetError
from bet_resolution.models import Participant
from bet_resolution.periods import resolve_periods
from bet_resolution.predicates import all_match
from bet_resolution.snapshot import GameSnapshot, Play, PlayParticipant
from bet_resolution.sports.profile import EventLogRule, MetricRule, SportProfile
from bet_resolution.sports.specials import get_special
from bet_resolution.util.parsing import safe_float, split_compound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Extraction:
    value: float | None
    periods: tuple[int, ...] = ()
    source: str = ""
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class _Subject:
    subject_type: str
    subject_id: str

    def __str__(self) -> str:
        return f"{self.subject_type} {self.subject_id}"


def _unavailable(periods: tuple[int, ...], source: str, reason: str) -> Extraction:
    return Extraction(value=None, periods=periods, source=source, reason=reason)


def _derive(
    metric: MetricRule,
    subject: _Subject,
    snapshot: GameSnapshot,
    profile: SportProfile,
    periods: tuple[int, ...],
    *,
    full_game: bool,
) -> Extraction:
    total = 0.0
    for component in metric.sum_of:
        part = _extract(profile.metric(component), subject, snapshot, profile, periods, full_game)
        if part.value is None:
            return _unavailable(
                periods,
                "derived",
                f"{metric.key}: component {component} unavailable ({part.reason})",
            )
        total += part.value
    return Extraction(value=total, periods=periods, source="derived")


def _from_summary(
    metric: MetricRule,
    subject: _Subject,
    snapshot: GameSnapshot,
    profile: SportProfile,
    periods: tuple[int, ...],
) -> Extraction:
    rule = metric.summary_for(subject.subject_type)
    if rule is None:
        if metric.sum_of:
            return _derive(metric, subject, snapshot, profile, periods, full_game=True)
        raise UnsupportedBetError(
            f"metric {metric.key} has no full-game strategy for {subject.subject_type} subjects"
        )

    if rule.special is not None:
        value = get_special(rule.special).full_game(snapshot, subject.subject_id, rule)
        if value is None:
            return _unavailable(periods, "summary", f"{metric.key}: no summary value for {subject}")
        return Extraction(value=value, periods=periods, source="summary")

    if subject.subject_type == "TEAM":
        team = snapshot.team(subject.subject_id)
        stats = team.statistics if team is not None else None
    else:
        player = snapshot.player(subject.subject_id, groups=rule.groups)
        stats = player.stats if player is not None else None
    if stats is None:
        return _unavailable(periods, "summary", f"no summary row for {subject}")

    raw = stats.get(rule.field)
    if raw is None or raw == "":
        if metric.sum_of:
            return _derive(metric, subject, snapshot, profile, periods, full_game=True)
        return _unavailable(periods, "summary", f"{rule.field} missing for {subject}")

    value = split_compound(raw, rule.side) if rule.side is not None else safe_float(raw)
    if value is None:
        return _unavailable(periods, "summary", f"{rule.field}={raw!r} is not numeric")
    return Extraction(value=value, periods=periods, source="summary")


def _from_period_scores(
    metric: MetricRule,
    subject: _Subject,
    snapshot: GameSnapshot,
    periods: tuple[int, ...],
) -> Extraction | None:
    if subject.subject_type != "TEAM" or metric.team_summary is None:
        return None
    special = metric.team_summary.special
    if special is None:
        return None
    by_periods = get_special(special).by_periods
    if by_periods is None:
        return None
    value = by_periods(snapshot, subject.subject_id, periods)
    if value is None:
        return None
    return Extraction(value=value, periods=periods, source="period_scores")


def _credited(play: Play, rule: EventLogRule) -> list[PlayParticipant]:
    if rule.roles:
        return [person for person in play.participants if person.role in rule.roles]
    if 0 <= rule.role_index < len(play.participants):
        return [play.participants[rule.role_index]]
    return []


def _team_of(person: PlayParticipant, play: Play, team_index: dict[str, str]) -> str:
    return team_index.get(person.player_id) or play.team_id


def _acting_team(play: Play, team_index: dict[str, str]) -> str:
    if play.team_id:
        return play.team_id
    if play.participants:
        return team_index.get(play.participants[0].player_id, "")
    return ""


def _credits_subject(
    play: Play,
    rule: EventLogRule,
    subject: _Subject,
    snapshot: GameSnapshot,
    team_index: dict[str, str],
) -> bool:
    if rule.credit == "against":
        if subject.subject_type == "TEAM":
            subject_team = subject.subject_id
        else:
            subject_team = team_index.get(subject.subject_id, "")
        acting = _acting_team(play, team_index)
        if not subject_team or not acting:
            return False
        opponent = snapshot.opponent_of(subject_team)
        if opponent is not None:
            return acting == opponent
        return acting != subject_team

    credited = _credited(play, rule)
    if rule.opponent_check:
        if not play.participants or not credited:
            return False
        actor_team = _team_of(play.participants[0], play, team_index)
        credited_team = team_index.get(credited[0].player_id, "")
        if not actor_team or not credited_team or actor_team == credited_team:
            return False

    if subject.subject_type == "PLAYER":
        return any(person.player_id == subject.subject_id for person in credited)
    if not credited:
        return play.team_id == subject.subject_id
    return any(_team_of(person, play, team_index) == subject.subject_id for person in credited)


def _from_event_log(
    metric: MetricRule,
    subject: _Subject,
    snapshot: GameSnapshot,
    profile: SportProfile,
    periods: tuple[int, ...],
) -> Extraction:
    rule = metric.event_log
    if rule is None:
        if metric.sum_of:
            return _derive(metric, subject, snapshot, profile, periods, full_game=False)
        fallback = _from_period_scores(metric, subject, snapshot, periods)
        if fallback is not None:
            return fallback
        raise UnsupportedBetError(
            f"metric {metric.key} has no period-level strategy for {subject.subject_type} subjects"
        )

    if not periods:
        return _unavailable(periods, "event_log", "window was not played")

    team_index = snapshot.player_team_index()
    total = 0.0
    sources: set[str] = set()
    unlogged: list[int] = []
    # Each period is read on its own so a window always equals the sum of its periods.
    for period in periods:
        plays = snapshot.plays_in((period,))
        if not plays:
            fallback = _from_period_scores(metric, subject, snapshot, (period,))
            if fallback is None or fallback.value is None:
                unlogged.append(period)
                continue
            total += fallback.value
            sources.add(fallback.source)
            continue
        for play in plays:
            if not all_match(rule.predicates, play):
                continue
            if not _credits_subject(play, rule, subject, snapshot, team_index):
                continue
            if rule.aggregate == "count":
                total += 1.0
                continue
            amount = safe_float(play.field(rule.sum_field))
            if amount is None:
                return _unavailable(
                    periods, "event_log", f"{rule.sum_field} is not numeric in period {period}"
                )
            total += amount
        sources.add("event_log")

    if unlogged:
        listed = ",".join(str(period) for period in unlogged)
        return _unavailable(periods, "event_log", f"no plays logged for period(s) {listed}")
    source = sources.pop() if len(sources) == 1 else "event_log+period_scores"
    return Extraction(value=total, periods=periods, source=source)


def _extract(
    metric: MetricRule,
    subject: _Subject,
    snapshot: GameSnapshot,
    profile: SportProfile,
    periods: tuple[int, ...],
    full_game: bool,
) -> Extraction:
    if full_game:
        return _from_summary(metric, subject, snapshot, profile, periods)
    return _from_event_log(metric, subject, snapshot, profile, periods)


def extract_stat_detail(
    participant: Participant,
    snapshot: GameSnapshot,
    profile: SportProfile,
) -> Extraction:
    metric = profile.metric(participant.metric)
    definition = profile.period(participant.time_period)
    periods = resolve_periods(definition, snapshot, profile.regulation_periods)
    subject = _Subject(participant.subject_type, participant.subject_id)
    result = _extract(
        metric,
        subject,
        snapshot,
        profile,
        periods,
        definition.kind == "full_game",
    )
    logger.debug(
        "extracted %s %s %s over %s: %s (%s)",
        subject,
        metric.key,
        definition.key,
        periods,
        result.value,
        result.reason or result.source,
    )
    return result


def extract_stat(
    participant: Participant,
    snapshot: GameSnapshot,
    profile: SportProfile,
) -> float | None:
    """Value for one participant, or None when it cannot be read from the snapshot."""
    return extract_stat_detail(participant, snapshot, profile).value
