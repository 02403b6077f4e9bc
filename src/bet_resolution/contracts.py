"""Typed contracts for snapshot and result payloads exchanged with collaborators."""

from __future__ import annotations

from typing import Any, TypedDict


class TeamPayload(TypedDict, total=False):
    """Summary row for one side of the contest."""

    team_id: str
    score: Any
    period_scores: list[Any]
    statistics: dict[str, Any]


class PlayerPayload(TypedDict, total=False):
    """Summary row for one player; ``group`` separates e.g. goalies from skaters."""

    player_id: str
    team_id: str
    group: str
    stats: dict[str, Any]


class ParticipantPayload(TypedDict, total=False):
    id: str
    role: str


class PlayPayload(TypedDict, total=False):
    """One event-log entry. ``fields`` holds predicate targets and numeric payloads."""

    period: Any
    wallclock: str
    team_id: str
    participants: list[ParticipantPayload | str]
    fields: dict[str, Any]


class SnapshotPayload(TypedDict, total=False):
    """Provider-neutral contest snapshot consumed by ``snapshot_from_payload``."""

    game_id: str
    status: str
    start_time: str
    completed_at: str
    teams: list[TeamPayload]
    players: list[PlayerPayload]
    plays: list[PlayPayload]


class ResultPayload(TypedDict, total=False):
    """JSON projection of a resolution result handed to the persistence layer."""

    status: str
    outcome: str | None
    reason: str
    event_time: str | None
    resolved_at: str | None
    resolved_at_source: str | None
    window: str | None
    stat_snapshot: dict[str, Any]
    context: dict[str, Any]
