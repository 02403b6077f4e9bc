"""Immutable contest snapshot consumed by the resolution engine."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from bet_resolution.contracts import SnapshotPayload
from bet_resolution.time_utils import coerce_utc
from bet_resolution.util.parsing import safe_int


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


class GameStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


_STATUS_ALIASES = {
    "final": GameStatus.FINAL,
    "post": GameStatus.FINAL,
    "completed": GameStatus.FINAL,
    "complete": GameStatus.FINAL,
    "in_progress": GameStatus.IN_PROGRESS,
    "in": GameStatus.IN_PROGRESS,
    "live": GameStatus.IN_PROGRESS,
    "scheduled": GameStatus.SCHEDULED,
    "pre": GameStatus.SCHEDULED,
}


def normalize_status(value: Any) -> GameStatus:
    """Map provider status text onto a ``GameStatus``; unknown text counts as scheduled."""
    if isinstance(value, GameStatus):
        return value
    cleaned = str(value or "").strip().lower().replace(" ", "_").replace("-", "_")
    if cleaned.startswith("final"):
        return GameStatus.FINAL
    return _STATUS_ALIASES.get(cleaned, GameStatus.SCHEDULED)


@dataclass(frozen=True)
class TeamLine:
    team_id: str
    score: Any = None
    period_scores: tuple[Any, ...] = ()
    statistics: Mapping[str, Any] = field(default_factory=_empty)

    def period_score(self, period: int) -> Any:
        """Raw score for a 1-based period index, or None when the period is absent."""
        if period < 1 or period > len(self.period_scores):
            return None
        return self.period_scores[period - 1]


@dataclass(frozen=True)
class PlayerLine:
    player_id: str
    team_id: str = ""
    group: str = ""
    stats: Mapping[str, Any] = field(default_factory=_empty)


@dataclass(frozen=True)
class PlayParticipant:
    player_id: str
    role: str | None = None


@dataclass(frozen=True)
class Play:
    period: int
    wallclock: datetime | None = None
    team_id: str = ""
    participants: tuple[PlayParticipant, ...] = ()
    fields: Mapping[str, Any] = field(default_factory=_empty)

    def field(self, name: str) -> Any:
        """Look up a predicate target; dotted names walk nested mappings."""
        if name == "participant_count":
            return len(self.participants)
        if name in self.fields:
            return self.fields[name]
        current: Any = self.fields
        for part in name.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return None
            current = current[part]
        return current


@dataclass(frozen=True)
class GameSnapshot:
    game_id: str
    status: GameStatus
    start_time: datetime | None = None
    completed_at: datetime | None = None
    teams: tuple[TeamLine, ...] = ()
    players: tuple[PlayerLine, ...] = ()
    plays: tuple[Play, ...] = ()

    @property
    def is_final(self) -> bool:
        return self.status == GameStatus.FINAL

    def team(self, team_id: str) -> TeamLine | None:
        for team in self.teams:
            if team.team_id == str(team_id):
                return team
        return None

    def opponent_of(self, team_id: str) -> str | None:
        """Return the other side's team id in a two-sided contest."""
        others = [team.team_id for team in self.teams if team.team_id != str(team_id)]
        if len(others) != 1 or len(self.teams) != 2:
            return None
        return others[0]

    def player(self, player_id: str, *, groups: Iterable[str] = ()) -> PlayerLine | None:
        allowed = set(groups)
        for player in self.players:
            if player.player_id != str(player_id):
                continue
            if allowed and player.group not in allowed:
                continue
            return player
        return None

    def player_team_index(self) -> dict[str, str]:
        return {player.player_id: player.team_id for player in self.players if player.team_id}

    def plays_in(self, periods: Iterable[int]) -> list[Play]:
        wanted = set(periods)
        return [play for play in self.plays if play.period in wanted]


def _as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return MappingProxyType(dict(value))
    return _empty()


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _parse_participants(raw: Any) -> tuple[PlayParticipant, ...]:
    participants: list[PlayParticipant] = []
    for item in _as_list(raw):
        if isinstance(item, Mapping):
            player_id = str(item.get("id", "") or item.get("player_id", "")).strip()
            role = item.get("role")
            participants.append(
                PlayParticipant(
                    player_id=player_id,
                    role=str(role).strip() if role not in (None, "") else None,
                )
            )
        elif isinstance(item, (str, int)) and not isinstance(item, bool):
            participants.append(PlayParticipant(player_id=str(item).strip()))
    return tuple(participants)


def snapshot_from_payload(payload: SnapshotPayload | Mapping[str, Any]) -> GameSnapshot:
    """Build a ``GameSnapshot`` from a provider-neutral dict, skipping malformed rows."""
    teams: list[TeamLine] = []
    for row in _as_list(payload.get("teams")):
        if not isinstance(row, Mapping):
            continue
        team_id = str(row.get("team_id", "")).strip()
        if not team_id:
            continue
        teams.append(
            TeamLine(
                team_id=team_id,
                score=row.get("score"),
                period_scores=tuple(_as_list(row.get("period_scores"))),
                statistics=_as_mapping(row.get("statistics")),
            )
        )

    players: list[PlayerLine] = []
    for row in _as_list(payload.get("players")):
        if not isinstance(row, Mapping):
            continue
        player_id = str(row.get("player_id", "")).strip()
        if not player_id:
            continue
        players.append(
            PlayerLine(
                player_id=player_id,
                team_id=str(row.get("team_id", "") or "").strip(),
                group=str(row.get("group", "") or "").strip(),
                stats=_as_mapping(row.get("stats")),
            )
        )

    plays: list[Play] = []
    for row in _as_list(payload.get("plays")):
        if not isinstance(row, Mapping):
            continue
        period = safe_int(row.get("period"))
        if period is None or period < 1:
            continue
        plays.append(
            Play(
                period=period,
                wallclock=coerce_utc(row.get("wallclock")),
                team_id=str(row.get("team_id", "") or "").strip(),
                participants=_parse_participants(row.get("participants")),
                fields=_as_mapping(row.get("fields")),
            )
        )

    return GameSnapshot(
        game_id=str(payload.get("game_id", "")),
        status=normalize_status(payload.get("status")),
        start_time=coerce_utc(payload.get("start_time")),
        completed_at=coerce_utc(payload.get("completed_at")),
        teams=tuple(teams),
        players=tuple(players),
        plays=tuple(plays),
    )
