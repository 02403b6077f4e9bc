"""Sport profile loader (declarative TOML, validated once at load time)."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any

from bet_resolution.errors import ConfigurationError
from bet_resolution.sports.profile import (
    PREDICATE_OPS,
    EventLogRule,
    MetricRule,
    PeriodDefinition,
    Predicate,
    SportProfile,
    SummaryRule,
)
from bet_resolution.sports.specials import get_special

logger = logging.getLogger(__name__)

BUILTIN_PROFILES_DIR = Path(__file__).resolve().parent / "profiles"

_PERIOD_KINDS = ("static", "full_game", "overtime")
_AGGREGATES = ("count", "sum")
_CREDIT_MODES = ("actor", "against")
_SIDES = ("first", "second")


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        payload = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"failed reading sport profile: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"invalid sport profile TOML: {path}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"sport profile root must be a table: {path}")
    return payload


def _as_table(payload: dict[str, Any], key: str, *, where: str) -> dict[str, Any]:
    value = payload.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{where}: [{key}] must be a table")
    return value


def _as_str(value: Any, *, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return default


def _as_int(value: Any, *, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{where}: expected an integer, got {value!r}")
    return value


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _as_int_tuple(values: Any, *, where: str) -> tuple[int, ...]:
    if values is None:
        return ()
    if not isinstance(values, list):
        raise ConfigurationError(f"{where}: expected a list of period indices")
    out = tuple(_as_int(value, where=where) for value in values)
    if any(value < 1 for value in out):
        raise ConfigurationError(f"{where}: period indices are 1-based")
    return tuple(sorted(set(out)))


def _as_str_tuple(values: Any, *, where: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        raise ConfigurationError(f"{where}: expected a list of strings")
    cleaned = tuple(str(value).strip() for value in values if str(value).strip())
    return cleaned


def _choice(value: Any, options: tuple[str, ...], *, default: str, where: str) -> str:
    if value is None:
        return default
    if value not in options:
        raise ConfigurationError(f"{where}: {value!r} is not one of {','.join(options)}")
    return str(value)


def _parse_predicates(raw: Any, *, where: str) -> tuple[Predicate, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError(f"{where}: predicates must be a list of tables")
    predicates: list[Predicate] = []
    for idx, item in enumerate(raw):
        item_where = f"{where}.predicates[{idx}]"
        if not isinstance(item, dict):
            raise ConfigurationError(f"{item_where}: predicate must be a table")
        field_name = _as_str(item.get("field"), default="")
        if not field_name:
            raise ConfigurationError(f"{item_where}: field is required")
        if "value" not in item:
            raise ConfigurationError(f"{item_where}: value is required")
        op = _choice(item.get("op"), PREDICATE_OPS, default="equals", where=item_where)
        predicates.append(
            Predicate(
                field=field_name,
                op=op,  # type: ignore[arg-type]
                value=tuple(item["value"]) if isinstance(item["value"], list) else item["value"],
                negate=_as_bool(item.get("negate"), default=False),
            )
        )
    return tuple(predicates)


def _parse_period(raw: Any, *, where: str) -> PeriodDefinition:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{where}: period must be a table")
    key = _as_str(raw.get("key"), default="")
    if not key:
        raise ConfigurationError(f"{where}: key is required")
    kind = _choice(raw.get("kind"), _PERIOD_KINDS, default="static", where=where)
    periods = _as_int_tuple(raw.get("periods"), where=f"{where}.periods")
    if kind == "static" and not periods:
        raise ConfigurationError(f"{where}: static period {key} needs period indices")
    return PeriodDefinition(
        key=key,
        label=_as_str(raw.get("label"), default=key),
        kind=kind,  # type: ignore[arg-type]
        periods=periods,
        fallback=_as_int_tuple(raw.get("fallback"), where=f"{where}.fallback"),
    )


def _parse_summary(raw: Any, *, where: str) -> SummaryRule | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{where}: summary rule must be a table")
    special = raw.get("special")
    if special is not None:
        get_special(str(special))
    side = raw.get("side")
    rule = SummaryRule(
        field=_as_str(raw.get("field"), default=""),
        side=_choice(side, _SIDES, default="", where=where) or None,  # type: ignore[arg-type]
        special=str(special) if special is not None else None,
        groups=_as_str_tuple(raw.get("groups"), where=f"{where}.groups"),
    )
    if not rule.field and rule.special is None:
        raise ConfigurationError(f"{where}: summary rule needs a field or a special strategy")
    return rule


def _parse_event_log(raw: Any, *, where: str) -> EventLogRule | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{where}: event_log rule must be a table")
    aggregate = _choice(raw.get("aggregate"), _AGGREGATES, default="count", where=where)
    sum_field = _as_str(raw.get("sum_field"), default="")
    if aggregate == "sum" and not sum_field:
        raise ConfigurationError(f"{where}: sum aggregation needs sum_field")
    role_index = raw.get("role_index", 0)
    return EventLogRule(
        aggregate=aggregate,  # type: ignore[arg-type]
        predicates=_parse_predicates(raw.get("predicates"), where=where),
        sum_field=sum_field,
        roles=_as_str_tuple(raw.get("roles"), where=f"{where}.roles"),
        role_index=_as_int(role_index, where=f"{where}.role_index"),
        opponent_check=_as_bool(raw.get("opponent_check"), default=False),
        credit=_choice(  # type: ignore[arg-type]
            raw.get("credit"), _CREDIT_MODES, default="actor", where=where
        ),
    )


def _parse_metric(key: str, raw: Any, *, where: str) -> MetricRule:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{where}: metric must be a table")
    rule = MetricRule(
        key=key,
        label=_as_str(raw.get("label"), default=key),
        team_summary=_parse_summary(raw.get("team"), where=f"{where}.team"),
        player_summary=_parse_summary(raw.get("player"), where=f"{where}.player"),
        event_log=_parse_event_log(raw.get("event_log"), where=f"{where}.event_log"),
        sum_of=_as_str_tuple(raw.get("sum_of"), where=f"{where}.sum_of"),
    )
    if rule.player_summary is not None and rule.player_summary.special is not None:
        raise ConfigurationError(f"{where}.player: special strategies apply to team rows only")
    if len(rule.sum_of) == 1:
        raise ConfigurationError(f"{where}: sum_of needs at least two component metrics")
    return rule


def _check_derived(metrics: dict[str, MetricRule], *, where: str) -> None:
    def visit(key: str, trail: tuple[str, ...]) -> None:
        if key in trail:
            cycle = " -> ".join((*trail, key))
            raise ConfigurationError(f"{where}: derived metric cycle {cycle}")
        rule = metrics.get(key)
        if rule is None:
            raise ConfigurationError(f"{where}: {trail[-1]} derives from unknown metric {key}")
        for component in rule.sum_of:
            visit(component, (*trail, key))

    for key in metrics:
        visit(key, ())


def profile_from_mapping(payload: dict[str, Any], *, source: str = "<memory>") -> SportProfile:
    """Validate a parsed profile table and build the immutable ``SportProfile``."""
    sport_key = _as_str(payload.get("sport_key"), default="").lower()
    if not sport_key:
        raise ConfigurationError(f"{source}: sport_key is required")
    regulation = _as_int(payload.get("regulation_periods"), where=f"{source}.regulation_periods")
    if regulation < 1:
        raise ConfigurationError(f"{source}: regulation_periods must be positive")

    raw_periods = payload.get("periods", [])
    if not isinstance(raw_periods, list) or not raw_periods:
        raise ConfigurationError(f"{source}: at least one [[periods]] entry is required")
    periods = tuple(
        _parse_period(raw, where=f"{source}.periods[{idx}]") for idx, raw in enumerate(raw_periods)
    )
    keys = [definition.key for definition in periods]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        raise ConfigurationError(f"{source}: duplicate period keys: {','.join(duplicates)}")

    raw_metrics = _as_table(payload, "metrics", where=source)
    metrics = {
        key: _parse_metric(key, raw, where=f"{source}.metrics.{key}")
        for key, raw in raw_metrics.items()
    }
    _check_derived(metrics, where=source)

    period_end = _as_table(payload, "period_end", where=source)
    return SportProfile(
        sport_key=sport_key,
        display_name=_as_str(payload.get("display_name"), default=sport_key.title()),
        regulation_periods=regulation,
        periods=periods,
        metrics=MappingProxyType(metrics),
        period_end=_parse_predicates(period_end.get("predicates"), where=f"{source}.period_end"),
    )


def load_profile(path: Path) -> SportProfile:
    """Load one sport profile TOML file."""
    source = path.expanduser().resolve()
    profile = profile_from_mapping(_read_toml(source), source=str(source))
    logger.debug(
        "loaded sport profile %s from %s (%d metrics)",
        profile.sport_key,
        source,
        len(profile.metrics),
    )
    return profile


def load_profiles_dir(directory: Path) -> list[SportProfile]:
    """Load every ``*.toml`` profile in a directory, in file-name order."""
    root = directory.expanduser()
    if not root.is_dir():
        raise ConfigurationError(f"sport profile directory not found: {root}")
    return [load_profile(path) for path in sorted(root.glob("*.toml"))]
