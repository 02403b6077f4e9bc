from __future__ import annotations

from pathlib import Path

import pytest

from bet_resolution.errors import ConfigurationError, UnsupportedBetError
from bet_resolution.sports.loader import (
    BUILTIN_PROFILES_DIR,
    load_profile,
    load_profiles_dir,
    profile_from_mapping,
)

_CUSTOM_PROFILE = """
sport_key = "Soccer"
regulation_periods = 2

[[periods]]
key = "FULL_GAME"
kind = "full_game"
fallback = [1, 2, 3, 4]

[[periods]]
key = "H1"
label = "1st Half"
periods = [1]

[metrics.goals]
label = "Goals"

[metrics.goals.team]
special = "final_score"

[metrics.goals.event_log]
aggregate = "count"
role_index = 0
predicates = [{ field = "type", value = "goal" }]
"""


def _minimal(**overrides: object) -> dict:
    payload: dict = {
        "sport_key": "test",
        "regulation_periods": 2,
        "periods": [{"key": "FULL_GAME", "kind": "full_game"}],
        "metrics": {"points": {"player": {"field": "points"}}},
    }
    payload.update(overrides)
    return payload


def test_builtin_profiles_load() -> None:
    profiles = {profile.sport_key: profile for profile in load_profiles_dir(BUILTIN_PROFILES_DIR)}

    assert sorted(profiles) == ["basketball", "hockey"]
    basketball = profiles["basketball"]
    assert basketball.regulation_periods == 4
    assert [definition.key for definition in basketball.periods] == [
        "FULL_GAME",
        "Q1",
        "Q2",
        "Q3",
        "Q4",
        "H1",
        "H2",
        "OT",
    ]
    assert basketball.period("H2").periods == (3, 4)
    assert basketball.metric("points_rebounds_assists").sum_of == (
        "points",
        "rebounds",
        "assists",
    )
    hockey = profiles["hockey"]
    assert hockey.regulation_periods == 3
    assert hockey.period("OT").kind == "overtime"
    assert hockey.metric("saves").player_summary is not None
    assert hockey.metric("saves").player_summary.groups == ("goalies",)


def test_builtin_predicates_are_parsed() -> None:
    basketball = load_profile(BUILTIN_PROFILES_DIR / "basketball.toml")

    rule = basketball.metric("field_goals_made").event_log
    assert rule is not None
    made, value, not_free_throw = rule.predicates
    assert made.op == "equals" and made.value is True
    assert value.value == (2, 3)
    assert not_free_throw.op == "starts_with" and not_free_throw.negate is True
    assert basketball.period_end[0].value == "412"


def test_profile_lookups_raise_unsupported() -> None:
    basketball = load_profile(BUILTIN_PROFILES_DIR / "basketball.toml")

    with pytest.raises(UnsupportedBetError, match="P1"):
        basketball.period("P1")
    with pytest.raises(UnsupportedBetError, match="goals"):
        basketball.metric("goals")


def test_load_custom_profile_from_tmp_dir(tmp_path: Path) -> None:
    (tmp_path / "soccer.toml").write_text(_CUSTOM_PROFILE, encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    profiles = load_profiles_dir(tmp_path)

    assert len(profiles) == 1
    soccer = profiles[0]
    assert soccer.sport_key == "soccer"
    assert soccer.display_name == "Soccer"
    assert soccer.period("FULL_GAME").label == "FULL_GAME"
    predicate = soccer.metric("goals").event_log.predicates[0]
    assert predicate.op == "equals"
    assert predicate.value == "goal"


def test_load_profiles_dir_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_profiles_dir(tmp_path / "missing")


def test_invalid_toml_names_the_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("sport_key = ", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="broken.toml"):
        load_profile(path)


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"sport_key": ""}, "sport_key is required"),
        ({"regulation_periods": 0}, "regulation_periods must be positive"),
        ({"regulation_periods": "4"}, "expected an integer"),
        ({"periods": []}, r"\[\[periods\]\]"),
        ({"periods": [{"key": "Q1"}]}, "needs period indices"),
        ({"periods": [{"key": "Q1", "periods": [0]}]}, "1-based"),
        (
            {"periods": [{"key": "Q1", "periods": [1]}, {"key": "Q1", "periods": [2]}]},
            "duplicate period keys",
        ),
        ({"periods": [{"key": "X", "kind": "quarter"}]}, "not one of"),
        ({"metrics": {"points": {"team": {"special": "median"}}}}, "unknown special strategy"),
        ({"metrics": {"points": {"player": {"special": "final_score"}}}}, "team rows only"),
        ({"metrics": {"points": {"player": {"groups": ["a"]}}}}, "needs a field"),
        ({"metrics": {"points": {"player": {"field": "pts", "side": "left"}}}}, "not one of"),
        ({"metrics": {"points": {"event_log": {"aggregate": "sum"}}}}, "needs sum_field"),
        (
            {
                "metrics": {
                    "points": {
                        "event_log": {"predicates": [{"field": "x", "op": "like", "value": 1}]}
                    }
                }
            },
            "not one of",
        ),
        (
            {"metrics": {"points": {"event_log": {"predicates": [{"field": "x"}]}}}},
            "value is required",
        ),
        ({"metrics": {"pra": {"sum_of": ["points"]}}}, "at least two"),
        (
            {
                "metrics": {
                    "points": {"player": {"field": "pts"}},
                    "pra": {"sum_of": ["points", "x"]},
                }
            },
            "unknown metric x",
        ),
        (
            {"metrics": {"a": {"sum_of": ["b", "c"]}, "b": {"sum_of": ["a", "c"]}, "c": {}}},
            "cycle",
        ),
    ],
)
def test_profile_validation_errors(overrides: dict, message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        profile_from_mapping(_minimal(**overrides))
