from __future__ import annotations

import pytest

from bet_resolution.errors import UnsupportedBetError
from bet_resolution.models import Outcome, parse_bet_definition
from bet_resolution.outcome import EVENT_HANDLERS, resolve_outcome
from bet_resolution.snapshot import GameSnapshot, snapshot_from_payload
from bet_resolution.sports.loader import BUILTIN_PROFILES_DIR, load_profile

BASKETBALL = load_profile(BUILTIN_PROFILES_DIR / "basketball.toml")
HOCKEY = load_profile(BUILTIN_PROFILES_DIR / "hockey.toml")


def _game(
    home: object = "110",
    away: object = "104",
    *,
    stats: dict | None = None,
    periods: int = 4,
    plays: list | None = None,
) -> GameSnapshot:
    return snapshot_from_payload(
        {
            "game_id": "g1",
            "status": "final",
            "teams": [
                {"team_id": "X", "score": home, "period_scores": ["20"] * periods},
                {"team_id": "Y", "score": away, "period_scores": ["20"] * periods},
            ],
            "players": [{"player_id": "p1", "team_id": "X", "stats": stats or {}}],
            "plays": plays or [],
        }
    )


def _side(subject_id: str, *, subject_type: str = "TEAM", window: str = "FULL_GAME") -> dict:
    return {
        "subject_type": subject_type,
        "subject_id": subject_id,
        "metric": "points",
        "time_period": window,
    }


def _comparison(first: str = "X", second: str = "Y", **extra: object):
    return parse_bet_definition(
        {
            "type": "COMPARISON",
            "participant_1": _side(first),
            "participant_2": _side(second),
            "operator": extra.pop("operator", "GREATER_THAN"),
            **extra,
        }
    )


def _threshold(operator: str, line: float):
    return parse_bet_definition(
        {
            "type": "THRESHOLD",
            "participant": _side("p1", subject_type="PLAYER"),
            "operator": operator,
            "threshold": line,
        }
    )


def _event(event_type: str):
    return parse_bet_definition(
        {
            "type": "EVENT",
            "participant": _side("p1", subject_type="PLAYER"),
            "event_type": event_type,
        }
    )


def test_comparison_strictly_greater_win() -> None:
    decision = resolve_outcome(_comparison(), _game("110", "104"), BASKETBALL)

    assert decision.outcome == Outcome.WIN
    assert decision.stat_snapshot["participant_1"]["stat"] == 110.0
    assert decision.stat_snapshot["participant_2"]["stat"] == 104.0
    assert decision.stat_snapshot["spread"] is None


def test_comparison_spread_applies_to_first_participant() -> None:
    bet = _comparison(spread={"direction": "-", "value": 3.5})

    decision = resolve_outcome(bet, _game("106", "104"), BASKETBALL)

    assert decision.outcome == Outcome.LOSS
    assert decision.stat_snapshot["participant_1"]["adjusted_stat"] == 102.5
    assert decision.stat_snapshot["spread"] == {"direction": "-", "value": 3.5}


def test_comparison_plus_spread_can_push() -> None:
    bet = _comparison(spread={"direction": "+", "value": 6})

    assert resolve_outcome(bet, _game("98", "104"), BASKETBALL).outcome == Outcome.PUSH


def test_comparison_tie_by_operator() -> None:
    tied = _game("100", "100")

    assert resolve_outcome(_comparison(), tied, BASKETBALL).outcome == Outcome.PUSH
    greater_equal = _comparison(operator="GREATER_EQUAL")
    assert resolve_outcome(greater_equal, tied, BASKETBALL).outcome == Outcome.WIN
    assert resolve_outcome(greater_equal, _game("99", "100"), BASKETBALL).outcome == Outcome.LOSS


@pytest.mark.parametrize(("home", "away"), [("110", "104"), ("104", "110"), ("100", "100")])
def test_swapping_participants_mirrors_outcome(home: str, away: str) -> None:
    game = _game(home, away)
    mirror = {Outcome.WIN: Outcome.LOSS, Outcome.LOSS: Outcome.WIN, Outcome.PUSH: Outcome.PUSH}

    forward = resolve_outcome(_comparison("X", "Y"), game, BASKETBALL).outcome
    swapped = resolve_outcome(_comparison("Y", "X"), game, BASKETBALL).outcome

    assert swapped == mirror[forward]


def test_comparison_unavailable_operand_is_void() -> None:
    decision = resolve_outcome(_comparison(), _game("110", "N/A"), BASKETBALL)

    assert decision.outcome == Outcome.VOID
    assert "TEAM Y" in decision.reason
    assert decision.stat_snapshot["participant_2"]["stat"] is None


@pytest.mark.parametrize(
    ("points", "operator", "expected"),
    [
        ("10", "OVER", Outcome.LOSS),
        ("11", "OVER", Outcome.WIN),
        ("10", "UNDER", Outcome.WIN),
        ("11", "UNDER", Outcome.LOSS),
    ],
)
def test_threshold_half_point_line(points: str, operator: str, expected: Outcome) -> None:
    game = _game(stats={"points": points})

    assert resolve_outcome(_threshold(operator, 10.5), game, BASKETBALL).outcome == expected


@pytest.mark.parametrize("operator", ["OVER", "UNDER"])
def test_threshold_at_the_line_pushes(operator: str) -> None:
    decision = resolve_outcome(_threshold(operator, 24), _game(stats={"points": "24"}), BASKETBALL)

    assert decision.outcome == Outcome.PUSH
    assert decision.stat_snapshot["threshold"] == 24
    assert decision.stat_snapshot["participant"]["stat"] == 24.0


def test_threshold_unavailable_is_void() -> None:
    decision = resolve_outcome(_threshold("OVER", 10.5), _game(stats={}), BASKETBALL)

    assert decision.outcome == Outcome.VOID


def test_double_double_needs_two_categories() -> None:
    game = _game(stats={"points": "11", "rebounds": "5", "assists": "4"})

    decision = resolve_outcome(_event("DOUBLE_DOUBLE"), game, BASKETBALL)

    assert decision.outcome == Outcome.LOSS
    assert decision.stat_snapshot["categories_at_least_10"] == ["points"]
    assert decision.stat_snapshot["stats"] == {"points": 11.0, "rebounds": 5.0, "assists": 4.0}


def test_double_and_triple_double_wins() -> None:
    double = _game(stats={"points": "27", "rebounds": "12", "assists": "8"})
    triple = _game(stats={"points": "15", "rebounds": "10", "assists": "10"})

    assert resolve_outcome(_event("DOUBLE_DOUBLE"), double, BASKETBALL).outcome == Outcome.WIN
    assert resolve_outcome(_event("TRIPLE_DOUBLE"), double, BASKETBALL).outcome == Outcome.LOSS
    assert resolve_outcome(_event("TRIPLE_DOUBLE"), triple, BASKETBALL).outcome == Outcome.WIN
    assert resolve_outcome(_event("double_double"), triple, BASKETBALL).outcome == Outcome.WIN


def test_event_with_missing_component_is_void() -> None:
    game = _game(stats={"points": "30", "rebounds": "15"})

    decision = resolve_outcome(_event("DOUBLE_DOUBLE"), game, BASKETBALL)

    assert decision.outcome == Outcome.VOID
    assert "assists" in decision.reason


def test_unknown_event_type_is_unsupported() -> None:
    assert sorted(EVENT_HANDLERS) == ["DOUBLE_DOUBLE", "TRIPLE_DOUBLE"]
    with pytest.raises(UnsupportedBetError, match="HAT_TRICK"):
        resolve_outcome(_event("HAT_TRICK"), _game(), BASKETBALL)


def test_event_needs_the_sport_to_track_its_categories() -> None:
    with pytest.raises(UnsupportedBetError, match="rebounds"):
        resolve_outcome(_event("DOUBLE_DOUBLE"), _game(stats={"points": "1"}), HOCKEY)


def _scoring_play(period: int, team_id: str, player_id: str, points: int) -> dict:
    return {
        "period": period,
        "team_id": team_id,
        "participants": [player_id],
        "fields": {"scoringPlay": True, "scoreValue": points},
    }


def test_double_overtime_sums_both_periods() -> None:
    plays = [
        _scoring_play(5, "X", "x1", 5),
        _scoring_play(5, "Y", "y1", 5),
        _scoring_play(6, "X", "x1", 4),
        _scoring_play(6, "Y", "y1", 2),
    ]
    game = _game("129", "127", periods=6, plays=plays)
    bet = parse_bet_definition(
        {
            "type": "COMPARISON",
            "participant_1": _side("X", window="OT"),
            "participant_2": _side("Y", window="OT"),
            "operator": "GREATER_THAN",
        }
    )

    decision = resolve_outcome(bet, game, BASKETBALL)

    assert decision.outcome == Outcome.WIN
    assert decision.stat_snapshot["participant_1"]["periods"] == [5, 6]
    assert decision.stat_snapshot["participant_1"]["stat"] == 9.0
    assert decision.stat_snapshot["participant_2"]["stat"] == 7.0
