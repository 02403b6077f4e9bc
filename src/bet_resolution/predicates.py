"""Evaluate profile predicates against play-log fields."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from bet_resolution.snapshot import Play
from bet_resolution.sports.profile import Predicate
from bet_resolution.util.parsing import safe_float


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(expected, bool) or isinstance(actual, bool):
        if isinstance(actual, str):
            return actual.strip().lower() == str(expected).lower()
        return actual is expected or actual == expected
    left = safe_float(actual)
    right = safe_float(expected)
    if left is not None and right is not None:
        return left == right
    return str(actual).strip() == str(expected).strip()


def _compare(actual: Any, expected: Any, op: str) -> bool:
    left = safe_float(actual)
    right = safe_float(expected)
    if left is None or right is None:
        return False
    if op == "gt":
        return left > right
    if op == "gte":
        return left >= right
    if op == "lt":
        return left < right
    return left <= right


def _matches(actual: Any, predicate: Predicate) -> bool:
    if actual is None:
        return False
    expected = predicate.value
    match predicate.op:
        case "equals":
            if isinstance(expected, tuple):
                return any(_equals(actual, option) for option in expected)
            return _equals(actual, expected)
        case "includes":
            return str(expected) in str(actual)
        case "starts_with":
            return str(actual).startswith(str(expected))
        case "gt" | "gte" | "lt" | "lte":
            return _compare(actual, expected, predicate.op)
    return False


def evaluate(predicate: Predicate, play: Play) -> bool:
    """Apply one predicate; a missing field never matches, even when negated."""
    actual = play.field(predicate.field)
    if actual is None:
        return False
    result = _matches(actual, predicate)
    return not result if predicate.negate else result


def all_match(predicates: Iterable[Predicate], play: Play) -> bool:
    return all(evaluate(predicate, play) for predicate in predicates)
