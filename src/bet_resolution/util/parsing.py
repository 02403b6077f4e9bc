"""Shared parsing helpers for tolerant numeric/string coercion."""

from __future__ import annotations

from typing import Any, Literal

CompoundSide = Literal["first", "second"]


def safe_float(value: Any) -> float | None:
    """Parse number-like input into float, returning None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return float(value)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.startswith("+"):
            raw = raw[1:]
        try:
            parsed = float(raw)
        except ValueError:
            return None
        if parsed != parsed or parsed in (float("inf"), float("-inf")):
            return None
        return parsed
    return None


def safe_int(value: Any) -> int | None:
    """Parse number-like input into int, returning None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.startswith("+"):
            raw = raw[1:]
        try:
            return int(raw)
        except ValueError:
            return None
    return None


def split_compound(value: Any, side: CompoundSide) -> float | None:
    """Pick one side of a made-attempted value such as ``"49-88"``."""
    if not isinstance(value, str):
        return None
    parts = value.strip().split("-")
    if len(parts) != 2:
        return None
    return safe_float(parts[0] if side == "first" else parts[1])
