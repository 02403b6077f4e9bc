from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from bet_resolution.time_utils import coerce_utc, iso_z, parse_iso_z, utc_now


def test_utc_now_is_utc_without_microseconds() -> None:
    now = utc_now()

    assert now.tzinfo == UTC
    assert now.microsecond == 0


def test_iso_z_normalizes_naive_datetime() -> None:
    value = datetime(2026, 2, 13, 10, 0, 0)

    assert iso_z(value) == "2026-02-13T10:00:00Z"


def test_iso_z_normalizes_non_utc_datetime() -> None:
    eastern = datetime(2026, 2, 13, 5, 0, 0, tzinfo=timezone(timedelta(hours=-5)))

    assert iso_z(eastern) == "2026-02-13T10:00:00Z"


def test_parse_iso_z_parses_z_and_naive() -> None:
    parsed_z = parse_iso_z("2026-02-13T10:00:00Z")
    parsed_naive = parse_iso_z("2026-02-13T10:00:00")

    assert parsed_z == datetime(2026, 2, 13, 10, 0, 0, tzinfo=UTC)
    assert parsed_naive == datetime(2026, 2, 13, 10, 0, 0, tzinfo=UTC)


def test_parse_iso_z_invalid_returns_none() -> None:
    assert parse_iso_z("not-a-date") is None
    assert parse_iso_z("") is None


def test_coerce_utc_accepts_datetimes_and_strings() -> None:
    eastern = datetime(2026, 2, 13, 5, 0, 0, tzinfo=timezone(timedelta(hours=-5)))

    assert coerce_utc(eastern) == datetime(2026, 2, 13, 10, 0, 0, tzinfo=UTC)
    assert coerce_utc("2026-02-13T10:00:00Z") == datetime(2026, 2, 13, 10, 0, 0, tzinfo=UTC)
    assert coerce_utc(None) is None
    assert coerce_utc(1700000000) is None
