"""Command line interface for bet-resolution."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from bet_resolution.errors import ConfigurationError
from bet_resolution.models import parse_bet_definition
from bet_resolution.resolver import resolve_bet_for_sport
from bet_resolution.settings import Settings
from bet_resolution.snapshot import snapshot_from_payload
from bet_resolution.sports.registry import SportRegistry, current_registry, load_registry


class CLIError(RuntimeError):
    """User-facing CLI error."""


def _load_json(path: str, *, label: str) -> dict[str, Any]:
    source = Path(path).expanduser()
    if not source.exists():
        raise CLIError(f"{label} file not found: {source}")
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CLIError(f"{label} file is not valid JSON: {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise CLIError(f"{label} file must contain a JSON object: {source}")
    return payload


def _registry(args: argparse.Namespace) -> SportRegistry:
    profiles_dir = str(getattr(args, "profiles_dir", "") or "").strip()
    if profiles_dir:
        return load_registry(Path(profiles_dir))
    return current_registry()


def _cmd_resolve(args: argparse.Namespace) -> int:
    bet_payload = _load_json(args.bet, label="bet")
    snapshot_payload = _load_json(args.snapshot, label="snapshot")
    try:
        bet = parse_bet_definition(bet_payload)
    except ValidationError as exc:
        raise CLIError(f"invalid bet definition: {args.bet}\n{exc}") from exc

    sport = args.sport or Settings().default_sport
    result = resolve_bet_for_sport(
        bet,
        snapshot_from_payload(snapshot_payload),
        sport,
        registry=_registry(args),
        bet_id=args.bet_id or None,
        completed_at=args.completed_at or None,
    )
    print(json.dumps(result.to_dict(), sort_keys=True, indent=2))
    return 0 if result.resolved else 1


def _cmd_sports(args: argparse.Namespace) -> int:
    registry = _registry(args)
    rows = []
    for key in registry.sport_keys():
        profile = registry.get(key)
        rows.append(
            {
                "sport_key": profile.sport_key,
                "display_name": profile.display_name,
                "regulation_periods": profile.regulation_periods,
                "windows": [definition.key for definition in profile.periods],
                "metrics": sorted(profile.metrics),
            }
        )
    if args.json:
        print(json.dumps(rows, sort_keys=True, indent=2))
        return 0
    if not rows:
        print("no sport profiles")
        return 0
    for row in rows:
        print(
            f"{row['sport_key']}\t{row['display_name']}\t"
            f"windows={','.join(row['windows'])}\tmetrics={','.join(row['metrics'])}"
        )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bet-resolution")
    subparsers = parser.add_subparsers(dest="command")

    resolve = subparsers.add_parser("resolve", help="Resolve one bet against a game snapshot")
    resolve.add_argument("--bet", required=True, help="Path to the bet definition JSON")
    resolve.add_argument("--snapshot", required=True, help="Path to the game snapshot JSON")
    resolve.add_argument("--sport", default="", help="Sport key (default: settings)")
    resolve.add_argument("--bet-id", default="")
    resolve.add_argument("--completed-at", default="", help="ISO completion time fallback")
    resolve.add_argument("--profiles-dir", default="", help="Extra sport profile directory")
    resolve.set_defaults(func=_cmd_resolve)

    sports = subparsers.add_parser("sports", help="List registered sport profiles")
    sports.add_argument("--json", action="store_true")
    sports.add_argument("--profiles-dir", default="", help="Extra sport profile directory")
    sports.set_defaults(func=_cmd_sports)
    return parser


def _configure_logging() -> None:
    level_name = Settings().log_level.strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    _configure_logging()
    try:
        return int(func(args))
    except (CLIError, ConfigurationError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
