from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from bet_resolution.errors import ConfigurationError, UnknownSportError
from bet_resolution.sports.loader import BUILTIN_PROFILES_DIR, load_profiles_dir
from bet_resolution.sports.profile import SportProfile

logger = logging.getLogger(__name__)


def normalize_sport_key(sport_key: str) -> str:
    return str(sport_key).strip().lower()


def _index(profiles: Iterable[SportProfile], *, source: str) -> dict[str, SportProfile]:
    out: dict[str, SportProfile] = {}
    for profile in profiles:
        key = normalize_sport_key(profile.sport_key)
        if key in out:
            raise ConfigurationError(f"duplicate sport profile: {key} ({source})")
        out[key] = profile
    return out


@dataclass(frozen=True)
class SportRegistry:
    """Read-only mapping of sport key to profile, built once at startup."""

    profiles: Mapping[str, SportProfile] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, sport_key: str) -> SportProfile:
        normalized = normalize_sport_key(sport_key)
        profile = self.profiles.get(normalized)
        if profile is None:
            options = ",".join(sorted(self.profiles))
            raise UnknownSportError(f"unknown sport: {sport_key} (options: {options})")
        return profile

    def __contains__(self, sport_key: object) -> bool:
        return isinstance(sport_key, str) and normalize_sport_key(sport_key) in self.profiles

    def sport_keys(self) -> list[str]:
        return sorted(self.profiles)


def build_registry(
    profiles: Iterable[SportProfile],
    *,
    overrides: Iterable[SportProfile] = (),
) -> SportRegistry:
    """Index base profiles, then let override profiles replace same-key entries."""
    merged = _index(profiles, source="base profiles")
    for key, profile in _index(overrides, source="override profiles").items():
        if key in merged:
            logger.info("sport profile %s overridden", key)
        merged[key] = profile
    return SportRegistry(profiles=MappingProxyType(merged))


def load_registry(extra_dir: Path | None = None) -> SportRegistry:
    """Load the shipped profiles plus, when given, a directory of local profiles."""
    builtins = load_profiles_dir(BUILTIN_PROFILES_DIR)
    overrides = load_profiles_dir(extra_dir) if extra_dir is not None else []
    registry = build_registry(builtins, overrides=overrides)
    logger.debug("sport registry loaded: %s", ",".join(registry.sport_keys()))
    return registry


_CURRENT_REGISTRY: SportRegistry | None = None


def set_current_registry(registry: SportRegistry | None) -> None:
    global _CURRENT_REGISTRY
    _CURRENT_REGISTRY = registry


def current_registry() -> SportRegistry:
    registry = _CURRENT_REGISTRY
    if registry is not None:
        return registry
    from bet_resolution.settings import Settings

    extra = Settings().profiles_dir.strip()
    loaded = load_registry(Path(extra) if extra else None)
    set_current_registry(loaded)
    return loaded


def get_sport_profile(sport_key: str) -> SportProfile:
    return current_registry().get(sport_key)


def list_sports() -> list[SportProfile]:
    registry = current_registry()
    return [registry.profiles[key] for key in registry.sport_keys()]
