"""Sport profiles: period taxonomy and declarative per-metric extraction rules.

Profiles ship as TOML under ``profiles/`` and are validated once at load.
"""

from bet_resolution.sports.loader import load_profile, load_profiles_dir, profile_from_mapping
from bet_resolution.sports.profile import MetricRule, PeriodDefinition, SportProfile
from bet_resolution.sports.registry import (
    SportRegistry,
    build_registry,
    current_registry,
    get_sport_profile,
    list_sports,
    load_registry,
    set_current_registry,
)

__all__ = [
    "MetricRule",
    "PeriodDefinition",
    "SportProfile",
    "SportRegistry",
    "build_registry",
    "current_registry",
    "get_sport_profile",
    "list_sports",
    "load_profile",
    "load_profiles_dir",
    "load_registry",
    "profile_from_mapping",
    "set_current_registry",
]
