"""Error types for bet resolution."""

from __future__ import annotations

from typing import Any


class ResolutionError(Exception):
    """Base error for bet-resolution operations."""


class ConfigurationError(ResolutionError):
    """Raised when a sport profile or the registry is malformed."""


class UnknownSportError(ConfigurationError):
    """Raised when no sport profile is registered for a sport key."""


class UnsupportedBetError(ResolutionError):
    """Raised when a bet asks for a window, metric or event type nobody implements."""


class ComputationError(ResolutionError):
    """Unexpected failure while resolving one bet, with the bet's context attached."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = dict(context or {})

    def __str__(self) -> str:
        base = super().__str__()
        if not self.context:
            return base
        details = ", ".join(f"{key}={value}" for key, value in sorted(self.context.items()))
        return f"{base} ({details})"
