"""signalbench.core.exceptions

Errors are part of the interface.

Undefined indicator values and conflicting flips are not errors; they are
ordinary control flow inside the engine.
"""

from __future__ import annotations


class SignalbenchError(Exception):
    """Base exception for signalbench."""


class ConfigError(SignalbenchError):
    """Configuration is missing, invalid, or inconsistent."""


class MisconfiguredFilterError(ConfigError):
    """A filter, strategy or engine parameter is out of range.

    Raised at construction time. Values are never clamped.
    """


class InsufficientDataError(SignalbenchError):
    """Fewer bars than the largest warm-up the run requires."""

    def __init__(self, *, available: int, required: int) -> None:
        super().__init__(f"insufficient data: {available} bars available, {required} required")
        self.available = available
        self.required = required


class TradeStateError(SignalbenchError):
    """A trade was asked to leave a terminal state."""


class DataSourceError(SignalbenchError):
    """Bar input is unreadable or malformed."""
