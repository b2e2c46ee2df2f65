"""signalbench.core

Core primitives.

Config, errors, hot-path types and time helpers. Nothing here imports the
engine.
"""

from .config import Config
from .exceptions import SignalbenchError
from .time import parse_dt, utc_now
from .types import Direction, Outcome, Signal

__all__ = [
    "Config",
    "Direction",
    "Outcome",
    "Signal",
    "SignalbenchError",
    "parse_dt",
    "utc_now",
]
