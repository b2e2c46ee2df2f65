"""signalbench.core.types

Lightweight dataclasses for hot-path objects.

Pydantic models own the config boundary; dataclasses keep the bar loop lean.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class Direction(StrEnum):
    UP = "UP"
    DOWN = "DOWN"
    NONE = "NONE"

    def opposite(self) -> Direction:
        if self is Direction.UP:
            return Direction.DOWN
        if self is Direction.DOWN:
            return Direction.UP
        return Direction.NONE


class Outcome(StrEnum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSS = "LOSS"


@dataclass(frozen=True, slots=True)
class Bar:
    index: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    ts: datetime | None = None


@dataclass(frozen=True, slots=True)
class FlipEvent:
    bar_index: int
    direction: Direction  # UP|DOWN, never NONE


@dataclass(frozen=True, slots=True)
class Signal:
    bar_index: int
    direction: Direction
    confidence: float  # 0-100
    reason: str
    fires: bool

    @classmethod
    def skip(cls, bar_index: int, reason: str = "") -> Signal:
        return cls(bar_index=bar_index, direction=Direction.NONE, confidence=0.0, reason=reason, fires=False)
