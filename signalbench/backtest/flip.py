"""signalbench.backtest.flip

Flip detection.

A flip is a bar-over-bar crossing of a reference value from one side of a
comparator to the other:

- UP   iff r[i-1] <= c[i-1] and r[i] > c[i]
- DOWN iff r[i-1] >= c[i-1] and r[i] < c[i]

When r[i-1] == c[i-1] both conditions can hold in principle. UP is evaluated
first and wins; DOWN is never evaluated once UP holds. Every detector in this
module applies the same precedence, so at most one FlipEvent exists per bar.

Any undefined input means no flip.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from signalbench.backtest.align import SeriesSet
from signalbench.core.types import Direction, FlipEvent


class DirectionPolicy(StrEnum):
    """How a detected flip maps to a trade direction."""

    TREND = "trend"  # bet with the flip
    CONTRARIAN = "contrarian"  # bet against it (mean reversion)

    def apply(self, direction: Direction) -> Direction:
        if self is DirectionPolicy.CONTRARIAN:
            return direction.opposite()
        return direction


def cross_direction(r_prev: float | None, c_prev: float | None, r_curr: float | None, c_curr: float | None) -> Direction | None:
    if r_prev is None or c_prev is None or r_curr is None or c_curr is None:
        return None
    if r_prev <= c_prev and r_curr > c_curr:
        return Direction.UP
    if r_prev >= c_prev and r_curr < c_curr:
        return Direction.DOWN
    return None


def side(r: float | None, c: float | None) -> int | None:
    """+1 above, -1 below, 0 touching, None if undefined."""

    if r is None or c is None:
        return None
    if r > c:
        return 1
    if r < c:
        return -1
    return 0


class Detector(Protocol):
    label: str

    def detect(self, i: int, data: SeriesSet) -> FlipEvent | None: ...


@dataclass(frozen=True, slots=True)
class FlipDetector:
    reference: str
    comparator: str
    label: str = ""

    def detect(self, i: int, data: SeriesSet) -> FlipEvent | None:
        if i < 1:
            return None
        d = cross_direction(
            data.value(self.reference, i - 1),
            data.value(self.comparator, i - 1),
            data.value(self.reference, i),
            data.value(self.comparator, i),
        )
        if d is None:
            return None
        return FlipEvent(bar_index=i, direction=d)


@dataclass(frozen=True, slots=True)
class BandBreakoutDetector:
    """Reference closing through the upper band (UP) or lower band (DOWN)."""

    reference: str
    upper: str
    lower: str
    label: str = ""

    def detect(self, i: int, data: SeriesSet) -> FlipEvent | None:
        if i < 1:
            return None
        r_prev = data.value(self.reference, i - 1)
        r_curr = data.value(self.reference, i)
        up_prev = data.value(self.upper, i - 1)
        up_curr = data.value(self.upper, i)
        if None not in (r_prev, r_curr, up_prev, up_curr) and r_prev <= up_prev and r_curr > up_curr:
            return FlipEvent(bar_index=i, direction=Direction.UP)

        lo_prev = data.value(self.lower, i - 1)
        lo_curr = data.value(self.lower, i)
        if None not in (r_prev, r_curr, lo_prev, lo_curr) and r_prev >= lo_prev and r_curr < lo_curr:
            return FlipEvent(bar_index=i, direction=Direction.DOWN)
        return None


@dataclass(frozen=True, slots=True)
class Zone:
    series: str
    oversold: float
    overbought: float


@dataclass(frozen=True, slots=True)
class OscillatorReversalDetector:
    """Every oscillator in its extreme zone and turning back out of it.

    UP: all below their oversold level and all higher than on the previous bar.
    DOWN: all above their overbought level and all lower than on the previous bar.
    """

    zones: tuple[Zone, ...]
    label: str = ""

    def detect(self, i: int, data: SeriesSet) -> FlipEvent | None:
        if i < 1 or not self.zones:
            return None
        pairs: list[tuple[Zone, float, float]] = []
        for z in self.zones:
            prev = data.value(z.series, i - 1)
            curr = data.value(z.series, i)
            if prev is None or curr is None:
                return None
            pairs.append((z, prev, curr))

        if all(curr < z.oversold and curr > prev for z, prev, curr in pairs):
            return FlipEvent(bar_index=i, direction=Direction.UP)
        if all(curr > z.overbought and curr < prev for z, prev, curr in pairs):
            return FlipEvent(bar_index=i, direction=Direction.DOWN)
        return None
