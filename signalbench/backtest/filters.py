"""signalbench.backtest.filters

Signal filters.

A filter is a pure predicate over (bar index, flip direction, series set).
Strategies declare an ordered tuple of filters; the engine ANDs them and stops
at the first rejection.

Contract:
- a value that is not yet available (pre warm-up) fails the filter
- nothing past bar i is read, except bar i+1 by filters with lookahead=1
- bad parameters raise MisconfiguredFilterError at construction
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from signalbench.backtest.align import SeriesSet
from signalbench.backtest.flip import side
from signalbench.core.exceptions import MisconfiguredFilterError
from signalbench.core.types import Direction

DEFAULT_RANGE_LOOKBACK = 14


class Filter(Protocol):
    name: str
    lookahead: int

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool: ...


@dataclass(frozen=True, slots=True)
class ContinuationFilter:
    """The bar after the flip must keep moving in the flip direction."""

    reference: str = "close"
    name: str = "continuation"
    lookahead: int = 1

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        curr = data.value(self.reference, i)
        nxt = data.value(self.reference, i + 1)
        if curr is None or nxt is None:
            return False
        if direction is Direction.UP:
            return nxt > curr
        if direction is Direction.DOWN:
            return nxt < curr
        return False


@dataclass(frozen=True, slots=True)
class PersistenceFilter:
    """Reference stayed on the pre-flip side for at least `min_flips` bars.

    Counts backward from i-1. UP needs reference <= comparator on those bars,
    DOWN needs reference >= comparator. min_flips=1 is the flip itself.
    """

    reference: str
    comparator: str
    min_flips: int = 1
    name: str = "persistence"
    lookahead: int = 0

    def __post_init__(self) -> None:
        if int(self.min_flips) < 1:
            raise MisconfiguredFilterError(f"min_flips must be >= 1, got {self.min_flips}")

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        if direction is Direction.UP:
            allowed = (-1, 0)
        elif direction is Direction.DOWN:
            allowed = (1, 0)
        else:
            return False

        k = int(self.min_flips)
        count = 0
        j = i - 1
        while j >= 0 and count < k:
            s = side(data.value(self.reference, j), data.value(self.comparator, j))
            if s is None or s not in allowed:
                break
            count += 1
            j -= 1
        return count >= k


@dataclass(frozen=True, slots=True)
class StrengthFilter:
    """Trend strength (e.g. ADX) at bar i must reach the threshold."""

    series: str
    threshold: float
    name: str = "strength"
    lookahead: int = 0

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        v = data.value(self.series, i)
        if v is None:
            return False
        return v >= float(self.threshold)

    def margin(self, i: int, data: SeriesSet) -> float:
        v = data.value(self.series, i)
        if v is None:
            return 0.0
        return v - float(self.threshold)


@dataclass(frozen=True, slots=True)
class RangeFilter:
    """Bar i's high-low range must be at least `multiplier` x the trailing mean range."""

    multiplier: float = 0.0
    lookback: int = DEFAULT_RANGE_LOOKBACK
    name: str = "range"
    lookahead: int = 0

    def __post_init__(self) -> None:
        if int(self.lookback) < 1:
            raise MisconfiguredFilterError(f"range lookback must be >= 1, got {self.lookback}")

    @property
    def enabled(self) -> bool:
        return float(self.multiplier) > 0

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        if not self.enabled:
            return True
        n = int(self.lookback)
        start = i - n + 1
        if start < 0:
            return False
        total = 0.0
        for j in range(start, i + 1):
            h = data.value("high", j)
            lo = data.value("low", j)
            if h is None or lo is None:
                return False
            total += h - lo
        avg = total / n
        curr = data.value("high", i) - data.value("low", i)
        return curr >= avg * float(self.multiplier)


@dataclass(frozen=True, slots=True)
class StackFilter:
    """Series strictly ordered fast > ... > slow for UP, reversed for DOWN."""

    series: tuple[str, ...]
    strict: bool = True
    name: str = "stack"
    lookahead: int = 0

    def __post_init__(self) -> None:
        if len(self.series) < 2:
            raise MisconfiguredFilterError("stack filter needs at least two series")

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        vals = [data.value(s, i) for s in self.series]
        if any(v is None for v in vals):
            return False
        pairs = list(zip(vals, vals[1:]))
        if direction is Direction.UP:
            return all((a > b) if self.strict else (a >= b) for a, b in pairs)
        if direction is Direction.DOWN:
            return all((a < b) if self.strict else (a <= b) for a, b in pairs)
        return False


@dataclass(frozen=True, slots=True)
class TrendFilter:
    """Close on the trend side of a single long-period series (EMA200)."""

    series: str
    strict: bool = False
    reference: str = "close"
    name: str = "trend"
    lookahead: int = 0

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        price = data.value(self.reference, i)
        trend = data.value(self.series, i)
        if price is None or trend is None:
            return False
        if direction is Direction.UP:
            return price > trend if self.strict else price >= trend
        if direction is Direction.DOWN:
            return price < trend if self.strict else price <= trend
        return False


@dataclass(frozen=True, slots=True)
class LevelFilter:
    """Series above `level` for UP, below it for DOWN."""

    series: str
    level: float = 50.0
    name: str = "level"
    lookahead: int = 0

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        v = data.value(self.series, i)
        if v is None:
            return False
        if direction is Direction.UP:
            return v > float(self.level)
        if direction is Direction.DOWN:
            return v < float(self.level)
        return False


@dataclass(frozen=True, slots=True)
class StopSideFilter:
    """Directional-stop dot below the bar for UP, above it for DOWN."""

    stop: str
    name: str = "stop_side"
    lookahead: int = 0

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        dot = data.value(self.stop, i)
        if dot is None:
            return False
        if direction is Direction.UP:
            low = data.value("low", i)
            return low is not None and dot < low
        if direction is Direction.DOWN:
            high = data.value("high", i)
            return high is not None and dot > high
        return False


@dataclass(frozen=True, slots=True)
class SqueezeFilter:
    """Band width at bar i below `multiplier` x its trailing mean width.

    The mean covers the defined widths among the last `period` bars.
    multiplier=None disables the filter.
    """

    upper: str
    lower: str
    multiplier: float | None = 0.8
    period: int = 20
    name: str = "squeeze"
    lookahead: int = 0

    def __post_init__(self) -> None:
        if int(self.period) < 1:
            raise MisconfiguredFilterError(f"squeeze period must be >= 1, got {self.period}")
        if self.multiplier is not None and float(self.multiplier) <= 0:
            raise MisconfiguredFilterError(f"squeeze multiplier must be > 0, got {self.multiplier}")

    def _width(self, j: int, data: SeriesSet) -> float | None:
        u = data.value(self.upper, j)
        lo = data.value(self.lower, j)
        if u is None or lo is None:
            return None
        return u - lo

    def __call__(self, i: int, direction: Direction, data: SeriesSet) -> bool:
        if self.multiplier is None:
            return True
        width = self._width(i, data)
        if width is None:
            return False
        window: list[float] = []
        for j in range(max(0, i - int(self.period) + 1), i + 1):
            w = self._width(j, data)
            if w is not None:
                window.append(w)
        avg = sum(window) / len(window)
        return width < float(self.multiplier) * avg
