"""signalbench.backtest.align

Series alignment.

Indicator outputs are shorter than the bar array by their warm-up. Instead of
left-padding every output by hand, each output is wrapped once in an
`AlignedSeries` and read by absolute bar index.

Undefined means `None`: before the warm-up completes, past the end of the
series, or where the indicator itself produced NaN.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np

from signalbench.backtest.io import PriceSeries

PRICE_COLUMNS = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True, slots=True)
class AlignedSeries:
    values: np.ndarray  # raw indicator output, shape (M,)
    n_bars: int
    warmup: int

    @classmethod
    def from_output(cls, values, n_bars: int) -> AlignedSeries:
        arr = np.asarray(values, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError("indicator output must be 1D")
        n = int(n_bars)
        if arr.shape[0] > n:
            raise ValueError(f"indicator output longer than bar sequence ({arr.shape[0]} > {n})")
        return cls(values=arr, n_bars=n, warmup=n - arr.shape[0])

    def value_at(self, i: int) -> float | None:
        if i < self.warmup or i >= self.n_bars:
            return None
        v = float(self.values[i - self.warmup])
        if math.isnan(v):
            return None
        return v

    def padded(self) -> np.ndarray:
        """Full-length view, NaN before the warm-up."""

        out = np.full(self.n_bars, np.nan, dtype=np.float64)
        out[self.warmup :] = self.values
        return out

    def __len__(self) -> int:
        return self.n_bars


@dataclass(frozen=True, slots=True)
class SeriesSet:
    """Price columns plus named aligned indicator series for one evaluation."""

    prices: PriceSeries
    series: Mapping[str, AlignedSeries] = field(default_factory=dict)

    @classmethod
    def build(cls, prices: PriceSeries, outputs: Mapping[str, np.ndarray] | None = None) -> SeriesSet:
        n = len(prices)
        aligned = {name: AlignedSeries.from_output(vals, n) for name, vals in (outputs or {}).items()}
        for name in aligned:
            if name in PRICE_COLUMNS:
                raise ValueError(f"indicator name shadows price column: {name}")
        return cls(prices=prices, series=aligned)

    @property
    def n_bars(self) -> int:
        return len(self.prices)

    @property
    def warmup(self) -> int:
        if not self.series:
            return 0
        return max(s.warmup for s in self.series.values())

    def close(self, i: int) -> float | None:
        return self.value("close", i)

    def value(self, name: str, i: int) -> float | None:
        if name in PRICE_COLUMNS:
            if i < 0 or i >= self.n_bars:
                return None
            col = getattr(self.prices, name)
            if col is None:
                return None
            v = float(col[i])
            return None if math.isnan(v) else v
        s = self.series.get(name)
        if s is None:
            raise KeyError(f"unknown series: {name}")
        return s.value_at(i)

    def truncated(self, n: int) -> SeriesSet:
        """Same data cut to the first `n` bars, warm-ups preserved."""

        n = max(0, min(int(n), self.n_bars))
        cut = {
            name: AlignedSeries(values=s.values[: max(0, n - s.warmup)], n_bars=n, warmup=min(s.warmup, n))
            for name, s in self.series.items()
        }
        return SeriesSet(prices=self.prices.head(n), series=cut)
