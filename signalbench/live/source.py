"""signalbench.live.source

Where live bars come from.

A source returns the most recent window of closed bars on every fetch and
reports where that window starts in the file's full history. The session
works out which of the bars are new, so a source is free to return
overlapping windows.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from signalbench.backtest.io import PriceSeries, load_bars_csv
from signalbench.core.exceptions import DataSourceError


class BarSource(Protocol):
    # absolute index of the first bar of the last fetched window
    window_start: int

    def fetch(self) -> PriceSeries: ...


class CsvTailSource:
    """Re-reads a CSV that another process keeps appending to."""

    def __init__(self, path: Path, *, history_bars: int = 500, volume_seed: int | None = None) -> None:
        if history_bars < 1:
            raise ValueError("history_bars must be >= 1")
        self.path = Path(path)
        self.history_bars = int(history_bars)
        self.volume_seed = volume_seed
        self.window_start = 0

    def fetch(self) -> PriceSeries:
        prices = load_bars_csv(self.path, volume_seed=self.volume_seed)
        if len(prices) == 0:
            raise DataSourceError(f"no bars in {self.path}")
        self.window_start = max(0, len(prices) - self.history_bars)
        return prices.tail(self.history_bars)


class StaticSource:
    """Serves a fixed series, growing by `step` bars per fetch. Replays history through the live path."""

    window_start = 0

    def __init__(self, prices: PriceSeries, *, start: int, step: int = 1) -> None:
        if start < 1 or step < 1:
            raise ValueError("start and step must be >= 1")
        self.prices = prices
        self._end = min(int(start), len(prices))
        self._served = 0
        self.step = int(step)

    @property
    def exhausted(self) -> bool:
        """True once a fetch has returned the whole series."""

        return self._served >= len(self.prices)

    def fetch(self) -> PriceSeries:
        window = self.prices.head(self._end)
        self._served = len(window)
        self._end = min(self._end + self.step, len(self.prices))
        return window
