"""signalbench.backtest.io

Lightweight IO helpers for backtesting.

Two CSV layouts are accepted:
- headerless MetaTrader export: date,time,open,high,low,close,volume
- headered: required open, high, low, close; optional volume, ts

The MetaTrader export carries no usable volume, so volume is synthesized from
the hour of day. Synthetic volume never feeds signal logic; indicators read
open/high/low/close only.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import numpy as np

from signalbench.core.exceptions import DataSourceError
from signalbench.core.time import parse_bar_time, parse_dt
from signalbench.core.types import Bar

REQUIRED_COLUMNS = ("open", "high", "low", "close")


@dataclass(frozen=True, slots=True)
class PriceSeries:
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    close: np.ndarray
    volume: np.ndarray | None = None
    ts: tuple[datetime | None, ...] | None = None

    def __post_init__(self) -> None:
        n = self.close.shape[0]
        for name in ("open", "high", "low"):
            if getattr(self, name).shape[0] != n:
                raise ValueError(f"{name} length does not match close")
        if self.volume is not None and self.volume.shape[0] != n:
            raise ValueError("volume length does not match close")
        if self.ts is not None and len(self.ts) != n:
            raise ValueError("ts length does not match close")

    def __len__(self) -> int:
        return int(self.close.shape[0])

    @classmethod
    def empty(cls) -> PriceSeries:
        z = np.zeros(0, dtype=np.float64)
        return cls(open=z, high=z.copy(), low=z.copy(), close=z.copy())

    @classmethod
    def from_bars(cls, bars: Iterable[Bar]) -> PriceSeries:
        rows = list(bars)
        if not rows:
            return cls.empty()

        def col(name: str) -> np.ndarray:
            return np.array([float(getattr(b, name)) for b in rows], dtype=np.float64)

        ts = tuple(b.ts for b in rows)
        return cls(
            open=col("open"),
            high=col("high"),
            low=col("low"),
            close=col("close"),
            volume=col("volume"),
            ts=None if all(t is None for t in ts) else ts,
        )

    @classmethod
    def from_close(cls, close) -> PriceSeries:
        """Degenerate bars where open == high == low == close."""

        c = np.asarray(close, dtype=np.float64)
        return cls(open=c.copy(), high=c.copy(), low=c.copy(), close=c)

    def bar(self, i: int) -> Bar:
        return Bar(
            index=i,
            open=float(self.open[i]),
            high=float(self.high[i]),
            low=float(self.low[i]),
            close=float(self.close[i]),
            volume=float(self.volume[i]) if self.volume is not None else 0.0,
            ts=self.ts[i] if self.ts is not None else None,
        )

    def head(self, n: int) -> PriceSeries:
        return self._slice(slice(0, max(0, int(n))))

    def tail(self, n: int) -> PriceSeries:
        n = max(0, int(n))
        return self._slice(slice(max(0, len(self) - n), len(self)))

    def concat(self, other: PriceSeries) -> PriceSeries:
        if len(other) == 0:
            return self
        if len(self) == 0:
            return other

        def vol(p: PriceSeries) -> np.ndarray:
            return p.volume if p.volume is not None else np.zeros(len(p), dtype=np.float64)

        ts = None
        if self.ts is not None or other.ts is not None:
            ts = (self.ts or (None,) * len(self)) + (other.ts or (None,) * len(other))
        return PriceSeries(
            open=np.concatenate([self.open, other.open]),
            high=np.concatenate([self.high, other.high]),
            low=np.concatenate([self.low, other.low]),
            close=np.concatenate([self.close, other.close]),
            volume=None if self.volume is None and other.volume is None else np.concatenate([vol(self), vol(other)]),
            ts=ts,
        )

    def _slice(self, s: slice) -> PriceSeries:
        return PriceSeries(
            open=self.open[s],
            high=self.high[s],
            low=self.low[s],
            close=self.close[s],
            volume=self.volume[s] if self.volume is not None else None,
            ts=self.ts[s] if self.ts is not None else None,
        )


def synthetic_volume(hour: int, rng: np.random.Generator) -> float:
    """Hour-of-day volume profile: quiet Asia, mid London, busy New York."""

    if hour < 8:
        lo, hi = 100, 400
    elif hour < 16:
        lo, hi = 400, 800
    else:
        lo, hi = 800, 1500
    return float(rng.integers(lo, hi + 1))


def load_bars_csv(path: str | Path, *, max_bars: int | None = None, volume_seed: int | None = None) -> PriceSeries:
    p = Path(path)
    if not p.exists():
        raise DataSourceError(f"CSV file not found: {p}")

    with p.open("r", encoding="utf-8", newline="") as f:
        lines = [line for line in f.read().splitlines() if line.strip()]

    if not lines:
        return PriceSeries.empty()

    first = [c.strip().lower() for c in lines[0].split(",")]
    if "close" in first:
        return _load_headered(lines, max_bars=max_bars)
    return _load_metatrader(lines, max_bars=max_bars, rng=np.random.default_rng(volume_seed))


def _load_metatrader(lines: list[str], *, max_bars: int | None, rng: np.random.Generator) -> PriceSeries:
    bars: list[Bar] = []
    for lineno, line in enumerate(lines, start=1):
        parts = [x.strip() for x in line.split(",")]
        if len(parts) < 7:
            continue
        date_str, time_str = parts[0], parts[1]
        try:
            o, h, lo, c = (float(x) for x in parts[2:6])
            ts = parse_bar_time(date_str, time_str)
        except ValueError as e:
            raise DataSourceError(f"line {lineno}: {e}") from e
        bars.append(
            Bar(index=len(bars), open=o, high=h, low=lo, close=c, volume=synthetic_volume(ts.hour, rng), ts=ts)
        )
        if max_bars and len(bars) >= max_bars:
            break
    return PriceSeries.from_bars(bars)


def _load_headered(lines: list[str], *, max_bars: int | None) -> PriceSeries:
    reader = csv.DictReader(lines)
    rows: list[dict[str, str]] = []
    for row in reader:
        rows.append({k.strip().lower(): (v.strip() if isinstance(v, str) else "") for k, v in row.items() if k is not None})
        if max_bars and len(rows) >= max_bars:
            break

    if not rows:
        return PriceSeries.empty()

    missing = [c for c in REQUIRED_COLUMNS if c not in rows[0]]
    if missing:
        raise DataSourceError(f"CSV missing required column(s): {', '.join(missing)}")

    def col(name: str) -> np.ndarray | None:
        if name not in rows[0]:
            return None
        out: list[float] = []
        for n, row in enumerate(rows, start=2):
            v = row.get(name, "")
            if v == "" and name == "close":
                raise DataSourceError(f"line {n}: column close is blank")
            try:
                out.append(float("nan") if v == "" else float(v))
            except ValueError as e:
                raise DataSourceError(f"line {n}: column {name}: {e}") from e
        return np.array(out, dtype=np.float64)

    ts = None
    if "ts" in rows[0]:
        try:
            ts = tuple(parse_dt(r["ts"]) if r.get("ts") else None for r in rows)
        except ValueError as e:
            raise DataSourceError(f"column ts: {e}") from e

    return PriceSeries(
        open=col("open"),
        high=col("high"),
        low=col("low"),
        close=col("close"),
        volume=col("volume"),
        ts=ts,
    )
