"""signalbench.indicators

Technical indicators over numpy price arrays.

Every function returns only the defined part of its output: an indicator with
a warm-up of w bars returns len(input) - w values, the first of which belongs
to bar w. Nothing is padded here; `signalbench.backtest.align` maps outputs
back onto bar indices.

All indicators are causal. The value for bar i depends on bars <= i only.

Warm-ups:
- sma, ema, bollinger, cci, stochastic %K: period - 1
- stochastic %D: period + signal_period - 2
- psar: 1
- atr, rsi: period
- keltner: period
- adx: 2 * period - 1
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench.core.exceptions import MisconfiguredFilterError


def _arr(x) -> np.ndarray:
    return np.asarray(x, dtype=np.float64)


def _check_period(period: int, name: str = "period") -> int:
    p = int(period)
    if p < 1:
        raise MisconfiguredFilterError(f"{name} must be >= 1, got {period}")
    return p


def sma(values, period: int) -> np.ndarray:
    x = _arr(values)
    n = _check_period(period)
    if x.size < n:
        return np.zeros(0, dtype=np.float64)

    csum = np.cumsum(x, dtype=np.float64)
    # rolling sum for windows ending at i (inclusive): sum[x[i-n+1:i+1]]
    roll_sum = csum[n - 1 :].copy()
    roll_sum[1:] = roll_sum[1:] - csum[:-n]
    return roll_sum / float(n)


def ema(values, period: int) -> np.ndarray:
    """SMA-seeded exponential moving average."""

    x = _arr(values)
    n = _check_period(period)
    if x.size < n:
        return np.zeros(0, dtype=np.float64)

    k = 2.0 / (n + 1.0)
    out = np.empty(x.size - n + 1, dtype=np.float64)
    out[0] = float(np.mean(x[:n]))
    for j in range(1, out.size):
        out[j] = (x[n - 1 + j] - out[j - 1]) * k + out[j - 1]
    return out


def psar(high, low, *, step: float = 0.02, max_step: float = 0.2) -> np.ndarray:
    """Parabolic SAR. The first value belongs to bar 1."""

    h = _arr(high)
    lo = _arr(low)
    if float(step) <= 0 or float(max_step) < float(step):
        raise MisconfiguredFilterError(f"psar needs 0 < step <= max_step, got step={step} max={max_step}")
    t_len = h.size
    if t_len < 2:
        return np.zeros(0, dtype=np.float64)

    out = np.empty(t_len - 1, dtype=np.float64)
    rising = h[1] >= h[0]
    sar = float(lo[0]) if rising else float(h[0])
    ep = float(h[0]) if rising else float(lo[0])
    af = float(step)

    for i in range(1, t_len):
        sar = sar + af * (ep - sar)
        if rising:
            sar = min(sar, float(lo[i - 1]), float(lo[i - 2]) if i >= 2 else float(lo[i - 1]))
            if lo[i] < sar:
                rising = False
                sar = ep
                ep = float(lo[i])
                af = float(step)
            elif h[i] > ep:
                ep = float(h[i])
                af = min(af + float(step), float(max_step))
        else:
            sar = max(sar, float(h[i - 1]), float(h[i - 2]) if i >= 2 else float(h[i - 1]))
            if h[i] > sar:
                rising = True
                sar = ep
                ep = float(h[i])
                af = float(step)
            elif lo[i] < ep:
                ep = float(lo[i])
                af = min(af + float(step), float(max_step))
        out[i - 1] = sar
    return out


def true_range(high, low, close) -> np.ndarray:
    """True range from bar 1 onward."""

    h = _arr(high)
    lo = _arr(low)
    c = _arr(close)
    if c.size < 2:
        return np.zeros(0, dtype=np.float64)
    prev = c[:-1]
    return np.maximum.reduce([h[1:] - lo[1:], np.abs(h[1:] - prev), np.abs(lo[1:] - prev)])


def _wilder(x: np.ndarray, n: int) -> np.ndarray:
    """Wilder smoothing seeded with the mean of the first n values."""

    if x.size < n:
        return np.zeros(0, dtype=np.float64)
    out = np.empty(x.size - n + 1, dtype=np.float64)
    out[0] = float(np.mean(x[:n]))
    for j in range(1, out.size):
        out[j] = (out[j - 1] * (n - 1) + x[n - 1 + j]) / n
    return out


def atr(high, low, close, period: int = 14) -> np.ndarray:
    n = _check_period(period)
    return _wilder(true_range(high, low, close), n)


def adx(high, low, close, period: int = 14) -> np.ndarray:
    """Average directional index (Wilder)."""

    h = _arr(high)
    lo = _arr(low)
    n = _check_period(period)
    tr = true_range(high, low, close)
    if tr.size < 2 * n - 1:
        return np.zeros(0, dtype=np.float64)

    up = h[1:] - h[:-1]
    down = lo[:-1] - lo[1:]
    plus_dm = np.where((up > down) & (up > 0), up, 0.0)
    minus_dm = np.where((down > up) & (down > 0), down, 0.0)

    tr_s = _wilder(tr, n)
    plus_s = _wilder(plus_dm, n)
    minus_s = _wilder(minus_dm, n)

    with np.errstate(divide="ignore", invalid="ignore"):
        pdi = np.where(tr_s > 0, 100.0 * plus_s / tr_s, 0.0)
        mdi = np.where(tr_s > 0, 100.0 * minus_s / tr_s, 0.0)
        total = pdi + mdi
        dx = np.where(total > 0, 100.0 * np.abs(pdi - mdi) / total, 0.0)
    return _wilder(dx, n)


@dataclass(frozen=True, slots=True)
class Bands:
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


def bollinger(values, period: int = 20, std_dev: float = 2.0) -> Bands:
    x = _arr(values)
    n = _check_period(period)
    mid = sma(x, n)
    if mid.size == 0:
        empty = np.zeros(0, dtype=np.float64)
        return Bands(upper=empty, middle=empty.copy(), lower=empty.copy())

    windows = np.lib.stride_tricks.sliding_window_view(x, n)
    sd = np.std(windows, axis=1)
    return Bands(upper=mid + float(std_dev) * sd, middle=mid, lower=mid - float(std_dev) * sd)


def keltner(high, low, close, period: int = 20, multiplier: float = 2.0) -> Bands:
    """EMA(close) +/- multiplier * ATR, both over `period`. First value at bar `period`."""

    n = _check_period(period)
    mid = ema(close, n)
    rng = atr(high, low, close, n)
    if rng.size == 0:
        empty = np.zeros(0, dtype=np.float64)
        return Bands(upper=empty, middle=empty.copy(), lower=empty.copy())
    # ema starts at bar n-1, atr at bar n
    mid = mid[1:]
    return Bands(upper=mid + float(multiplier) * rng, middle=mid, lower=mid - float(multiplier) * rng)


@dataclass(frozen=True, slots=True)
class Stochastic:
    k: np.ndarray
    d: np.ndarray


def stochastic(high, low, close, period: int = 14, signal_period: int = 3) -> Stochastic:
    h = _arr(high)
    lo = _arr(low)
    c = _arr(close)
    n = _check_period(period)
    s = _check_period(signal_period, "signal_period")
    if c.size < n:
        empty = np.zeros(0, dtype=np.float64)
        return Stochastic(k=empty, d=empty.copy())

    hh = np.max(np.lib.stride_tricks.sliding_window_view(h, n), axis=1)
    ll = np.min(np.lib.stride_tricks.sliding_window_view(lo, n), axis=1)
    span = hh - ll
    with np.errstate(divide="ignore", invalid="ignore"):
        k = np.where(span > 0, 100.0 * (c[n - 1 :] - ll) / span, 50.0)
    return Stochastic(k=k, d=sma(k, s))


def rsi(values, period: int = 14) -> np.ndarray:
    """Wilder RSI. First value at bar `period`."""

    x = _arr(values)
    n = _check_period(period)
    if x.size <= n:
        return np.zeros(0, dtype=np.float64)

    diff = np.diff(x)
    up = np.maximum(diff, 0.0)
    down = np.maximum(-diff, 0.0)
    avg_up = _wilder(up, n)
    avg_down = _wilder(down, n)

    out = np.empty(avg_up.size, dtype=np.float64)
    for j in range(out.size):
        if avg_down[j] == 0:
            out[j] = 100.0 if avg_up[j] > 0 else 50.0
        else:
            out[j] = 100.0 - (100.0 / (1.0 + avg_up[j] / avg_down[j]))
    return out


def cci(high, low, close, period: int = 20) -> np.ndarray:
    """Commodity channel index over the typical price."""

    n = _check_period(period)
    tp = (_arr(high) + _arr(low) + _arr(close)) / 3.0
    if tp.size < n:
        return np.zeros(0, dtype=np.float64)

    windows = np.lib.stride_tricks.sliding_window_view(tp, n)
    mean = windows.mean(axis=1)
    mad = np.mean(np.abs(windows - mean[:, None]), axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(mad > 0, (tp[n - 1 :] - mean) / (0.015 * mad), 0.0)
