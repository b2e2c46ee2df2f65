from __future__ import annotations

import numpy as np
import pytest

from signalbench.backtest.align import SeriesSet
from signalbench.backtest.filters import (
    ContinuationFilter,
    LevelFilter,
    PersistenceFilter,
    RangeFilter,
    SqueezeFilter,
    StackFilter,
    StopSideFilter,
    StrengthFilter,
    TrendFilter,
)
from signalbench.backtest.io import PriceSeries
from signalbench.core.exceptions import MisconfiguredFilterError
from signalbench.core.types import Direction


def _close_data(close, **outputs) -> SeriesSet:
    prices = PriceSeries.from_close(np.asarray(close, dtype=np.float64))
    return SeriesSet.build(prices, {k: np.asarray(v, dtype=np.float64) for k, v in outputs.items()})


def test_continuation_reads_next_bar():
    data = _close_data([1.0, 2.0, 3.0, 2.5])
    f = ContinuationFilter()
    assert f.lookahead == 1
    assert f(1, Direction.UP, data) is True
    assert f(2, Direction.UP, data) is False
    assert f(2, Direction.DOWN, data) is True
    # no bar after the last one
    assert f(3, Direction.UP, data) is False


def test_persistence_counts_pre_flip_side():
    # comparator flat at 5; reference below for 3 bars, then crosses up at bar 3
    data = _close_data([4.0, 4.0, 5.0, 6.0], comp=[5.0, 5.0, 5.0, 5.0])
    assert PersistenceFilter("close", "comp", min_flips=1)(3, Direction.UP, data)
    # touching the comparator counts as the pre-flip side
    assert PersistenceFilter("close", "comp", min_flips=3)(3, Direction.UP, data)
    assert not PersistenceFilter("close", "comp", min_flips=4)(3, Direction.UP, data)
    # bar 2 touches the comparator, bar 1 is below it
    assert not PersistenceFilter("close", "comp", min_flips=2)(3, Direction.DOWN, data)


def test_persistence_stops_at_undefined_values():
    data = _close_data([4.0, 4.0, 4.0, 6.0], comp=[5.0, 5.0])  # comp defined from bar 2
    assert PersistenceFilter("close", "comp", min_flips=1)(3, Direction.UP, data)
    assert not PersistenceFilter("close", "comp", min_flips=2)(3, Direction.UP, data)


def test_persistence_rejects_k_below_one():
    with pytest.raises(MisconfiguredFilterError):
        PersistenceFilter("close", "comp", min_flips=0)


def test_persistence_is_monotonic_in_k():
    rng = np.random.default_rng(5)
    close = rng.integers(0, 3, 200).astype(np.float64)
    data = _close_data(close, comp=np.ones(200))
    for i in range(1, 200):
        for d in (Direction.UP, Direction.DOWN):
            results = [PersistenceFilter("close", "comp", min_flips=k)(i, d, data) for k in range(1, 7)]
            # once a K fails, every larger K fails
            for a, b in zip(results, results[1:]):
                assert a or not b


def test_strength_threshold_and_margin():
    data = _close_data([1.0, 1.0, 1.0], adx=[19.0, 20.0, 31.5])
    f = StrengthFilter("adx", 20.0)
    assert not f(0, Direction.UP, data)
    assert f(1, Direction.UP, data)
    assert f.margin(2, data) == pytest.approx(11.5)


def test_strength_undefined_fails():
    data = _close_data([1.0, 1.0, 1.0], adx=[40.0])
    assert not StrengthFilter("adx", 20.0)(1, Direction.UP, data)


def _range_data(ranges) -> SeriesSet:
    r = np.asarray(ranges, dtype=np.float64)
    close = np.full(r.size, 100.0)
    prices = PriceSeries(open=close.copy(), high=close + r / 2.0, low=close - r / 2.0, close=close)
    return SeriesSet.build(prices)


def test_range_filter():
    data = _range_data([1.0, 1.0, 1.0, 2.0])
    assert RangeFilter(multiplier=0.0)(0, Direction.UP, data)  # disabled
    f = RangeFilter(multiplier=1.5, lookback=4)
    # avg = 1.25, current = 2.0 >= 1.875
    assert f(3, Direction.UP, data)
    assert not RangeFilter(multiplier=1.7, lookback=4)(3, Direction.UP, data)
    # window not yet complete
    assert not f(2, Direction.UP, data)


def test_range_filter_rejects_zero_lookback():
    with pytest.raises(MisconfiguredFilterError):
        RangeFilter(multiplier=1.0, lookback=0)


def test_stack_filter():
    data = _close_data([1.0, 1.0], a=[3.0, 1.0], b=[2.0, 2.0], c=[1.0, 3.0])
    f = StackFilter(("a", "b", "c"))
    assert f(0, Direction.UP, data)
    assert not f(0, Direction.DOWN, data)
    assert f(1, Direction.DOWN, data)

    flat = _close_data([1.0], a=[2.0], b=[2.0])
    assert not StackFilter(("a", "b"))(0, Direction.UP, flat)
    assert StackFilter(("a", "b"), strict=False)(0, Direction.UP, flat)


def test_stack_filter_needs_two_series():
    with pytest.raises(MisconfiguredFilterError):
        StackFilter(("a",))


def test_trend_filter_strictness():
    data = _close_data([100.0, 100.0], ema=[100.0, 99.0])
    assert TrendFilter("ema")(0, Direction.UP, data)
    assert not TrendFilter("ema", strict=True)(0, Direction.UP, data)
    assert TrendFilter("ema")(0, Direction.DOWN, data)
    assert TrendFilter("ema", strict=True)(1, Direction.UP, data)
    assert not TrendFilter("ema")(1, Direction.DOWN, data)


def test_level_filter():
    data = _close_data([1.0, 1.0], k=[60.0, 40.0])
    f = LevelFilter("k", 50.0)
    assert f(0, Direction.UP, data)
    assert not f(0, Direction.DOWN, data)
    assert f(1, Direction.DOWN, data)


def test_stop_side_filter():
    close = np.array([100.0, 100.0])
    prices = PriceSeries(open=close.copy(), high=close + 1.0, low=close - 1.0, close=close)
    data = SeriesSet.build(prices, {"psar": np.array([98.0, 102.0])})
    f = StopSideFilter("psar")
    assert f(0, Direction.UP, data)
    assert not f(0, Direction.DOWN, data)
    assert f(1, Direction.DOWN, data)


def test_squeeze_filter():
    upper = [12.0, 12.0, 12.0, 10.5]
    lower = [8.0, 8.0, 8.0, 9.5]
    data = _close_data([10.0] * 4, u=upper, lo=lower)
    f = SqueezeFilter("u", "lo", multiplier=0.8, period=4)
    # widths 4, 4, 4, 1: avg 3.25, 1 < 2.6
    assert f(3, Direction.UP, data)
    assert not f(2, Direction.UP, data)
    assert SqueezeFilter("u", "lo", multiplier=None)(2, Direction.UP, data)


def test_squeeze_filter_rejects_bad_params():
    with pytest.raises(MisconfiguredFilterError):
        SqueezeFilter("u", "lo", period=0)
    with pytest.raises(MisconfiguredFilterError):
        SqueezeFilter("u", "lo", multiplier=0.0)
