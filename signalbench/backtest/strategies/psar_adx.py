"""signalbench.backtest.strategies.psar_adx

PSAR crossover gated by trend strength.

Filter order: continuation, persistence (min_flips), ADX >= threshold,
bar range vs trailing average, EMA trend side.

Confidence starts at 70 and gains 2 points per ADX point above the threshold
(capped at +30), plus 5 when the range filter is active.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import (
    DEFAULT_RANGE_LOOKBACK,
    ContinuationFilter,
    PersistenceFilter,
    RangeFilter,
    StrengthFilter,
    TrendFilter,
)
from signalbench.backtest.flip import FlipDetector
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, check_psar, require_periods
from signalbench.backtest.strategies.registry import register


@register("psar_adx")
@dataclass(frozen=True, slots=True)
class PsarAdxStrategy(Strategy):
    name: str = "psar_adx"
    step: float = 0.02
    max_step: float = 0.2
    adx_period: int = 14
    adx_threshold: float = 20.0
    min_flips: int = 1
    range_multiplier: float = 0.0
    range_lookback: int = DEFAULT_RANGE_LOOKBACK
    trend_period: int = 200

    def validate(self) -> None:
        require_periods(adx_period=self.adx_period, trend_period=self.trend_period)
        check_psar(self.step, self.max_step)

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        return {
            "psar": indicators.psar(prices.high, prices.low, step=self.step, max_step=self.max_step),
            "adx": indicators.adx(prices.high, prices.low, prices.close, self.adx_period),
            "trend": indicators.ema(prices.close, self.trend_period),
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=FlipDetector("close", "psar"),
            filters=(
                ContinuationFilter(),
                PersistenceFilter("close", "psar", min_flips=self.min_flips),
                StrengthFilter("adx", self.adx_threshold),
                RangeFilter(self.range_multiplier, lookback=self.range_lookback),
                TrendFilter("trend"),
            ),
            scorer=ConfidenceScorer(base=70.0, per_unit=2.0, max_bonus=30.0, range_bonus=5.0),
            label="PSAR cross",
        )
