"""signalbench.backtest.strategies.trend

EMA crossover in a strong trend:
- EMA(fast) crosses EMA(slow)
- ADX >= threshold
- close strictly on the trend side of EMA(trend_period)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import StrengthFilter, TrendFilter
from signalbench.backtest.flip import FlipDetector
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, require_periods
from signalbench.backtest.strategies.registry import register


@register("ema_trend")
@dataclass(frozen=True, slots=True)
class EmaTrendStrategy(Strategy):
    name: str = "ema_trend"
    fast: int = 50
    slow: int = 100
    trend_period: int = 200
    adx_period: int = 14
    adx_threshold: float = 25.0

    def validate(self) -> None:
        require_periods(fast=self.fast, slow=self.slow, trend_period=self.trend_period, adx_period=self.adx_period)

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        return {
            "ema_fast": indicators.ema(prices.close, self.fast),
            "ema_slow": indicators.ema(prices.close, self.slow),
            "trend": indicators.ema(prices.close, self.trend_period),
            "adx": indicators.adx(prices.high, prices.low, prices.close, self.adx_period),
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=FlipDetector("ema_fast", "ema_slow"),
            filters=(
                StrengthFilter("adx", self.adx_threshold),
                TrendFilter("trend", strict=True),
            ),
            scorer=ConfidenceScorer(base=50.0, per_unit=2.0, max_bonus=45.0, ceiling=95.0),
            label="EMA cross",
        )
