"""signalbench.backtest.strategies.bollinger

Bollinger breakout after a squeeze.

- UP: close crosses above the upper band
- DOWN: close crosses below the lower band
- ADX must reach the threshold
- band width must be under `squeeze_mult` x its trailing average (None disables)

Confidence: 50 plus 2 per ADX point over the threshold, capped at 95.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import SqueezeFilter, StrengthFilter
from signalbench.backtest.flip import BandBreakoutDetector
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, require_periods
from signalbench.backtest.strategies.registry import register


@register("bollinger_breakout")
@dataclass(frozen=True, slots=True)
class BollingerBreakoutStrategy(Strategy):
    name: str = "bollinger_breakout"
    period: int = 20
    std_dev: float = 2.0
    adx_period: int = 14
    adx_threshold: float = 30.0
    squeeze_mult: float | None = 0.8

    def validate(self) -> None:
        require_periods(period=self.period, adx_period=self.adx_period)

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        bb = indicators.bollinger(prices.close, self.period, self.std_dev)
        return {
            "bb_upper": bb.upper,
            "bb_lower": bb.lower,
            "adx": indicators.adx(prices.high, prices.low, prices.close, self.adx_period),
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=BandBreakoutDetector("close", "bb_upper", "bb_lower"),
            filters=(
                StrengthFilter("adx", self.adx_threshold),
                SqueezeFilter("bb_upper", "bb_lower", multiplier=self.squeeze_mult, period=self.period),
            ),
            scorer=ConfidenceScorer(base=50.0, per_unit=2.0, max_bonus=45.0, ceiling=95.0),
            label="Bollinger breakout",
        )
