"""signalbench.backtest.strategies.psar

Parabolic SAR crossover:
- close crosses the PSAR dot
- the next bar keeps moving the same way
- optional: close stayed on the old side for `min_flips` bars
- close on the trend side of EMA(trend_period)

Presets cover the EMA100 and look-back filtered variants.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import ContinuationFilter, PersistenceFilter, TrendFilter
from signalbench.backtest.flip import FlipDetector
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, check_psar, require_periods
from signalbench.backtest.strategies.registry import register


@register("psar")
@dataclass(frozen=True, slots=True)
class PsarCrossStrategy(Strategy):
    name: str = "psar"
    step: float = 0.02
    max_step: float = 0.2
    trend_period: int = 200
    min_flips: int = 1
    confidence: float = 80.0

    def validate(self) -> None:
        require_periods(trend_period=self.trend_period)
        check_psar(self.step, self.max_step)

    @property
    def trend_key(self) -> str:
        return f"ema{self.trend_period}"

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        return {
            "psar": indicators.psar(prices.high, prices.low, step=self.step, max_step=self.max_step),
            self.trend_key: indicators.ema(prices.close, self.trend_period),
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=FlipDetector("close", "psar"),
            filters=(
                ContinuationFilter(),
                PersistenceFilter("close", "psar", min_flips=self.min_flips),
                TrendFilter(self.trend_key),
            ),
            scorer=ConfidenceScorer.fixed(self.confidence),
            label="PSAR cross",
        )
