"""signalbench.backtest.strategies.sma_psar_stoch

Fast/slow SMA crossover confirmed by PSAR and stochastic:
- UP: SMA(fast) crosses above SMA(slow), PSAR dot under the bar, %K > 50
- DOWN: the mirror image

Entry is the signal bar's own close; there is no continuation bar.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import LevelFilter, StopSideFilter
from signalbench.backtest.flip import FlipDetector
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, check_psar, require_periods
from signalbench.backtest.strategies.registry import register


@register("sma_psar_stoch")
@dataclass(frozen=True, slots=True)
class SmaPsarStochStrategy(Strategy):
    name: str = "sma_psar_stoch"
    fast: int = 5
    slow: int = 13
    step: float = 0.03
    max_step: float = 0.2
    stoch_period: int = 16
    stoch_signal: int = 9
    stoch_level: float = 50.0
    confidence: float = 75.0

    def validate(self) -> None:
        require_periods(
            fast=self.fast,
            slow=self.slow,
            stoch_period=self.stoch_period,
            stoch_signal=self.stoch_signal,
        )
        check_psar(self.step, self.max_step)

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        stoch = indicators.stochastic(prices.high, prices.low, prices.close, self.stoch_period, self.stoch_signal)
        return {
            "sma_fast": indicators.sma(prices.close, self.fast),
            "sma_slow": indicators.sma(prices.close, self.slow),
            "psar": indicators.psar(prices.high, prices.low, step=self.step, max_step=self.max_step),
            "stoch_k": stoch.k,
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=FlipDetector("sma_fast", "sma_slow"),
            filters=(
                StopSideFilter("psar"),
                LevelFilter("stoch_k", self.stoch_level),
            ),
            scorer=ConfidenceScorer.fixed(self.confidence),
            entry_offset=0,
            label="SMA cross",
        )
