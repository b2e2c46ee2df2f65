"""signalbench.backtest.strategies.ema_stack

PSAR crossover that only trades with a fully stacked EMA fan:
- UP needs EMA(fast) > EMA(mid) > EMA(slow)
- DOWN needs the reverse
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import ContinuationFilter, StackFilter
from signalbench.backtest.flip import FlipDetector
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, check_psar, require_periods
from signalbench.backtest.strategies.registry import register


@register("psar_ema_stack")
@dataclass(frozen=True, slots=True)
class PsarEmaStackStrategy(Strategy):
    name: str = "psar_ema_stack"
    step: float = 0.02
    max_step: float = 0.2
    fast: int = 50
    mid: int = 100
    slow: int = 200
    confidence: float = 80.0

    def validate(self) -> None:
        require_periods(fast=self.fast, mid=self.mid, slow=self.slow)
        check_psar(self.step, self.max_step)

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        return {
            "psar": indicators.psar(prices.high, prices.low, step=self.step, max_step=self.max_step),
            "ema_fast": indicators.ema(prices.close, self.fast),
            "ema_mid": indicators.ema(prices.close, self.mid),
            "ema_slow": indicators.ema(prices.close, self.slow),
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=FlipDetector("close", "psar"),
            filters=(
                ContinuationFilter(),
                StackFilter(("ema_fast", "ema_mid", "ema_slow")),
            ),
            scorer=ConfidenceScorer.fixed(self.confidence),
            label="PSAR cross",
        )
