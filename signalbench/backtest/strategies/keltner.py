"""signalbench.backtest.strategies.keltner

Keltner channel breakout, faded.

This is the one contrarian variant: a close through the upper band trades
DOWN, a close through the lower band trades UP. The trend must not confirm
the breakout: fading an upside break needs EMA(fast) <= EMA(slow), fading a
downside break needs EMA(fast) >= EMA(slow).

Whether betting against the breakout is intended (mean reversion) or a sign
error carried over from an earlier script is unconfirmed. The policy is kept
explicit so it can be flipped without touching the detector.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import StackFilter
from signalbench.backtest.flip import BandBreakoutDetector, DirectionPolicy
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, require_periods
from signalbench.backtest.strategies.registry import register
from signalbench.core.exceptions import MisconfiguredFilterError


@register("keltner_reversal")
@dataclass(frozen=True, slots=True)
class KeltnerReversalStrategy(Strategy):
    name: str = "keltner_reversal"
    period: int = 20
    multiplier: float = 2.0
    fast: int = 50
    slow: int = 200
    policy: DirectionPolicy = DirectionPolicy.CONTRARIAN
    confidence: float = 60.0

    def validate(self) -> None:
        require_periods(period=self.period, fast=self.fast, slow=self.slow)
        try:
            DirectionPolicy(self.policy)
        except ValueError as e:
            raise MisconfiguredFilterError(f"unknown direction policy: {self.policy}") from e

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        kc = indicators.keltner(prices.high, prices.low, prices.close, self.period, self.multiplier)
        return {
            "kc_upper": kc.upper,
            "kc_lower": kc.lower,
            "ema_fast": indicators.ema(prices.close, self.fast),
            "ema_slow": indicators.ema(prices.close, self.slow),
        }

    def rule(self) -> SignalRule:
        policy = DirectionPolicy(self.policy)
        # filters see the breakout direction, not the traded one
        if policy is DirectionPolicy.CONTRARIAN:
            alignment = StackFilter(("ema_slow", "ema_fast"), strict=False, name="counter_trend")
        else:
            alignment = StackFilter(("ema_fast", "ema_slow"), strict=False, name="trend")
        return SignalRule(
            detector=BandBreakoutDetector("close", "kc_upper", "kc_lower"),
            filters=(alignment,),
            scorer=ConfidenceScorer.fixed(self.confidence),
            policy=policy,
            label="Keltner breakout",
        )
