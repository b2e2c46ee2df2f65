"""signalbench.backtest.strategies.oscillator

Triple oscillator exhaustion.

UP when RSI, stochastic %K/%D and CCI are all oversold and all turning up,
with the close above EMA(trend_period). DOWN is the overbought mirror.
Entry is the signal bar's close.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from signalbench import indicators
from signalbench.backtest.filters import TrendFilter
from signalbench.backtest.flip import OscillatorReversalDetector, Zone
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.backtest.strategies.base import SignalRule, Strategy, require_periods
from signalbench.backtest.strategies.registry import register


@register("triple_oscillator")
@dataclass(frozen=True, slots=True)
class TripleOscillatorStrategy(Strategy):
    name: str = "triple_oscillator"
    rsi_period: int = 14
    rsi_low: float = 35.0
    rsi_high: float = 65.0
    stoch_period: int = 14
    stoch_signal: int = 3
    stoch_low: float = 20.0
    stoch_high: float = 80.0
    cci_period: int = 14
    cci_low: float = -100.0
    cci_high: float = 100.0
    trend_period: int = 200
    confidence: float = 70.0

    def validate(self) -> None:
        require_periods(
            rsi_period=self.rsi_period,
            stoch_period=self.stoch_period,
            stoch_signal=self.stoch_signal,
            cci_period=self.cci_period,
            trend_period=self.trend_period,
        )

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        stoch = indicators.stochastic(prices.high, prices.low, prices.close, self.stoch_period, self.stoch_signal)
        return {
            "rsi": indicators.rsi(prices.close, self.rsi_period),
            "stoch_k": stoch.k,
            "stoch_d": stoch.d,
            "cci": indicators.cci(prices.high, prices.low, prices.close, self.cci_period),
            "trend": indicators.ema(prices.close, self.trend_period),
        }

    def rule(self) -> SignalRule:
        return SignalRule(
            detector=OscillatorReversalDetector(
                zones=(
                    Zone("rsi", self.rsi_low, self.rsi_high),
                    Zone("stoch_k", self.stoch_low, self.stoch_high),
                    Zone("stoch_d", self.stoch_low, self.stoch_high),
                    Zone("cci", self.cci_low, self.cci_high),
                ),
            ),
            filters=(TrendFilter("trend", strict=True),),
            scorer=ConfidenceScorer.fixed(self.confidence),
            entry_offset=0,
            label="Oscillator reversal",
        )
