"""signalbench.backtest.strategies.base

Strategy contract.

A strategy is declarative: it names the indicator series it needs and the
rule that turns them into signals (one detector, an ordered tuple of filters,
a confidence scorer). There is exactly one engine loop; strategies never
iterate bars themselves.

Indicator outputs keep their natural (shortened) length. Alignment happens in
`SeriesSet`, not here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from signalbench.backtest.align import SeriesSet
from signalbench.backtest.filters import Filter, RangeFilter, StrengthFilter
from signalbench.backtest.flip import Detector, DirectionPolicy
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.scoring import ConfidenceScorer
from signalbench.core.exceptions import MisconfiguredFilterError
from signalbench.core.types import Direction, Signal


def check_psar(step: float, max_step: float) -> None:
    if float(step) <= 0 or float(max_step) < float(step):
        raise MisconfiguredFilterError(f"psar needs 0 < step <= max_step, got step={step} max={max_step}")


def require_periods(**periods: int) -> None:
    for name, value in periods.items():
        if int(value) < 1:
            raise MisconfiguredFilterError(f"{name} must be >= 1, got {value}")


@dataclass(frozen=True, slots=True)
class SignalRule:
    detector: Detector
    filters: tuple[Filter, ...] = ()
    scorer: ConfidenceScorer = field(default_factory=lambda: ConfidenceScorer.fixed(80.0))
    policy: DirectionPolicy = DirectionPolicy.TREND
    entry_offset: int = 1
    label: str = "flip"

    def __post_init__(self) -> None:
        if int(self.entry_offset) < 0:
            raise MisconfiguredFilterError(f"entry_offset must be >= 0, got {self.entry_offset}")

    @property
    def lag(self) -> int:
        """Bars after the signal bar that must exist before it can be evaluated."""

        look = max((int(f.lookahead) for f in self.filters), default=0)
        return max(int(self.entry_offset), look)

    def _strength(self) -> StrengthFilter | None:
        for f in self.filters:
            if isinstance(f, StrengthFilter):
                return f
        return None

    def _range_enabled(self) -> bool:
        return any(isinstance(f, RangeFilter) and f.enabled for f in self.filters)

    def evaluate(self, i: int, data: SeriesSet) -> Signal:
        flip = self.detector.detect(i, data)
        if flip is None:
            return Signal.skip(i, "no flip")

        for f in self.filters:
            if not f(i, flip.direction, data):
                return Signal.skip(i, f"{self.label} {flip.direction} rejected by {f.name}")

        strength = self._strength()
        margin = strength.margin(i, data) if strength is not None else 0.0
        confidence = self.scorer.score(margin, range_enabled=self._range_enabled())
        direction = self.policy.apply(flip.direction)
        return Signal(
            bar_index=i,
            direction=direction,
            confidence=confidence,
            reason=self._reason(i, flip.direction, direction, data, strength),
            fires=True,
        )

    def _reason(
        self,
        i: int,
        flipped: Direction,
        direction: Direction,
        data: SeriesSet,
        strength: StrengthFilter | None,
    ) -> str:
        parts = [f"{self.label} {flipped}"]
        if self.filters:
            parts.append("with " + ", ".join(f.name for f in self.filters))
        if strength is not None:
            v = data.value(strength.series, i)
            parts.append(f"{strength.series} {v:.2f}" if v is not None else f"{strength.series} n/a")
        if direction is not flipped:
            parts.append(f"{self.policy} {direction}")
        return "; ".join(parts)


class Strategy:
    name: str = "strategy"

    def __post_init__(self) -> None:
        self.validate()
        # building the rule validates every filter parameter up front
        self.rule()

    def validate(self) -> None:
        """Reject out-of-range indicator parameters."""

    def indicators(self, prices: PriceSeries) -> dict[str, np.ndarray]:
        raise NotImplementedError

    def rule(self) -> SignalRule:
        raise NotImplementedError

    def series(self, prices: PriceSeries) -> SeriesSet:
        return SeriesSet.build(prices, self.indicators(prices))
