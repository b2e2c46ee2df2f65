"""signalbench.backtest.scoring

Confidence scoring.

score = base + min(max_bonus, per_unit * margin) [+ range_bonus], clipped to
[0, ceiling]. The margin is how far the strength filter clears its threshold
at the signal bar, so the score is monotonic in the margin and never reads
past bar i.
"""

from __future__ import annotations

from dataclasses import dataclass

from signalbench.core.exceptions import MisconfiguredFilterError


@dataclass(frozen=True, slots=True)
class ConfidenceScorer:
    base: float = 70.0
    per_unit: float = 0.0
    max_bonus: float = 0.0
    range_bonus: float = 0.0
    ceiling: float = 100.0

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.ceiling) <= 100.0:
            raise MisconfiguredFilterError(f"ceiling must be within [0, 100], got {self.ceiling}")
        if float(self.per_unit) < 0 or float(self.max_bonus) < 0:
            raise MisconfiguredFilterError("per_unit and max_bonus must be >= 0")

    @classmethod
    def fixed(cls, score: float) -> ConfidenceScorer:
        return cls(base=score)

    def score(self, margin: float = 0.0, *, range_enabled: bool = False) -> float:
        bonus = min(float(self.max_bonus), float(self.per_unit) * float(margin))
        s = float(self.base) + bonus
        if range_enabled:
            s += float(self.range_bonus)
        return max(0.0, min(float(self.ceiling), s))
