"""signalbench.backtest.engine

Backtest entry point and per-bar aggregator.

`SignalEngine.step(j)` is the whole algorithm:
1. evaluate the signal bar i = j - lag (lag covers the confirmation bar and
   the entry bar, the only bars past i a rule may read)
2. open a trade if the signal fires
3. resolve every open trade whose expiry bar is at or before j, including
   one just opened when lag exceeds the entry offset

Batch mode calls step for every bar. Live mode keeps one engine for the life
of the process, grows its data with `extend` and calls step once per new bar.
All mutable state lives on the engine instance; engines never share state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from signalbench.backtest.align import SeriesSet
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.simulator import Trade, TradeBook
from signalbench.backtest.strategies.base import SignalRule, Strategy
from signalbench.core.exceptions import InsufficientDataError, MisconfiguredFilterError
from signalbench.core.types import Outcome, Signal

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    expiry_bars: int = 1
    min_bars: int = 0

    def __post_init__(self) -> None:
        if int(self.expiry_bars) < 1:
            raise MisconfiguredFilterError(f"expiry_bars must be >= 1, got {self.expiry_bars}")
        if int(self.min_bars) < 0:
            raise MisconfiguredFilterError(f"min_bars must be >= 0, got {self.min_bars}")


@dataclass(frozen=True, slots=True)
class BacktestResult:
    total_trades: int
    correct_trades: int
    accuracy_pct: float
    pending_trades: int = 0

    @classmethod
    def from_trades(cls, trades: Iterable[Trade]) -> BacktestResult:
        total = 0
        correct = 0
        pending = 0
        for t in trades:
            if t.outcome is Outcome.PENDING:
                pending += 1
                continue
            total += 1
            if t.outcome is Outcome.WIN:
                correct += 1
        accuracy = (100.0 * correct / total) if total > 0 else 0.0
        return cls(total_trades=total, correct_trades=correct, accuracy_pct=accuracy, pending_trades=pending)

    def as_dict(self) -> dict[str, float | int]:
        return {
            "total_trades": self.total_trades,
            "correct_trades": self.correct_trades,
            "accuracy_pct": self.accuracy_pct,
            "pending_trades": self.pending_trades,
        }


@dataclass(frozen=True, slots=True)
class StepResult:
    bar_index: int
    signal: Signal | None
    opened: Trade | None
    resolved: tuple[Trade, ...]


@dataclass(frozen=True, slots=True)
class BacktestReport:
    strategy: str
    n_bars: int
    result: BacktestResult
    trades: tuple[Trade, ...]
    signals: tuple[Signal, ...]  # fired signals only


class SignalEngine:
    def __init__(
        self,
        *,
        rule: SignalRule,
        data: SeriesSet,
        cfg: EngineConfig | None = None,
        bounded: bool = True,
        name: str = "custom",
    ) -> None:
        self.rule = rule
        self.data = data
        self.cfg = cfg or EngineConfig()
        self.bounded = bounded
        self.name = name
        self.book = TradeBook()
        self.signals: list[Signal] = []
        self._next_bar = 0

    @property
    def required_bars(self) -> int:
        return max(int(self.cfg.min_bars), self.data.warmup + 1)

    def check_data(self) -> None:
        if self.data.n_bars < self.required_bars:
            raise InsufficientDataError(available=self.data.n_bars, required=self.required_bars)

    def extend(self, data: SeriesSet) -> None:
        """Swap in a longer view of the same bar history (live mode)."""

        if data.n_bars < self.data.n_bars:
            raise ValueError("bar history cannot shrink")
        self.data = data

    @property
    def next_bar(self) -> int:
        return self._next_bar

    def skip_to(self, j: int) -> None:
        """Mark bars before j as processed without evaluating them."""

        if j < self._next_bar:
            raise ValueError(f"bar {j} already processed")
        self._next_bar = j

    def evaluate(self, i: int) -> Signal:
        return self.rule.evaluate(i, self.data)

    def step(self, j: int) -> StepResult:
        if j >= self.data.n_bars:
            raise IndexError(f"bar {j} not available ({self.data.n_bars} bars)")
        if j < self._next_bar:
            raise ValueError(f"bar {j} already processed")
        self._next_bar = j + 1

        sig = None
        opened = None
        i = j - self.rule.lag
        if i >= max(1, self.data.warmup):
            sig = self.evaluate(i)
            if sig.fires:
                opened = self._open(sig)

        # after opening: a trade from bar j - lag can already be due at j
        resolved = tuple(self.book.resolve_due(j, self.data.close))
        for t in resolved:
            logger.debug(
                "trade_resolved",
                extra={"strategy": self.name, "bar": j, "direction": str(t.direction), "outcome": str(t.outcome)},
            )
        return StepResult(bar_index=j, signal=sig, opened=opened, resolved=resolved)

    def _open(self, sig: Signal) -> Trade | None:
        entry_bar = sig.bar_index + int(self.rule.entry_offset)
        expiry_bar = entry_bar + int(self.cfg.expiry_bars)
        if self.bounded and expiry_bar >= self.data.n_bars:
            return None
        entry_price = self.data.close(entry_bar)
        if entry_price is None:
            return None

        self.signals.append(sig)
        trade = self.book.open(
            signal_bar=sig.bar_index,
            direction=sig.direction,
            entry_bar=entry_bar,
            entry_price=entry_price,
            expiry_bars=int(self.cfg.expiry_bars),
        )
        logger.debug(
            "signal_fired",
            extra={
                "strategy": self.name,
                "bar": sig.bar_index,
                "direction": str(sig.direction),
                "confidence": sig.confidence,
            },
        )
        return trade

    def run(self) -> BacktestReport:
        self.check_data()
        for j in range(self._next_bar, self.data.n_bars):
            self.step(j)
        report = self.report()
        logger.info(
            "backtest_complete",
            extra={"strategy": self.name, "bars": self.data.n_bars, **report.result.as_dict()},
        )
        return report

    def result(self) -> BacktestResult:
        return BacktestResult.from_trades(self.book.trades)

    def report(self) -> BacktestReport:
        return BacktestReport(
            strategy=self.name,
            n_bars=self.data.n_bars,
            result=self.result(),
            trades=tuple(self.book.trades),
            signals=tuple(self.signals),
        )


def run_backtest(
    *,
    strategy: Strategy,
    prices: PriceSeries,
    cfg: EngineConfig | None = None,
) -> BacktestReport:
    cfg = cfg or EngineConfig()
    if len(prices) < cfg.min_bars:
        raise InsufficientDataError(available=len(prices), required=cfg.min_bars)

    engine = SignalEngine(rule=strategy.rule(), data=strategy.series(prices), cfg=cfg, name=strategy.name)
    return engine.run()
