"""signalbench.backtest.simulator

Fixed-horizon trade simulator.

A trade opens at `entry_bar = signal_bar + entry_offset` at that bar's close
and is judged at `expiry_bar = entry_bar + expiry_bars`:

- UP wins iff close[expiry] > entry_price
- DOWN wins iff close[expiry] < entry_price
- a flat close loses
- a missing close at the expiry bar defers the exit to the next defined close

State machine: PENDING -> WIN | LOSS. Nothing leaves a terminal state.

Several trades can be PENDING at once when the holding period is longer than
the gap between signals. That overlap is intended.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from signalbench.core.exceptions import TradeStateError
from signalbench.core.types import Direction, Outcome


@dataclass(slots=True)
class Trade:
    signal_bar_index: int
    entry_bar_index: int
    expiry_bar_index: int
    direction: Direction
    entry_price: float
    exit_price: float | None = None
    outcome: Outcome = Outcome.PENDING

    @property
    def is_open(self) -> bool:
        return self.outcome is Outcome.PENDING

    def resolve(self, exit_price: float) -> Outcome:
        if self.outcome is not Outcome.PENDING:
            raise TradeStateError(
                f"trade entered at bar {self.entry_bar_index} already resolved as {self.outcome}"
            )
        px = float(exit_price)
        if self.direction is Direction.UP:
            won = px > self.entry_price
        else:
            won = px < self.entry_price
        self.exit_price = px
        self.outcome = Outcome.WIN if won else Outcome.LOSS
        return self.outcome


@dataclass(slots=True)
class TradeBook:
    """Ledger of every trade plus the working set of open ones."""

    trades: list[Trade] = field(default_factory=list)
    _open: list[Trade] = field(default_factory=list)

    @property
    def open_trades(self) -> list[Trade]:
        return list(self._open)

    def open(
        self,
        *,
        signal_bar: int,
        direction: Direction,
        entry_bar: int,
        entry_price: float,
        expiry_bars: int,
    ) -> Trade:
        if direction is Direction.NONE:
            raise ValueError("cannot open a trade without a direction")
        if expiry_bars < 1:
            raise ValueError("expiry_bars must be >= 1")
        t = Trade(
            signal_bar_index=signal_bar,
            entry_bar_index=entry_bar,
            expiry_bar_index=entry_bar + expiry_bars,
            direction=direction,
            entry_price=float(entry_price),
        )
        self.trades.append(t)
        self._open.append(t)
        return t

    def resolve_due(self, bar_index: int, close_at: Callable[[int], float | None]) -> list[Trade]:
        """Resolve every open trade whose expiry bar is at or before `bar_index`.

        The exit is the close at the expiry bar, or the first defined close
        after it when that bar's close is missing. A trade with no defined
        close up to `bar_index` stays open.
        """

        done: list[Trade] = []
        for t in self._open:
            if t.expiry_bar_index > bar_index:
                continue
            for k in range(t.expiry_bar_index, bar_index + 1):
                px = close_at(k)
                if px is not None:
                    t.resolve(px)
                    done.append(t)
                    break
        if done:
            self._open = [t for t in self._open if t.is_open]
        return done
