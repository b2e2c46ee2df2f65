from __future__ import annotations

import pytest

from signalbench.backtest.simulator import Trade, TradeBook
from signalbench.core.exceptions import TradeStateError
from signalbench.core.types import Direction, Outcome


def _trade(direction: Direction, entry: float = 100.0) -> Trade:
    return Trade(signal_bar_index=1, entry_bar_index=2, expiry_bar_index=3, direction=direction, entry_price=entry)


def test_up_wins_above_entry():
    t = _trade(Direction.UP)
    assert t.resolve(101.0) is Outcome.WIN
    assert t.exit_price == 101.0
    assert not t.is_open


def test_down_wins_below_entry():
    assert _trade(Direction.DOWN).resolve(99.0) is Outcome.WIN
    assert _trade(Direction.DOWN).resolve(101.0) is Outcome.LOSS


def test_flat_close_loses():
    assert _trade(Direction.UP).resolve(100.0) is Outcome.LOSS
    assert _trade(Direction.DOWN).resolve(100.0) is Outcome.LOSS


def test_resolving_twice_raises():
    t = _trade(Direction.UP)
    t.resolve(101.0)
    with pytest.raises(TradeStateError):
        t.resolve(99.0)
    assert t.outcome is Outcome.WIN


def test_book_resolves_only_due_trades():
    book = TradeBook()
    a = book.open(signal_bar=10, direction=Direction.UP, entry_bar=10, entry_price=100.0, expiry_bars=3)
    b = book.open(signal_bar=12, direction=Direction.DOWN, entry_bar=12, entry_price=100.0, expiry_bars=3)
    assert a.expiry_bar_index == 13
    assert b.expiry_bar_index == 15
    assert len(book.open_trades) == 2

    closes = {13: 105.0, 15: 104.0}
    assert book.resolve_due(12, closes.get) == []
    done = book.resolve_due(13, closes.get)
    assert done == [a]
    assert a.outcome is Outcome.WIN
    assert book.open_trades == [b]

    book.resolve_due(15, closes.get)
    assert b.outcome is Outcome.LOSS
    assert book.open_trades == []
    assert len(book.trades) == 2


def test_missing_expiry_close_defers_to_next_defined_close():
    book = TradeBook()
    t = book.open(signal_bar=1, direction=Direction.UP, entry_bar=2, entry_price=100.0, expiry_bars=1)
    closes = {3: None, 4: None, 5: 101.0}
    assert book.resolve_due(3, closes.get) == []
    assert book.resolve_due(4, closes.get) == []
    assert book.resolve_due(5, closes.get) == [t]
    assert t.exit_price == 101.0
    assert t.outcome is Outcome.WIN


def test_overdue_trade_exits_at_its_own_expiry_close():
    book = TradeBook()
    t = book.open(signal_bar=5, direction=Direction.DOWN, entry_bar=5, entry_price=100.0, expiry_bars=1)
    closes = {6: 99.0, 7: 120.0}
    assert book.resolve_due(7, closes.get) == [t]
    assert t.exit_price == 99.0
    assert t.outcome is Outcome.WIN


def test_book_rejects_bad_trades():
    book = TradeBook()
    with pytest.raises(ValueError):
        book.open(signal_bar=1, direction=Direction.NONE, entry_bar=1, entry_price=1.0, expiry_bars=1)
    with pytest.raises(ValueError):
        book.open(signal_bar=1, direction=Direction.UP, entry_bar=1, entry_price=1.0, expiry_bars=0)
