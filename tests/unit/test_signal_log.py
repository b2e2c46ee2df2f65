from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from signalbench.core.exceptions import DataSourceError, TradeStateError
from signalbench.core.types import Direction, Outcome
from signalbench.live.log import SignalLog

T0 = datetime(2025, 7, 1, 12, 0, tzinfo=UTC)


def _record(log: SignalLog, direction: Direction = Direction.UP):
    return log.record_signal(
        symbol="XAUUSD",
        direction=direction,
        confidence=80.0,
        reason="PSAR cross UP",
        entry_price=3300.5,
        holding=timedelta(minutes=1),
        now=T0,
    )


def test_signal_is_logged_pending(tmp_path: Path) -> None:
    log = SignalLog(tmp_path / "logs" / "signals.jsonl")
    rec = _record(log)

    assert rec.outcome is Outcome.PENDING
    assert rec.check_at == T0 + timedelta(minutes=1)
    lines = log.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    raw = json.loads(lines[0])
    assert raw["outcome"] == "PENDING"
    assert raw["exit_price"] is None
    assert raw["resolution_time"] is None
    assert raw["direction"] == "UP"


def test_resolution_appends_and_load_folds(tmp_path: Path) -> None:
    log = SignalLog(tmp_path / "signals.jsonl")
    a = _record(log)
    b = _record(log, Direction.DOWN)
    log.resolve(a, outcome=Outcome.WIN, exit_price=3301.0, now=T0 + timedelta(minutes=1))

    assert len(log.path.read_text(encoding="utf-8").splitlines()) == 3
    state = log.load()
    assert set(state) == {a.id, b.id}
    assert state[a.id].outcome is Outcome.WIN
    assert state[a.id].exit_price == 3301.0
    assert state[a.id].resolution_time == T0 + timedelta(minutes=1)
    assert [r.id for r in log.pending()] == [b.id]


def test_resolving_twice_raises(tmp_path: Path) -> None:
    log = SignalLog(tmp_path / "signals.jsonl")
    done = log.resolve(_record(log), outcome=Outcome.LOSS, exit_price=3299.0)
    with pytest.raises(TradeStateError):
        log.resolve(done, outcome=Outcome.WIN, exit_price=3301.0)


def test_corrupt_line_is_data_error(tmp_path: Path) -> None:
    p = tmp_path / "signals.jsonl"
    p.write_text("{not json\n", encoding="utf-8")
    with pytest.raises(DataSourceError):
        SignalLog(p).load()


def test_missing_log_loads_empty(tmp_path: Path) -> None:
    assert SignalLog(tmp_path / "none.jsonl").load() == {}
