"""Integration: bar file -> config -> every preset -> backtest report.

Deterministic synthetic bars are written as a MetaTrader export so the run
covers the real loader, the preset layer, the registry and the engine.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from signalbench.backtest.engine import run_backtest
from signalbench.backtest.io import PriceSeries, load_bars_csv
from signalbench.core.config import Config, available_presets
from signalbench.core.types import Direction, Outcome
from tests.unit._bars import random_walk

REPO_ROOT = Path(__file__).resolve().parents[2]
PRESETS = available_presets(REPO_ROOT / "config")


def _write_mt(path: Path, prices: PriceSeries) -> None:
    t0 = datetime(2025, 7, 1, tzinfo=UTC)
    rows = []
    for i in range(len(prices)):
        ts = t0 + timedelta(minutes=i)
        rows.append(
            f"{ts:%Y.%m.%d},{ts:%H:%M},{prices.open[i]:.3f},{prices.high[i]:.3f},"
            f"{prices.low[i]:.3f},{prices.close[i]:.3f},0"
        )
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")


@pytest.fixture(scope="module")
def bar_file(tmp_path_factory: pytest.TempPathFactory) -> Path:
    path = tmp_path_factory.mktemp("bars") / "DAT_MT_TEST_M1.csv"
    _write_mt(path, random_walk(1200, seed=42, scale=1.5))
    return path


def test_presets_are_discovered() -> None:
    assert "psar" in PRESETS
    assert len(PRESETS) >= 10


@pytest.mark.parametrize("preset", PRESETS)
def test_every_preset_runs_end_to_end(preset: str, repo_config_dir: Path, bar_file: Path) -> None:
    cfg = Config.from_yaml(repo_config_dir / "default.yaml", preset=preset)
    prices = load_bars_csv(bar_file, max_bars=cfg.data.max_bars, volume_seed=1)
    assert len(prices) == 1200

    report = run_backtest(strategy=cfg.build_strategy(), prices=prices, cfg=cfg.engine_config())
    res = report.result

    assert report.strategy == cfg.strategy.name
    assert report.n_bars == len(prices)
    assert res.total_trades == len(report.trades)
    assert res.pending_trades == 0
    assert 0 <= res.correct_trades <= res.total_trades
    assert 0.0 <= res.accuracy_pct <= 100.0

    signal_bars = [s.bar_index for s in report.signals]
    assert signal_bars == sorted(signal_bars)
    assert len(set(signal_bars)) == len(signal_bars)

    expiry = cfg.backtest.expiry_bars
    for t in report.trades:
        assert t.outcome in (Outcome.WIN, Outcome.LOSS)
        assert t.expiry_bar_index == t.entry_bar_index + expiry
        assert t.expiry_bar_index < len(prices)
        assert t.entry_price == prices.close[t.entry_bar_index]
        assert t.exit_price == prices.close[t.expiry_bar_index]
        up = t.exit_price > t.entry_price
        down = t.exit_price < t.entry_price
        won = up if t.direction is Direction.UP else down
        assert (t.outcome is Outcome.WIN) == won

    for s in report.signals:
        assert 0.0 <= s.confidence <= 100.0


def test_longer_expiry_shifts_exit_bars(repo_config_dir: Path, bar_file: Path) -> None:
    cfg = Config.from_yaml(repo_config_dir / "default.yaml", preset="psar")
    prices = load_bars_csv(bar_file)
    strategy = cfg.build_strategy()

    short = run_backtest(strategy=strategy, prices=prices, cfg=cfg.engine_config())
    long_cfg = cfg.model_copy(update={"backtest": cfg.backtest.model_copy(update={"expiry_bars": 5})})
    long = run_backtest(strategy=strategy, prices=prices, cfg=long_cfg.engine_config())

    # signal detection does not depend on the holding period
    assert [s.bar_index for s in short.signals] == [s.bar_index for s in long.signals]
    assert all(t.expiry_bar_index - t.entry_bar_index == 5 for t in long.trades)
    assert long.result.total_trades <= short.result.total_trades
