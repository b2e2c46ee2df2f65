from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from signalbench.backtest.strategies import PsarAdxStrategy, PsarCrossStrategy
from signalbench.core.config import Config, available_presets
from signalbench.core.exceptions import ConfigError

PRESETS = [
    "bollinger_breakout",
    "ema_trend",
    "keltner_reversal",
    "psar",
    "psar_adx",
    "psar_ema100",
    "psar_ema_stack",
    "psar_filtered",
    "sma_psar_stoch",
    "triple_oscillator",
]


def test_repo_defaults(test_config: Config) -> None:
    assert test_config.preset == "psar"
    assert test_config.strategy.name == "psar"
    assert test_config.backtest.expiry_bars == 1
    assert test_config.backtest.min_bars == 250
    assert test_config.data.max_bars == 2880
    assert test_config.live.interval_seconds == 60


def test_every_shipped_preset_builds(repo_config_dir: Path) -> None:
    assert available_presets(repo_config_dir) == PRESETS
    for name in PRESETS:
        cfg = Config.from_yaml(repo_config_dir / "default.yaml", preset=name)
        strategy = cfg.build_strategy()
        assert strategy.name == cfg.strategy.name


def test_preset_params_reach_strategy(repo_config_dir: Path) -> None:
    cfg = Config.from_yaml(repo_config_dir / "default.yaml", preset="psar_ema100")
    strategy = cfg.build_strategy()
    assert isinstance(strategy, PsarCrossStrategy)
    assert strategy.trend_period == 100

    cfg = Config.from_yaml(repo_config_dir / "default.yaml", preset="psar_filtered")
    assert cfg.build_strategy().min_flips == 3


def test_from_preset_uses_repo_root(repo_config_dir: Path) -> None:
    cfg = Config.from_preset("psar_adx", repo_root=repo_config_dir.parent)
    assert isinstance(cfg.build_strategy(), PsarAdxStrategy)


def test_file_values_override_preset(tmp_path: Path) -> None:
    cfg_dir = tmp_path / "config"
    presets = cfg_dir / "presets"
    presets.mkdir(parents=True)
    (presets / "fast.yaml").write_text("strategy:\n  name: psar\n  params:\n    trend_period: 50\n    min_flips: 2\n")
    (cfg_dir / "default.yaml").write_text("preset: fast\nstrategy:\n  params:\n    min_flips: 4\n")

    cfg = Config.from_yaml(cfg_dir / "default.yaml")
    assert cfg.strategy.params == {"trend_period": 50, "min_flips": 4}


def test_unknown_preset_is_config_error(repo_config_dir: Path) -> None:
    with pytest.raises(ConfigError):
        Config.from_yaml(repo_config_dir / "default.yaml", preset="yolo")


def test_config_env_override(monkeypatch: pytest.MonkeyPatch, repo_config_dir: Path) -> None:
    monkeypatch.setenv("SIGNALBENCH_BACKTEST__EXPIRY_BARS", "5")
    cfg = Config.from_yaml(repo_config_dir / "default.yaml")
    assert cfg.backtest.expiry_bars == 5
    assert cfg.engine_config().expiry_bars == 5
    # untouched siblings survive the env overlay
    assert cfg.backtest.min_bars == 250


def test_config_from_yaml_raises_if_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Config.from_yaml(tmp_path / "missing.yaml")


def test_invalid_yaml_is_config_error(tmp_path: Path) -> None:
    p = tmp_path / "default.yaml"
    p.write_text("backtest: [1, 2\n")
    with pytest.raises(ConfigError):
        Config.from_yaml(p)


def test_zero_expiry_rejected() -> None:
    with pytest.raises(ValidationError):
        Config(backtest={"expiry_bars": 0})


def test_unknown_strategy_in_config() -> None:
    cfg = Config(strategy={"name": "nope"})
    with pytest.raises(ConfigError):
        cfg.build_strategy()
