"""signalbench.core.config

Two config surfaces only:
1) `config/default.yaml` + `config/presets/*.yaml`
2) Environment variables (`SIGNALBENCH_` prefix, `__` for nesting)

The engine never sees this module's types. `Config.engine_config()` and
`Config.build_strategy()` turn the parsed tree into the plain records the
core consumes.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from signalbench.core.exceptions import ConfigError

if TYPE_CHECKING:
    from signalbench.backtest.engine import EngineConfig
    from signalbench.backtest.strategies.base import Strategy


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return raw


def available_presets(config_dir: Path) -> list[str]:
    presets_dir = config_dir / "presets"
    if not presets_dir.is_dir():
        return []
    return sorted(p.stem for p in presets_dir.glob("*.yaml"))


def _apply_preset(raw: dict[str, Any], config_dir: Path) -> dict[str, Any]:
    preset = raw.get("preset")
    if not preset:
        return raw
    preset_path = config_dir / "presets" / f"{preset}.yaml"
    if not preset_path.exists():
        known = ", ".join(available_presets(config_dir)) or "none"
        raise ConfigError(f"unknown preset: {preset} (known: {known})")
    return _deep_merge(_read_yaml(preset_path), raw)


class DataConfig(BaseModel):
    file: Path | None = None
    max_bars: int | None = 2880
    volume_seed: int | None = None

    @field_validator("max_bars")
    @classmethod
    def max_bars_positive(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("max_bars must be >= 1")
        return v


class BacktestConfig(BaseModel):
    expiry_bars: int = 1
    min_bars: int = 250

    @field_validator("expiry_bars")
    @classmethod
    def expiry_cannot_be_zero(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("expiry_bars must be >= 1")
        return v

    @field_validator("min_bars")
    @classmethod
    def min_bars_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("min_bars must be >= 0")
        return v


class StrategyConfig(BaseModel):
    name: str = "psar"
    params: dict[str, Any] = Field(default_factory=dict)


class LiveConfig(BaseModel):
    symbol: str = "XAUUSD"
    interval_seconds: float = 60.0
    bar_seconds: float = 60.0
    log_path: Path = Path("data/signals.jsonl")
    history_bars: int = 500

    @field_validator("interval_seconds", "bar_seconds")
    @classmethod
    def seconds_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    config_dir: Path = Path("config")
    preset: str | None = None

    data: DataConfig = Field(default_factory=DataConfig)
    backtest: BacktestConfig = Field(default_factory=BacktestConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    live: LiveConfig = Field(default_factory=LiveConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_prefix": "SIGNALBENCH_", "env_nested_delimiter": "__"}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # environment beats YAML
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, path: Path, *, preset: str | None = None) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        raw = _read_yaml(path)
        if preset:
            raw["preset"] = preset
        raw = _apply_preset(raw, path.parent)
        raw.setdefault("config_dir", path.parent)
        return cls(**raw)

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")

    @classmethod
    def from_preset(cls, preset: str, *, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        default_path = root / "config" / "default.yaml"
        if default_path.exists():
            return cls.from_yaml(default_path, preset=preset)
        raw = _apply_preset({"preset": preset}, default_path.parent)
        raw.setdefault("config_dir", default_path.parent)
        return cls(**raw)

    def engine_config(self) -> EngineConfig:
        from signalbench.backtest.engine import EngineConfig

        return EngineConfig(expiry_bars=self.backtest.expiry_bars, min_bars=self.backtest.min_bars)

    def build_strategy(self) -> Strategy:
        from signalbench.backtest.strategies.registry import build_strategy

        return build_strategy(self.strategy.name, self.strategy.params)
