from __future__ import annotations

import shutil
import sys
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from signalbench.backtest.io import PriceSeries  # noqa: E402
from signalbench.core.config import Config  # noqa: E402
from tests.unit._bars import random_walk  # noqa: E402


@pytest.fixture()
def prices() -> PriceSeries:
    return random_walk(600)


@pytest.fixture()
def short_prices() -> PriceSeries:
    return random_walk(40, seed=3)


@pytest.fixture()
def repo_config_dir(tmp_path: Path) -> Path:
    """Copy of config/default.yaml + presets in a temp dir."""

    dst = tmp_path / "config"
    dst.mkdir(parents=True, exist_ok=True)
    shutil.copy2(REPO_ROOT / "config" / "default.yaml", dst / "default.yaml")
    shutil.copytree(REPO_ROOT / "config" / "presets", dst / "presets")
    return dst


@pytest.fixture()
def test_config(repo_config_dir: Path) -> Config:
    return Config.from_yaml(repo_config_dir / "default.yaml")
