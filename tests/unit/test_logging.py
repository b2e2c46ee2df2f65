from __future__ import annotations

import io
import json
import logging

import pytest

from signalbench.core.config import LoggingConfig
from signalbench.core.exceptions import ConfigError
from signalbench.core.logging import configure_logging


@pytest.fixture()
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_output_includes_extra_fields(restore_root) -> None:
    buf = io.StringIO()
    configure_logging(LoggingConfig(level="DEBUG", json_output=True), stream=buf)
    logging.getLogger("signalbench.test").info("signal_fired", extra={"bar": 150, "direction": "UP"})

    record = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert record["event"] == "signal_fired"
    assert record["level"] == "INFO"
    assert record["bar"] == 150
    assert record["direction"] == "UP"


def test_plain_output_appends_key_values(restore_root) -> None:
    buf = io.StringIO()
    configure_logging(LoggingConfig(level="INFO"), stream=buf)
    logging.getLogger("signalbench.test").info("backtest_complete", extra={"total_trades": 3})
    logging.getLogger("signalbench.test").debug("hidden")

    out = buf.getvalue()
    assert "backtest_complete total_trades=3" in out
    assert "hidden" not in out


def test_reconfigure_replaces_handler(restore_root) -> None:
    configure_logging(LoggingConfig(), stream=io.StringIO())
    configure_logging(LoggingConfig(), stream=io.StringIO())
    named = [h for h in logging.getLogger().handlers if h.get_name() == "signalbench"]
    assert len(named) == 1


def test_unknown_level(restore_root) -> None:
    with pytest.raises(ConfigError):
        configure_logging(LoggingConfig(level="LOUD"))
