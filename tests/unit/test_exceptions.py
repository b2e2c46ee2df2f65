from __future__ import annotations

import pytest

from signalbench.core.exceptions import (
    ConfigError,
    DataSourceError,
    InsufficientDataError,
    MisconfiguredFilterError,
    SignalbenchError,
    TradeStateError,
)


def test_exception_hierarchy_is_structural() -> None:
    assert issubclass(ConfigError, SignalbenchError)
    assert issubclass(MisconfiguredFilterError, ConfigError)
    assert issubclass(InsufficientDataError, SignalbenchError)
    assert issubclass(TradeStateError, SignalbenchError)
    assert issubclass(DataSourceError, SignalbenchError)


def test_insufficient_data_carries_counts() -> None:
    with pytest.raises(SignalbenchError) as e:
        raise InsufficientDataError(available=40, required=200)
    assert e.value.available == 40
    assert e.value.required == 200
    assert "40 bars available, 200 required" in str(e.value)
