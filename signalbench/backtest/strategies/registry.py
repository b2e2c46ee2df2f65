"""signalbench.backtest.strategies.registry

Strategy lookup by name.

Each strategy module registers its class with @register("name"). Importing
`signalbench.backtest.strategies` imports every module, so lookups trigger
that import once.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Mapping
from typing import Any

from signalbench.backtest.strategies.base import Strategy
from signalbench.core.exceptions import ConfigError

_REGISTRY: dict[str, type[Strategy]] = {}
_DISCOVERED = False


def register(name: str) -> Callable[[type[Any]], type[Any]]:
    def _decorator(cls: type[Any]) -> type[Any]:
        if name in _REGISTRY and _REGISTRY[name] is not cls:
            raise ValueError(f"strategy already registered: {name}")
        _REGISTRY[name] = cls
        return cls

    return _decorator


def discover() -> None:
    global _DISCOVERED
    if _DISCOVERED:
        return
    importlib.import_module("signalbench.backtest.strategies")
    _DISCOVERED = True


def get_strategy(name: str) -> type[Strategy]:
    discover()
    if name not in _REGISTRY:
        raise ConfigError(f"unknown strategy: {name} (known: {', '.join(list_strategies())})")
    return _REGISTRY[name]


def list_strategies() -> list[str]:
    discover()
    return sorted(_REGISTRY.keys())


def build_strategy(name: str, params: Mapping[str, Any] | None = None) -> Strategy:
    """Instantiate a registered strategy. Unknown parameters are a config error."""

    cls = get_strategy(name)
    kwargs = dict(params or {})
    kwargs.pop("name", None)
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ConfigError(f"bad parameters for strategy {name}: {e}") from e
