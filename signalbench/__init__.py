"""signalbench — flip-signal backtesting engine.

Bars in, indicator series aligned, flips detected and filtered, fixed-horizon
trades simulated, hit rate out.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.4.0"
