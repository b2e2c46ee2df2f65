"""signalbench.backtest.strategies

Strategy library.

Every variant is a declarative rule over the one engine loop. Importing this
package registers all of them.
"""

from signalbench.backtest.strategies.base import SignalRule, Strategy
from signalbench.backtest.strategies.bollinger import BollingerBreakoutStrategy
from signalbench.backtest.strategies.ema_stack import PsarEmaStackStrategy
from signalbench.backtest.strategies.keltner import KeltnerReversalStrategy
from signalbench.backtest.strategies.oscillator import TripleOscillatorStrategy
from signalbench.backtest.strategies.psar import PsarCrossStrategy
from signalbench.backtest.strategies.psar_adx import PsarAdxStrategy
from signalbench.backtest.strategies.registry import build_strategy, get_strategy, list_strategies
from signalbench.backtest.strategies.sma_psar_stoch import SmaPsarStochStrategy
from signalbench.backtest.strategies.trend import EmaTrendStrategy

__all__ = [
    "Strategy",
    "SignalRule",
    "BollingerBreakoutStrategy",
    "EmaTrendStrategy",
    "KeltnerReversalStrategy",
    "PsarAdxStrategy",
    "PsarCrossStrategy",
    "PsarEmaStackStrategy",
    "SmaPsarStochStrategy",
    "TripleOscillatorStrategy",
    "build_strategy",
    "get_strategy",
    "list_strategies",
]
