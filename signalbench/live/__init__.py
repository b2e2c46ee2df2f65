"""signalbench.live

Polling driver that runs one strategy against a growing bar source and
records every fired signal to an append-only log.
"""

from signalbench.live.log import SignalLog, SignalRecord
from signalbench.live.runner import LiveRunner, LiveSession
from signalbench.live.source import BarSource, CsvTailSource, StaticSource

__all__ = [
    "BarSource",
    "CsvTailSource",
    "LiveRunner",
    "LiveSession",
    "SignalLog",
    "SignalRecord",
    "StaticSource",
]
