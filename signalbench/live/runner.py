"""signalbench.live.runner

Live polling driver.

`LiveSession` owns one long-lived `SignalEngine` in unbounded mode plus the
full bar history seen so far, so bar indices stay absolute across polls and
indicator values on old bars never change. Each poll:
1. fetch the latest window from the bar source
2. append the bars not seen before
3. step the engine over them, logging fired signals and resolutions

At startup only the newest bar is evaluated; history before it is used for
indicator warm-up, never replayed as signals.

History is never trimmed. Every poll recomputes the indicators over all bars
seen since startup, so poll cost grows with uptime. EMA and PSAR values depend
on the whole path and would drift from a batch run over a trimmed window.

Bars with timestamps are deduplicated by time. Without timestamps the source's
`window_start` places each window in the absolute history.

`LiveRunner` serializes polls under a lock and stops on an event. A failed
poll is logged with its traceback and the loop carries on.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from signalbench.backtest.engine import EngineConfig, SignalEngine, StepResult
from signalbench.backtest.io import PriceSeries
from signalbench.backtest.strategies.base import Strategy
from signalbench.core.exceptions import DataSourceError
from signalbench.core.time import utc_now
from signalbench.live.log import SignalLog, SignalRecord
from signalbench.live.source import BarSource

logger = logging.getLogger(__name__)


class LiveSession:
    def __init__(
        self,
        *,
        strategy: Strategy,
        log: SignalLog,
        symbol: str,
        cfg: EngineConfig | None = None,
        bar_interval: timedelta = timedelta(minutes=1),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.strategy = strategy
        self.rule = strategy.rule()
        self.log = log
        self.symbol = symbol
        self.cfg = cfg or EngineConfig()
        self.bar_interval = bar_interval
        self.clock = clock
        self.prices = PriceSeries.empty()
        self.engine: SignalEngine | None = None
        self._open: dict[int, SignalRecord] = {}
        self._origin = 0

    @property
    def open_records(self) -> list[SignalRecord]:
        return list(self._open.values())

    def _new_bars(self, fetched: PriceSeries, start: int) -> PriceSeries:
        if len(self.prices) == 0:
            self._origin = start
            return fetched

        last = self.prices.ts[-1] if self.prices.ts is not None else None
        if last is not None and fetched.ts is not None:
            for k, t in enumerate(fetched.ts):
                if t is not None and t > last:
                    return fetched.tail(len(fetched) - k)
            return PriceSeries.empty()

        # without timestamps, position in the source's history decides
        seen = self._origin + len(self.prices) - start
        if seen < 0:
            raise DataSourceError(f"bar source skipped {-seen} bars between polls")
        return fetched.tail(max(0, len(fetched) - seen))

    def ingest(self, fetched: PriceSeries, *, start: int = 0) -> list[StepResult]:
        """Append the unseen bars of `fetched` and step the engine over them.

        `start` is the absolute index of `fetched[0]` in the source's history.
        """

        new = self._new_bars(fetched, start)
        if len(new) == 0:
            return []
        self.prices = self.prices.concat(new)
        data = self.strategy.series(self.prices)

        if self.engine is None:
            engine = SignalEngine(rule=self.rule, data=data, cfg=self.cfg, bounded=False, name=self.strategy.name)
            if data.n_bars < engine.required_bars:
                logger.info(
                    "live_waiting_for_bars",
                    extra={"bars": data.n_bars, "required": engine.required_bars},
                )
                return []
            engine.skip_to(data.n_bars - 1)
            self.engine = engine
        else:
            self.engine.extend(data)

        results: list[StepResult] = []
        for j in range(self.engine.next_bar, data.n_bars):
            step = self.engine.step(j)
            self._record(step)
            results.append(step)
        return results

    def _record(self, step: StepResult) -> None:
        now = self.clock()
        if step.opened is not None and step.signal is not None:
            self._open[step.opened.signal_bar_index] = self.log.record_signal(
                symbol=self.symbol,
                direction=step.signal.direction,
                confidence=step.signal.confidence,
                reason=step.signal.reason,
                entry_price=step.opened.entry_price,
                holding=self.bar_interval * int(self.cfg.expiry_bars),
                now=now,
            )

        # a trade opened in this step may already be resolved
        for trade in step.resolved:
            record = self._open.pop(trade.signal_bar_index, None)
            if record is None or trade.exit_price is None:
                continue
            self.log.resolve(record, outcome=trade.outcome, exit_price=trade.exit_price, now=now)


class LiveRunner:
    def __init__(self, *, source: BarSource, session: LiveSession) -> None:
        self.source = source
        self.session = session
        self.polls = 0
        self.failures = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def poll_once(self) -> list[StepResult]:
        with self._lock:
            prices = self.source.fetch()
            results = self.session.ingest(prices, start=self.source.window_start)
            self.polls += 1

        fired = sum(1 for r in results if r.opened is not None)
        resolved = sum(len(r.resolved) for r in results)
        logger.info(
            "live_poll",
            extra={"new_bars": len(results), "fired": fired, "resolved": resolved, "bars": len(self.session.prices)},
        )
        return results

    def run_forever(self, interval: float, *, max_polls: int | None = None) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        attempts = 0
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:
                self.failures += 1
                logger.exception("live_poll_failed")
            attempts += 1
            if max_polls is not None and attempts >= max_polls:
                break
            self._stop.wait(interval)

    def stop(self) -> None:
        self._stop.set()
