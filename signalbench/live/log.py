"""signalbench.live.log

Append-only JSON-lines signal log.

Every fired signal is written once as PENDING. Resolving it appends a second
record with the same id; nothing is rewritten in place. `load()` folds the
file by id, latest record wins.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from signalbench.core.exceptions import DataSourceError, TradeStateError
from signalbench.core.time import parse_dt, utc_now
from signalbench.core.types import Direction, Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SignalRecord:
    id: str
    timestamp: datetime
    symbol: str
    direction: Direction
    confidence: float
    reason: str
    entry_price: float
    outcome: Outcome = Outcome.PENDING
    resolution_time: datetime | None = None
    exit_price: float | None = None
    check_at: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        d = asdict(self)
        d["direction"] = str(self.direction)
        d["outcome"] = str(self.outcome)
        for k in ("timestamp", "resolution_time", "check_at"):
            v = d[k]
            d[k] = v.isoformat() if v is not None else None
        return d

    @classmethod
    def from_json(cls, d: dict[str, Any]) -> SignalRecord:
        def dt(key: str) -> datetime | None:
            v = d.get(key)
            return parse_dt(v) if v else None

        exit_price = d.get("exit_price")
        return cls(
            id=str(d["id"]),
            timestamp=parse_dt(d["timestamp"]),
            symbol=str(d["symbol"]),
            direction=Direction(d["direction"]),
            confidence=float(d["confidence"]),
            reason=str(d.get("reason", "")),
            entry_price=float(d["entry_price"]),
            outcome=Outcome(d.get("outcome", Outcome.PENDING)),
            resolution_time=dt("resolution_time"),
            exit_price=float(exit_price) if exit_price is not None else None,
            check_at=dt("check_at"),
        )


class SignalLog:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _append(self, record: SignalRecord) -> None:
        line = json.dumps(record.to_json(), separators=(",", ":"))
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def record_signal(
        self,
        *,
        symbol: str,
        direction: Direction,
        confidence: float,
        reason: str,
        entry_price: float,
        holding: timedelta,
        now: datetime | None = None,
    ) -> SignalRecord:
        if direction is Direction.NONE:
            raise ValueError("cannot log a signal without a direction")
        ts = now or utc_now()
        record = SignalRecord(
            id=uuid.uuid4().hex,
            timestamp=ts,
            symbol=symbol,
            direction=direction,
            confidence=float(confidence),
            reason=reason,
            entry_price=float(entry_price),
            check_at=ts + holding,
        )
        self._append(record)
        logger.info(
            "signal_logged",
            extra={"id": record.id, "symbol": symbol, "direction": str(direction), "confidence": record.confidence},
        )
        return record

    def resolve(
        self,
        record: SignalRecord,
        *,
        outcome: Outcome,
        exit_price: float,
        now: datetime | None = None,
    ) -> SignalRecord:
        if record.outcome is not Outcome.PENDING:
            raise TradeStateError(f"signal {record.id} already resolved as {record.outcome}")
        if outcome is Outcome.PENDING:
            raise ValueError("resolution outcome must be WIN or LOSS")
        resolved = replace(
            record,
            outcome=outcome,
            exit_price=float(exit_price),
            resolution_time=now or utc_now(),
        )
        self._append(resolved)
        logger.info("signal_resolved", extra={"id": record.id, "outcome": str(outcome), "exit_price": exit_price})
        return resolved

    def load(self) -> dict[str, SignalRecord]:
        if not self.path.exists():
            return {}
        out: dict[str, SignalRecord] = {}
        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    record = SignalRecord.from_json(json.loads(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    raise DataSourceError(f"{self.path}:{lineno}: bad signal record: {e}") from e
                out[record.id] = record
        return out

    def pending(self) -> list[SignalRecord]:
        return [r for r in self.load().values() if r.outcome is Outcome.PENDING]
