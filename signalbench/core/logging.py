"""signalbench.core.logging

Root handler setup.

Modules log snake_case event names and pass structured fields through
`extra=`. The plain formatter appends those fields as key=value pairs; the
JSON formatter emits one object per record.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

from signalbench.core.config import LoggingConfig
from signalbench.core.exceptions import ConfigError

# attributes every LogRecord carries; anything else came in through extra=
_RESERVED = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED and not k.startswith("_")}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=False)


class KeyValueFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if not fields:
            return line
        head, sep, tail = line.partition("\n")
        kv = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{head} {kv}{sep}{tail}"


def configure_logging(cfg: LoggingConfig | None = None, *, stream: IO[str] | None = None) -> logging.Handler:
    """Install a single stream handler on the root logger.

    Calling again replaces the handler installed by the previous call.
    """

    cfg = cfg or LoggingConfig()
    level = logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        raise ConfigError(f"unknown log level: {cfg.level}")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter() if cfg.json_output else KeyValueFormatter())
    handler.set_name("signalbench")

    root = logging.getLogger()
    for h in list(root.handlers):
        if h.get_name() == "signalbench":
            root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)
    return handler
