# spamscan/telemetry/logging.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, MutableMapping, Optional, TextIO, Tuple

from spamscan.middleware.request_id import get_request_id

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}

# Correlation fields emitted right after the message, in this order.
_CORRELATION_KEYS: Tuple[str, ...] = ("request_id", "detector", "classification_id")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, correlation ids, extras."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": ts.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            k: v
            for k, v in record.__dict__.items()
            if k not in _RECORD_ATTRS and not k.startswith("_")
        }
        extra.setdefault("request_id", get_request_id())
        for key in _CORRELATION_KEYS:
            value = extra.pop(key, None)
            if value:
                payload[key] = value
        payload.update(extra)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


_handler: Optional[logging.StreamHandler] = None  # type: ignore[type-arg]


def configure_root_logging(level: int | str = "INFO", *, stream: Optional[TextIO] = None) -> None:
    """Install the JSON handler on the root logger (stdout unless ``stream`` is given).

    Calling again with the same stream only adjusts the level.
    """
    global _handler
    target = stream if stream is not None else sys.stdout
    root = logging.getLogger()
    root.setLevel(
        level if isinstance(level, int) else getattr(logging, str(level).upper(), logging.INFO)
    )
    if _handler is not None:
        if _handler.stream is target:
            return
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(stream=target)
    _handler.setFormatter(JsonFormatter())
    root.addHandler(_handler)


class ContextAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger with bound fields; per-call ``extra`` wins over bound values."""

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        super().__init__(logger, dict(extra or {}))

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        merged: Dict[str, Any] = dict(self.extra or {})
        call_extra = kwargs.get("extra")
        if isinstance(call_extra, Mapping):
            merged.update(call_extra)
        kwargs["extra"] = merged
        return msg, kwargs


def bind(logger: logging.Logger | None = None, **context: Any) -> ContextAdapter:
    """
    Return a LoggerAdapter with bound context.

        log = bind(logging.getLogger(__name__), detector="concurrent", classification_id="c-1")
        log.info("classified text", extra={"verdict": "clean"})
    """
    return ContextAdapter(logger or logging.getLogger("spamscan"), context)


__all__ = ["ContextAdapter", "JsonFormatter", "bind", "configure_root_logging"]
