from __future__ import annotations

import io
import json
import logging

import pytest

from spamscan.detectors import ConcurrentDetector, MarkerDetector
from spamscan.fragmenters import WhitespaceFragmenter
from spamscan.middleware.request_id import _REQUEST_ID
from spamscan.telemetry.logging import JsonFormatter, bind, configure_root_logging


def _record(msg: str, **extra: object) -> logging.LogRecord:
    rec = logging.LogRecord("spamscan.test", logging.INFO, __file__, 1, msg, None, None)
    for k, v in extra.items():
        setattr(rec, k, v)
    return rec


def test_formats_stable_keys_and_extra() -> None:
    line = JsonFormatter().format(_record("hello", verdict="spam", fragments=3))
    payload = json.loads(line)
    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "spamscan.test"
    assert payload["ts"].endswith("Z")
    assert payload["verdict"] == "spam"
    assert payload["fragments"] == 3
    assert "taskName" not in payload


def test_correlation_keys_follow_message() -> None:
    line = JsonFormatter().format(
        _record("classified text", verdict="clean", classification_id="c-9", detector="outer")
    )
    payload = json.loads(line)
    assert list(payload)[:6] == [
        "ts",
        "level",
        "logger",
        "message",
        "detector",
        "classification_id",
    ]
    assert "request_id" not in payload


def test_includes_request_id_from_context() -> None:
    token = _REQUEST_ID.set("rid-123")
    try:
        payload = json.loads(JsonFormatter().format(_record("x")))
    finally:
        _REQUEST_ID.reset(token)
    assert payload["request_id"] == "rid-123"


def test_bind_merges_context(caplog: pytest.LogCaptureFixture) -> None:
    log = bind(logging.getLogger("spamscan.test"), classification_id="c-1")
    with caplog.at_level(logging.INFO, logger="spamscan.test"):
        log.info("one", extra={"fragments": 3})
    rec = caplog.records[-1]
    assert rec.classification_id == "c-1"  # type: ignore[attr-defined]
    assert rec.fragments == 3  # type: ignore[attr-defined]


async def test_detector_logs_verdict_with_context(caplog: pytest.LogCaptureFixture) -> None:
    det = ConcurrentDetector(WhitespaceFragmenter(), MarkerDetector(delay_per_symbol=0))
    with caplog.at_level(logging.INFO, logger="spamscan.detectors.concurrent"):
        await det.classify("free spam")
    recs = [r for r in caplog.records if r.getMessage() == "classified text"]
    assert recs
    assert recs[-1].verdict == "spam"  # type: ignore[attr-defined]
    assert recs[-1].fragments == 2  # type: ignore[attr-defined]
    assert recs[-1].classification_id  # type: ignore[attr-defined]


def test_configure_root_logging_writes_to_given_stream(root_logging: logging.Logger) -> None:
    buf = io.StringIO()
    configure_root_logging("debug", stream=buf)
    configure_root_logging("info", stream=buf)
    assert root_logging.level == logging.INFO
    assert sum(isinstance(h.formatter, JsonFormatter) for h in root_logging.handlers) == 1

    logging.getLogger("spamscan.test").info("ready", extra={"detector": "outer"})
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert payload["message"] == "ready"
    assert payload["detector"] == "outer"
