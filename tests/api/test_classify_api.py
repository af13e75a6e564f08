from __future__ import annotations

from fastapi.testclient import TestClient

from spamscan.detectors import ConcurrentDetector
from spamscan.errors import FragmentDetectionError
from spamscan.fragmenters import WhitespaceFragmenter
from spamscan.main import create_app
from spamscan.settings import DetectorSettings


def _client(**overrides: object) -> TestClient:
    cfg = DetectorSettings(delay_per_symbol_ms=0, **overrides)  # type: ignore[arg-type]
    return TestClient(create_app(cfg))


def test_classify_clean_text() -> None:
    r = _client().post("/classify", json={"text": "buy now"})
    assert r.status_code == 200
    body = r.json()
    assert body["spam"] is False
    assert body["fragments"] == 2
    assert body["completed"] == 2
    assert body["failed"] == 0


def test_classify_spam_text() -> None:
    r = _client(markers=["spam"]).post("/classify", json={"text": "free SPAM offer"})
    assert r.status_code == 200
    body = r.json()
    assert body["spam"] is True
    assert body["fragments"] == 3


def test_empty_text_is_clean() -> None:
    r = _client().post("/classify", json={"text": ""})
    assert r.status_code == 200
    assert r.json()["spam"] is False
    assert r.json()["fragments"] == 0


def test_validation_error_shape() -> None:
    r = _client().post("/classify", json={"body": "x"})
    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "validation_error"
    assert body["request_id"]
    assert r.headers["X-Request-ID"] == body["request_id"]


def test_detection_failure_maps_to_502() -> None:
    async def leaf(fragment: str) -> bool:
        if fragment == "x":
            raise FragmentDetectionError("unreadable")
        return False

    app = create_app(
        DetectorSettings(delay_per_symbol_ms=0),
        detector=ConcurrentDetector(WhitespaceFragmenter(), leaf),
    )
    r = TestClient(app).post("/classify", json={"text": "a x"})
    assert r.status_code == 502
    body = r.json()
    assert body["code"] == "detection_failed"
    assert body["failed_fragments"] == [1]


def test_request_id_echo_and_health() -> None:
    c = _client()
    r = c.get("/health", headers={"X-Request-ID": "abc"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"] == "abc"
    assert c.get("/health").headers.get("X-Request-ID")


def test_metrics_exposition() -> None:
    c = _client()
    c.post("/classify", json={"text": "spam"})
    m = c.get("/metrics")
    assert m.status_code == 200
    assert 'spamscan_classifications_total{verdict="spam"}' in m.text
    assert "spamscan_classify_latency_seconds_bucket" in m.text


def test_lifespan_closes_owned_scope() -> None:
    app = create_app(DetectorSettings(delay_per_symbol_ms=0))
    with TestClient(app) as c:
        assert c.post("/classify", json={"text": "hello"}).status_code == 200
    assert app.state.detector.scope.closed


def test_classify_after_shutdown_is_503() -> None:
    app = create_app(DetectorSettings(delay_per_symbol_ms=0))
    with TestClient(app):
        pass
    r = TestClient(app).post("/classify", json={"text": "hello"})
    assert r.status_code == 503
    assert r.json()["code"] == "detector_closed"


def test_oversized_text_is_validation_error() -> None:
    r = _client().post("/classify", json={"text": "a" * 1_000_001})
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"
