from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, TypeVar, cast

from prometheus_client import REGISTRY, Counter, Histogram

# ---- Minimal helpers for registry access -------------------------------------


def _registry_map() -> Dict[str, Any]:
    mapping = getattr(REGISTRY, "_names_to_collectors", {})
    return mapping if isinstance(mapping, dict) else {}


T = TypeVar("T")


def _get_or_create(name: str, factory: Callable[[], T]) -> T:
    # Module reloads in tests would otherwise hit "Duplicated timeseries".
    existing = _registry_map().get(name)
    if existing is not None:
        return cast(T, existing)
    return factory()


def _mk_counter(name: str, doc: str, labels: Iterable[str] | None = None) -> Counter:
    def _factory() -> Counter:
        return Counter(name, doc, list(labels or ()))

    return _get_or_create(name, _factory)


def _mk_histogram(name: str, doc: str, labels: Iterable[str] | None = None) -> Histogram:
    def _factory() -> Histogram:
        return Histogram(name, doc, list(labels or ()))

    return _get_or_create(name, _factory)


# ---- Collectors ---------------------------------------------------------------

spamscan_classifications_total = _mk_counter(
    "spamscan_classifications_total",
    "Completed classify calls by verdict (spam|clean|error).",
    labels=["verdict"],
)
spamscan_fragment_tasks_total = _mk_counter(
    "spamscan_fragment_tasks_total",
    "Per-fragment detection tasks by terminal state.",
    labels=["state"],
)
spamscan_classify_latency_seconds = _mk_histogram(
    "spamscan_classify_latency_seconds",
    "Wall-clock latency of a classify call.",
)


# ---- Helpers -------------------------------------------------------------------


def inc_classification(verdict: str) -> None:
    spamscan_classifications_total.labels(verdict).inc()


def inc_fragment_task(state: str, amount: int = 1) -> None:
    if amount > 0:
        spamscan_fragment_tasks_total.labels(state).inc(amount)


def observe_classify_latency(seconds: float) -> None:
    spamscan_classify_latency_seconds.observe(max(0.0, float(seconds)))


__all__ = [
    "inc_classification",
    "inc_fragment_task",
    "observe_classify_latency",
    "spamscan_classifications_total",
    "spamscan_classify_latency_seconds",
    "spamscan_fragment_tasks_total",
]
