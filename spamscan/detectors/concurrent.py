"""
Concurrent spam detection over text fragments.

The text is split by a fragmenter and every fragment is handed to the wrapped
detector in its own task. The first positive verdict wins: it is recorded in a
per-call :class:`SharedOutcome` and every sibling still pending is cancelled.
The final verdict is read from that cell only, never from per-task results,
because cancelled tasks have none.

Failure precedence:
  * a positive verdict shadows any sibling failure (logged at WARNING);
  * otherwise, if any fragment failed, ``classify`` raises
    ``AggregateDetectionError`` chaining the lowest-index failure and carrying
    all of them in ``errors``.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, List, Optional

from spamscan.detectors.base import (
    DetectionReport,
    DetectorLike,
    SpamDetector,
    TaskRecord,
    TaskState,
    as_detector,
)
from spamscan.detectors.outcome import SharedOutcome
from spamscan.detectors.scope import DetectionScope
from spamscan.errors import FragmentDetectionError
from spamscan.fragmenters import FragmenterLike, as_fragmenter
from spamscan.telemetry import metrics
from spamscan.telemetry.logging import ContextAdapter, bind

logger = logging.getLogger(__name__)


def _as_fragment_error(exc: Exception, record: TaskRecord) -> FragmentDetectionError:
    if isinstance(exc, FragmentDetectionError) and exc.index is None:
        exc.index = record.index
        if exc.fragment is None:
            exc.fragment = record.fragment
        return exc
    wrapped = FragmentDetectionError(
        f"{type(exc).__name__}: {exc}", fragment=record.fragment, index=record.index
    )
    wrapped.__cause__ = exc
    return wrapped


class _Call:
    """State owned by one classify call; never shared between calls."""

    __slots__ = ("outcome", "stop", "records", "tasks", "log")

    def __init__(self, records: List[TaskRecord], log: ContextAdapter) -> None:
        self.outcome = SharedOutcome()
        # Cooperative cancellation token checked before a task starts work.
        self.stop = asyncio.Event()
        self.records = records
        self.tasks: List["asyncio.Task[None]"] = []
        self.log = log

    def cancel_pending(self, *, exclude: Optional["asyncio.Task[Any]"] = None) -> int:
        self.stop.set()
        cancelled = 0
        for task in self.tasks:
            if task is not exclude and not task.done():
                task.cancel()
                cancelled += 1
        return cancelled


class ConcurrentDetector:
    """Split a text and classify its fragments concurrently, stopping at the first spam."""

    def __init__(
        self,
        fragmenter: FragmenterLike,
        detector: DetectorLike,
        *,
        scope: Optional[DetectionScope] = None,
        name: str = "concurrent",
    ) -> None:
        self._fragmenter = as_fragmenter(fragmenter)
        self._detector: SpamDetector = as_detector(detector)
        self._owns_scope = scope is None
        self.scope = scope if scope is not None else DetectionScope(name)
        self.name = name

    @property
    def detector(self) -> SpamDetector:
        return self._detector

    async def classify(self, text: str) -> bool:
        report = await self.inspect(text)
        report.raise_for_errors()
        return report.verdict

    async def inspect(self, text: str) -> DetectionReport:
        """Run a classification and return per-fragment states; never raises for fragment failures."""
        started = time.perf_counter()
        fragments = list(self._fragmenter.split(text))
        log = bind(
            logger,
            detector=self.name,
            classification_id=uuid.uuid4().hex[:12],
            fragments=len(fragments),
        )

        if not fragments:
            report = DetectionReport(verdict=False, duration_s=time.perf_counter() - started)
            self._observe(report, log)
            return report

        records = [TaskRecord(index=i, fragment=f) for i, f in enumerate(fragments)]
        call = _Call(records, log)
        for record in records:
            call.tasks.append(
                self.scope.spawn(
                    self._detect_fragment(record, call),
                    name=f"{self.name}:{record.index}",
                )
            )

        try:
            await asyncio.wait(call.tasks)
        except asyncio.CancelledError:
            call.cancel_pending()
            await asyncio.gather(*call.tasks, return_exceptions=True)
            log.debug("classification cancelled by caller")
            raise

        externally_cancelled = False
        for record, task in zip(records, call.tasks):
            if task.cancelled():
                record.state = TaskState.CANCELLED
                if not call.stop.is_set():
                    externally_cancelled = True
        if externally_cancelled:
            # Someone closed the scope under us; a verdict here would be a guess.
            raise asyncio.CancelledError(f"detection scope {self.scope.name!r} closed")

        report = DetectionReport(
            verdict=call.outcome.value,
            tasks=tuple(records),
            duration_s=time.perf_counter() - started,
        )
        self._observe(report, log)
        return report

    async def _detect_fragment(self, record: TaskRecord, call: _Call) -> None:
        if call.stop.is_set():
            # Never start detector work once cancellation was requested.
            record.state = TaskState.CANCELLED
            return

        record.state = TaskState.RUNNING
        try:
            verdict = bool(await self._detector.classify(record.fragment))
        except asyncio.CancelledError:
            record.state = TaskState.CANCELLED
            raise
        except Exception as exc:
            record.error = _as_fragment_error(exc, record)
            record.state = TaskState.FAILED
            call.log.debug("fragment %d failed: %s", record.index, record.error)
            return

        record.verdict = verdict
        record.state = TaskState.COMPLETED
        if verdict and call.outcome.mark_positive():
            cancelled = call.cancel_pending(exclude=asyncio.current_task())
            call.log.debug(
                "fragment %d is spam; cancelled %d pending task(s)", record.index, cancelled
            )

    @staticmethod
    def _observe(report: DetectionReport, log: ContextAdapter) -> None:
        for state in (TaskState.COMPLETED, TaskState.CANCELLED, TaskState.FAILED):
            metrics.inc_fragment_task(state.value, report.count(state))
        metrics.observe_classify_latency(report.duration_s)

        errors = report.errors
        if report.failed:
            metrics.inc_classification("error")
            log.error(
                "classification failed on %d fragment(s): %s", len(errors), errors[0]
            )
            return

        metrics.inc_classification("spam" if report.verdict else "clean")
        if report.verdict and errors:
            log.warning(
                "spam verdict shadows %d fragment failure(s); first: %s", len(errors), errors[0]
            )
        log.info(
            "classified text",
            extra={
                "verdict": "spam" if report.verdict else "clean",
                "cancelled": report.count(TaskState.CANCELLED),
                "duration_ms": int(report.duration_s * 1000),
            },
        )

    async def aclose(self) -> None:
        """Cancel outstanding tasks when this detector owns its scope."""
        if self._owns_scope:
            await self.scope.close()

    async def __aenter__(self) -> "ConcurrentDetector":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"ConcurrentDetector(name={self.name!r}, detector={self._detector!r})"


__all__ = ["ConcurrentDetector"]
