"""Base detector protocol and report types."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Optional,
    Protocol,
    Tuple,
    Union,
    cast,
    runtime_checkable,
)

from spamscan.errors import AggregateDetectionError, ConfigurationError, FragmentDetectionError


@runtime_checkable
class SpamDetector(Protocol):
    """Anything that can classify a text (or fragment) asynchronously."""

    async def classify(self, text: str) -> bool: ...


# Public type users may pass in; normalized to SpamDetector by as_detector().
DetectorLike = Union[
    SpamDetector,
    Callable[[str], bool],
    Callable[[str], Awaitable[bool]],
]


class _FunctionDetector:
    """Adapts ``str -> bool`` callables, sync or returning an awaitable."""

    def __init__(self, fn: Callable[[str], Any]) -> None:
        self._fn = fn

    async def classify(self, text: str) -> bool:
        result = self._fn(text)
        if inspect.isawaitable(result):
            result = await cast(Awaitable[Any], result)
        return bool(result)

    def __repr__(self) -> str:
        return f"_FunctionDetector({self._fn!r})"


def as_detector(obj: DetectorLike) -> SpamDetector:
    """Normalize a detector, or a sync/async ``str -> bool`` callable."""
    if isinstance(obj, SpamDetector):
        return obj
    if callable(obj):
        return _FunctionDetector(obj)
    raise ConfigurationError(f"not a spam detector: {obj!r}")


class TaskState(str, Enum):
    """Lifecycle of one per-fragment detection task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({TaskState.COMPLETED, TaskState.CANCELLED, TaskState.FAILED})


@dataclass
class TaskRecord:
    """Mutable bookkeeping for one fragment; written only by its own task."""

    index: int
    fragment: str
    state: TaskState = TaskState.PENDING
    verdict: Optional[bool] = None
    error: Optional[FragmentDetectionError] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"index": self.index, "state": self.state.value}
        if self.verdict is not None:
            out["verdict"] = self.verdict
        if self.error is not None:
            out["error"] = str(self.error)
        return out


@dataclass(frozen=True)
class DetectionReport:
    """Outcome of one classification call with per-fragment terminal states."""

    verdict: bool
    tasks: Tuple[TaskRecord, ...] = field(default_factory=tuple)
    duration_s: float = 0.0

    @property
    def fragments(self) -> int:
        return len(self.tasks)

    def count(self, state: TaskState) -> int:
        return sum(1 for t in self.tasks if t.state is state)

    @property
    def errors(self) -> Tuple[FragmentDetectionError, ...]:
        return tuple(t.error for t in self.tasks if t.error is not None)

    @property
    def failed(self) -> bool:
        """True when failures were not shadowed by a positive verdict."""
        return not self.verdict and bool(self.errors)

    def raise_for_errors(self) -> None:
        if self.failed:
            raise AggregateDetectionError(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spam": self.verdict,
            "fragments": self.fragments,
            "completed": self.count(TaskState.COMPLETED),
            "cancelled": self.count(TaskState.CANCELLED),
            "failed": self.count(TaskState.FAILED),
            "duration_ms": int(self.duration_s * 1000),
        }


__all__ = [
    "DetectionReport",
    "DetectorLike",
    "SpamDetector",
    "TaskRecord",
    "TaskState",
    "as_detector",
]
