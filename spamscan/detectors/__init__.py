"""Spam detectors: the marker leaf, the concurrent composite and their wiring."""

from __future__ import annotations

from typing import Optional

from spamscan.detectors.base import (
    DetectionReport,
    DetectorLike,
    SpamDetector,
    TaskRecord,
    TaskState,
    as_detector,
)
from spamscan.detectors.concurrent import ConcurrentDetector
from spamscan.detectors.markers import MarkerDetector
from spamscan.detectors.outcome import SharedOutcome
from spamscan.detectors.scope import DetectionScope
from spamscan.fragmenters import get_fragmenter
from spamscan.settings import DetectorSettings, get_settings


def build_detector(
    settings: Optional[DetectorSettings] = None,
    *,
    scope: Optional[DetectionScope] = None,
) -> ConcurrentDetector:
    """Wire a ConcurrentDetector over a MarkerDetector from settings.

    Raises ConfigurationError for an empty marker list or unknown fragmenter.
    """
    cfg = settings or get_settings()
    leaf = MarkerDetector(cfg.markers, delay_per_symbol=cfg.delay_per_symbol_s)
    return ConcurrentDetector(get_fragmenter(cfg.fragmenter), leaf, scope=scope)


__all__ = [
    "ConcurrentDetector",
    "DetectionReport",
    "DetectionScope",
    "DetectorLike",
    "MarkerDetector",
    "SharedOutcome",
    "SpamDetector",
    "TaskRecord",
    "TaskState",
    "as_detector",
    "build_detector",
]
