"""spamscan: concurrent, early-terminating spam detection over text fragments."""

from spamscan.detectors import ConcurrentDetector, DetectionScope, MarkerDetector, build_detector
from spamscan.errors import (
    AggregateDetectionError,
    ConfigurationError,
    FragmentDetectionError,
    ScopeClosedError,
    SpamScanError,
)

__version__ = "0.1.0"

__all__ = [
    "AggregateDetectionError",
    "ConcurrentDetector",
    "ConfigurationError",
    "DetectionScope",
    "FragmentDetectionError",
    "MarkerDetector",
    "ScopeClosedError",
    "SpamScanError",
    "build_detector",
]
