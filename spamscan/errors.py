"""Error taxonomy shared by detectors, the HTTP layer and the CLI."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class SpamScanError(Exception):
    """Base class for every spamscan failure."""


class ConfigurationError(SpamScanError):
    """A detector cannot be built from the supplied dependencies."""


class ScopeClosedError(SpamScanError):
    """Work was submitted to a detection scope that has already been closed."""


class FragmentDetectionError(SpamScanError):
    """A single fragment could not be evaluated."""

    def __init__(
        self,
        message: str,
        *,
        fragment: object = None,
        index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.fragment = fragment
        self.index = index

    def __str__(self) -> str:
        base = super().__str__()
        if self.index is None:
            return base
        return f"fragment #{self.index}: {base}"


class AggregateDetectionError(SpamScanError):
    """No fragment was positive and at least one fragment failed.

    ``errors`` holds every failure in fragment order; the first one is also
    chained as ``__cause__``.
    """

    def __init__(self, errors: Sequence[FragmentDetectionError]) -> None:
        if not errors:
            raise ValueError("AggregateDetectionError requires at least one error")
        self.errors: Tuple[FragmentDetectionError, ...] = tuple(errors)
        first = self.errors[0]
        extra = len(self.errors) - 1
        suffix = f" (+{extra} more)" if extra else ""
        super().__init__(f"detection failed: {first}{suffix}")
        self.__cause__ = first

    @property
    def first(self) -> FragmentDetectionError:
        return self.errors[0]


__all__ = [
    "SpamScanError",
    "ConfigurationError",
    "ScopeClosedError",
    "FragmentDetectionError",
    "AggregateDetectionError",
]
