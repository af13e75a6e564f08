from __future__ import annotations

import threading


class SharedOutcome:
    """One-way false -> true flag with compare-and-set semantics.

    A lock guards the cell so it stays race-free even if leaf detectors hand
    work off to threads. Only one caller ever wins :meth:`mark_positive`.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = False
        self._lock = threading.Lock()

    @property
    def value(self) -> bool:
        with self._lock:
            return self._value

    def compare_and_set(self, expected: bool, new: bool) -> bool:
        with self._lock:
            if self._value != expected:
                return False
            if self._value and not new:
                # true -> false is never allowed
                return False
            self._value = new
            return True

    def mark_positive(self) -> bool:
        """Record a positive verdict; True only for the first caller."""
        return self.compare_and_set(False, True)

    def __bool__(self) -> bool:
        return self.value

    def __repr__(self) -> str:
        return f"SharedOutcome(value={self.value})"


__all__ = ["SharedOutcome"]
