from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, Optional, Tuple

from spamscan.errors import ConfigurationError, FragmentDetectionError
from spamscan.settings import DEFAULT_DELAY_PER_SYMBOL_MS, DEFAULT_MARKERS

Sleeper = Callable[[float], Awaitable[None]]


def _normalize_markers(markers: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for marker in markers:
        if not isinstance(marker, str):
            raise ConfigurationError(f"spam marker must be a string, got {type(marker).__name__}")
        norm = marker.strip().casefold()
        if norm and norm not in seen:
            seen.append(norm)
    return tuple(seen)


class MarkerDetector:
    """
    Flag a text as spam when it contains any marker, case-insensitively.

    Every call first waits ``len(text) * delay_per_symbol`` seconds to simulate
    processing cost (10 ms per symbol by default; pass 0 in tests).
    """

    def __init__(
        self,
        markers: Iterable[str] = DEFAULT_MARKERS,
        *,
        delay_per_symbol: float = DEFAULT_DELAY_PER_SYMBOL_MS / 1000.0,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.markers = _normalize_markers(markers)
        if not self.markers:
            raise ConfigurationError("Cannot create MarkerDetector without spam markers.")
        if delay_per_symbol < 0:
            raise ConfigurationError(f"delay_per_symbol must be >= 0, got {delay_per_symbol}")
        self.delay_per_symbol = float(delay_per_symbol)
        self._sleep: Sleeper = sleep or asyncio.sleep

    def delay_for(self, text: str) -> float:
        return len(text) * self.delay_per_symbol

    async def classify(self, text: str) -> bool:
        if not isinstance(text, str):
            raise FragmentDetectionError(
                f"cannot evaluate {type(text).__name__} fragment", fragment=text
            )
        delay = self.delay_for(text)
        if delay > 0:
            await self._sleep(delay)
        folded = text.casefold()
        return any(marker in folded for marker in self.markers)

    def __repr__(self) -> str:
        return f"MarkerDetector(markers={list(self.markers)!r}, delay_per_symbol={self.delay_per_symbol})"


__all__ = ["MarkerDetector"]
