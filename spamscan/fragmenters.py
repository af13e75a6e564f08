"""Text splitters used by the concurrent detector.

A fragmenter is any object with ``split(text) -> Sequence[str]``. Plain
callables are accepted too and normalized with :func:`as_fragmenter`.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Protocol, Sequence, Union, runtime_checkable

from spamscan.errors import ConfigurationError


@runtime_checkable
class Fragmenter(Protocol):
    """Splits a text into an ordered sequence of fragments."""

    def split(self, text: str) -> Sequence[str]: ...


FragmenterLike = Union[Fragmenter, Callable[[str], Sequence[str]]]


_WS_RE = re.compile(r"\s+")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_RE = re.compile(r"\n\s*\n")


def _non_empty(parts: Sequence[str]) -> List[str]:
    return [p.strip() for p in parts if p and p.strip()]


class WhitespaceFragmenter:
    """One fragment per whitespace-separated word."""

    def split(self, text: str) -> List[str]:
        return _non_empty(_WS_RE.split(text))


class LineFragmenter:
    """One fragment per non-blank line."""

    def split(self, text: str) -> List[str]:
        return _non_empty(text.splitlines())


class SentenceFragmenter:
    """Split after ``.``, ``!`` or ``?`` followed by whitespace."""

    def split(self, text: str) -> List[str]:
        return _non_empty(_SENTENCE_RE.split(text))


class ParagraphFragmenter:
    """Split on blank lines, the usual layout of a letter body."""

    def split(self, text: str) -> List[str]:
        return _non_empty(_PARAGRAPH_RE.split(text))


class _CallableFragmenter:
    def __init__(self, fn: Callable[[str], Sequence[str]]) -> None:
        self._fn = fn

    def split(self, text: str) -> List[str]:
        return list(self._fn(text))

    def __repr__(self) -> str:
        return f"_CallableFragmenter({self._fn!r})"


def as_fragmenter(obj: FragmenterLike) -> Fragmenter:
    """Normalize a fragmenter or a bare ``str -> Sequence[str]`` callable."""
    if isinstance(obj, Fragmenter):
        return obj
    if callable(obj):
        return _CallableFragmenter(obj)
    raise ConfigurationError(f"not a fragmenter: {obj!r}")


_REGISTRY: Dict[str, Callable[[], Fragmenter]] = {
    "whitespace": WhitespaceFragmenter,
    "lines": LineFragmenter,
    "sentences": SentenceFragmenter,
    "paragraphs": ParagraphFragmenter,
}


def get_fragmenter(name: str) -> Fragmenter:
    key = (name or "").strip().lower()
    factory = _REGISTRY.get(key)
    if factory is None:
        known = ", ".join(sorted(_REGISTRY))
        raise ConfigurationError(f"unknown fragmenter {name!r} (known: {known})")
    return factory()


__all__ = [
    "Fragmenter",
    "FragmenterLike",
    "LineFragmenter",
    "ParagraphFragmenter",
    "SentenceFragmenter",
    "WhitespaceFragmenter",
    "as_fragmenter",
    "get_fragmenter",
]
