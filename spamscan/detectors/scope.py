"""Explicit scheduling scope for detection tasks.

Detectors never spawn onto an ambient/global context: every task goes through
a :class:`DetectionScope` handed in at construction, so the caller owns the
lifetime and can cancel everything outstanding with :meth:`DetectionScope.close`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set, TypeVar

from spamscan.errors import ScopeClosedError

log = logging.getLogger(__name__)

T = TypeVar("T")


class DetectionScope:
    """Tracks tasks spawned on the running loop; closing cancels them."""

    def __init__(self, name: str = "spamscan") -> None:
        self.name = name
        self._tasks: Set["asyncio.Task[Any]"] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def spawn(self, coro: Coroutine[Any, Any, T], *, name: Optional[str] = None) -> "asyncio.Task[T]":
        if self._closed:
            coro.close()
            raise ScopeClosedError(f"detection scope {self.name!r} is closed")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        """Refuse new work, cancel outstanding tasks and wait for them to settle."""
        self._closed = True
        pending = [t for t in self._tasks if not t.done()]
        if not pending:
            return
        log.debug("closing scope %s with %d pending task(s)", self.name, len(pending))
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "DetectionScope":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"DetectionScope(name={self.name!r}, active={self.active}, closed={self._closed})"


__all__ = ["DetectionScope"]
