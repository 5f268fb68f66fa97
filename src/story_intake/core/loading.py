"""Aggregate busy flag over concurrently running operations."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
BusyListener = Callable[[bool], None]


class LoadingAggregator:
    """Reference-counted pending set of operation ids.

    `is_busy()` is true from the first `begin` until the last matching `end`,
    however the operations interleave.
    """

    def __init__(self) -> None:
        self._pending: Counter[str] = Counter()
        self._listeners: list[BusyListener] = []
        self._idle = asyncio.Event()
        self._idle.set()

    def begin(self, op_id: str) -> None:
        was_busy = self.is_busy()
        self._pending[op_id] += 1
        self._idle.clear()
        if not was_busy:
            self._notify(True)

    def end(self, op_id: str) -> None:
        if self._pending[op_id] <= 0:
            logger.warning("loading.end unknown op_id=%s", op_id)
            return
        self._pending[op_id] -= 1
        if self._pending[op_id] == 0:
            del self._pending[op_id]
        if not self._pending:
            self._idle.set()
            self._notify(False)

    def is_busy(self) -> bool:
        return bool(self._pending)

    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    def subscribe(self, listener: BusyListener) -> Callable[[], None]:
        """Call `listener` on every busy transition; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def track(self, op_id: str, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` while `op_id` is pending.

        The entry is removed on success, failure and cancellation alike.
        """
        self.begin(op_id)
        try:
            return await awaitable
        finally:
            self.end(op_id)

    async def wait_idle(self) -> None:
        await self._idle.wait()

    def _notify(self, busy: bool) -> None:
        logger.debug("loading.busy busy=%s pending=%s", busy, sorted(self._pending))
        for listener in list(self._listeners):
            listener(busy)
