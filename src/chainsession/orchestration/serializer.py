"""
chainsession.orchestration.serializer - Per-Key Execution Queues
==================================================================

Operations against the same instance id must run end-to-end one after
another; operations against different ids run concurrently.

    deploy(A) ──┐                    ┌── call(B)
                ▼                    ▼
          [ queue A ]           [ queue B ]
          tx(A, f) waits        runs immediately
          until deploy(A) ends

Each key gets its own ``asyncio.Lock`` (FIFO for waiters), created on first
use and dropped once no coroutine holds or waits for it.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

logger = structlog.get_logger()


class KeyedSerializer:
    """Map of per-key sequential queues.

    Example:
        >>> serializer = KeyedSerializer()
        >>> async with serializer.hold("instance-1"):
        ...     ...  # no other holder of "instance-1" runs here
    """

    def __init__(self, name: str = "serializer") -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}
        self._logger = logger.bind(component="keyed_serializer", name=name)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Run the enclosed block exclusively for ``key``.

        Waiters for the same key are admitted in arrival order.
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1

        if lock.locked():
            self._logger.debug("key_queued", key=key, pending=self._waiters[key])
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def pending(self, key: str) -> int:
        """Coroutines currently holding or waiting for ``key``."""
        return self._waiters.get(key, 0)

    def is_busy(self, key: str) -> bool:
        return self.pending(key) > 0

    @property
    def active_keys(self) -> list[str]:
        return list(self._waiters)
