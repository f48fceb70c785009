"""
chainsession.orchestration.event_stream - Transaction Event Stream
====================================================================

Push-based stream of transaction records. Every record appended to the
history is published here so observers can react incrementally without
re-reading the whole history.

Two ways to observe:

    1. Callbacks (delivered by the stream's dispatcher task):

        >>> async def on_tx(record: TransactionRecord) -> None:
        ...     print(record.hash)
        >>> stream.subscribe(on_tx)

    2. Async iteration (each iterator gets its own queue):

        >>> async for record in stream.records():
        ...     print(record.hash)

Delivery:
    ``publish()`` never suspends. It hands the record to every iterator
    queue and to a pending deque, and returns. One dispatcher task drains
    the deque and awaits the callbacks for a record before moving to the
    next one, so callbacks see records in publish order. Because the
    publisher never waits for its subscribers, a callback may call back
    into the session (for example issue a ``call``) without blocking the
    operation that produced the record.

    ``await flush()`` waits until every record published so far has been
    delivered to the callbacks.

A failing callback is logged and isolated: it never reaches the publisher
and never prevents other subscribers from receiving the record.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Optional

import structlog

from chainsession.core.models import TransactionRecord

logger = structlog.get_logger()

TransactionCallback = Callable[[TransactionRecord], Awaitable[None]]


class TransactionEventStream:
    """In-process pub/sub of TransactionRecords.

    Attributes:
        _subscribers: Registered callbacks, in registration order.
        _queues: One queue per active ``records()`` iterator.
        _pending: Records not yet delivered to the callbacks.
        _dispatcher: Task draining ``_pending``, or None when idle.
        _published_count: Records published since creation.
    """

    def __init__(self) -> None:
        self._subscribers: list[TransactionCallback] = []
        self._queues: list[asyncio.Queue[Optional[TransactionRecord]]] = []
        self._pending: deque[TransactionRecord] = deque()
        self._dispatcher: Optional[asyncio.Task[None]] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._published_count: int = 0
        self._closed: bool = False
        self._logger = logger.bind(component="transaction_event_stream")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def published_count(self) -> int:
        return self._published_count

    @property
    def subscriber_count(self) -> int:
        """Callbacks plus active iterators."""
        return len(self._subscribers) + len(self._queues)

    @property
    def pending_count(self) -> int:
        """Records still waiting for callback delivery."""
        return len(self._pending)

    @property
    def is_closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Subscription
    # =========================================================================

    def subscribe(self, callback: TransactionCallback) -> None:
        """Register ``callback`` to receive every future record."""
        self._subscribers.append(callback)
        self._logger.debug("stream_subscribed", total_subscribers=self.subscriber_count)

    def unsubscribe(self, callback: TransactionCallback) -> bool:
        """Remove ``callback``. Returns False if it was not registered."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)
            return True
        return False

    def records(self) -> RecordIterator:
        """Iterator over records published after this call.

        The queue is registered immediately, so nothing published between
        this call and the first ``__anext__`` is lost. The iterator ends
        when the stream is closed; call ``aclose()`` to stop early.
        """
        return RecordIterator(self)

    # =========================================================================
    # Publishing
    # =========================================================================

    def publish(self, record: TransactionRecord) -> None:
        """Hand ``record`` to every iterator and schedule callback delivery.

        Never suspends. Records published after close() are dropped.
        """
        if self._closed:
            self._logger.warning("stream_closed_dropping", hash=record.hash)
            return

        self._published_count += 1
        for queue in self._queues:
            queue.put_nowait(record)

        if self._subscribers:
            self._pending.append(record)
            self._idle.clear()
            if self._dispatcher is None:
                self._dispatcher = asyncio.get_running_loop().create_task(self._dispatch())

        self._logger.debug(
            "transaction_published",
            hash=record.hash,
            kind=record.kind.value,
            pending=len(self._pending),
        )

    async def flush(self) -> None:
        """Wait until every record published so far reached the callbacks.

        Returns immediately when called from inside a callback.
        """
        if self._dispatcher is not None and self._dispatcher is asyncio.current_task():
            return
        await self._idle.wait()

    def close(self) -> None:
        """Stop the stream: iterators finish and new records are dropped.

        Records already published are still delivered to the callbacks;
        ``await flush()`` to wait for them.
        """
        if self._closed:
            return
        self._closed = True
        for queue in self._queues:
            queue.put_nowait(None)
        self._logger.info("stream_closed", pending=len(self._pending))

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _dispatch(self) -> None:
        try:
            while self._pending:
                await self._deliver(self._pending.popleft())
        finally:
            self._dispatcher = None
            self._idle.set()

    async def _deliver(self, record: TransactionRecord) -> None:
        callbacks = list(self._subscribers)
        results = await asyncio.gather(
            *(cb(record) for cb in callbacks),
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                self._logger.error(
                    "subscriber_callback_error",
                    hash=record.hash,
                    error=str(result),
                    error_type=type(result).__name__,
                    callback_index=i,
                )


class RecordIterator:
    """Async iterator over one TransactionEventStream queue."""

    def __init__(self, stream: TransactionEventStream) -> None:
        self._stream = stream
        self._queue: asyncio.Queue[Optional[TransactionRecord]] = asyncio.Queue()
        self._done = False
        stream._queues.append(self._queue)
        if stream.is_closed:
            self._queue.put_nowait(None)

    def __aiter__(self) -> RecordIterator:
        return self

    async def __anext__(self) -> TransactionRecord:
        if self._done:
            raise StopAsyncIteration
        record = await self._queue.get()
        if record is None:
            await self.aclose()
            raise StopAsyncIteration
        return record

    async def aclose(self) -> None:
        """Detach from the stream. Idempotent."""
        if self._done:
            return
        self._done = True
        self._stream._queues.remove(self._queue)
