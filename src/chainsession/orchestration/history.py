"""
chainsession.orchestration.history - Transaction History Log
==============================================================

Ordered, append-only record of every completed deploy/call/tx. Each append
writes the new history snapshot to the SessionStore and hands the record to
the TransactionEventStream.

Ordering:
    Records are appended in the order operations COMPLETE, not the order
    they were issued. The stream hand-off runs inside the store write, with
    no suspension between the two, so the stream emits records in exactly
    the order they appear in the history.

    ``append()`` does not wait for subscribers. Use ``flush()`` to wait
    until the callbacks have seen everything appended so far.
"""

from __future__ import annotations

import structlog

from chainsession.core.models import TransactionRecord
from chainsession.orchestration.event_stream import TransactionEventStream
from chainsession.orchestration.session_store import SessionStore

logger = structlog.get_logger()


class TransactionHistoryLog:
    """Append-only history backed by the SessionStore.

    Example:
        >>> log = TransactionHistoryLog(store, stream)
        >>> await log.append(record)
        >>> log.records[-1] is record
        True
    """

    def __init__(self, store: SessionStore, stream: TransactionEventStream) -> None:
        self._store = store
        self._stream = stream
        self._logger = logger.bind(component="transaction_history")

    @property
    def records(self) -> tuple[TransactionRecord, ...]:
        """Current history snapshot."""
        return self._store.history

    @property
    def stream(self) -> TransactionEventStream:
        return self._stream

    def __len__(self) -> int:
        return len(self._store.history)

    async def append(self, record: TransactionRecord) -> None:
        """Append ``record`` and publish it on the event stream."""

        def committed(history: tuple[TransactionRecord, ...]) -> None:
            self._stream.publish(record)
            self._logger.info(
                "transaction_recorded",
                kind=record.kind.value,
                contract=record.contract_name,
                fn=record.fn,
                hash=record.hash,
                position=len(history) - 1,
            )

        await self._store.append_history(record, committed=committed)

    async def flush(self) -> None:
        """Wait until stream callbacks have received every appended record."""
        await self._stream.flush()
