"""
Tests for chainsession.orchestration.history - TransactionHistoryLog
======================================================================

Append writes to the store and hands the record to the stream in the same
step; emission order is append order even when appends race, and append
never waits for subscribers.
"""

import asyncio

from chainsession.core.enums import OperationKind, StoreField
from chainsession.core.models import TransactionRecord
from chainsession.orchestration.event_stream import TransactionEventStream
from chainsession.orchestration.history import TransactionHistoryLog
from chainsession.orchestration.session_store import SessionStore


def _make_record(hash: str) -> TransactionRecord:
    return TransactionRecord(
        contract_name="Token",
        from_address="0xme",
        to_address="0xABC",
        hash=hash,
        kind=OperationKind.CALL,
    )


class TestTransactionHistoryLog:

    async def test_append_stores_and_emits(self) -> None:
        store, stream = SessionStore(), TransactionEventStream()
        log = TransactionHistoryLog(store, stream)
        emitted = []

        async def on_record(record: TransactionRecord) -> None:
            # The store already holds the record when it is emitted.
            emitted.append((record, store.history[-1]))

        stream.subscribe(on_record)
        record = _make_record("0x1")
        await log.append(record)
        await log.flush()

        assert log.records == (record,)
        assert len(log) == 1
        assert emitted == [(record, record)]
        assert log.stream is stream

    async def test_emission_order_matches_history(self) -> None:
        store, stream = SessionStore(), TransactionEventStream()
        log = TransactionHistoryLog(store, stream)
        emitted: list[str] = []

        async def slow_subscriber(record: TransactionRecord) -> None:
            await asyncio.sleep(0)
            emitted.append(record.hash)

        stream.subscribe(slow_subscriber)
        await asyncio.gather(*(log.append(_make_record(f"0x{i}")) for i in range(10)))
        await log.flush()

        assert emitted == [r.hash for r in log.records]
        assert len(log) == 10

    async def test_store_observers_see_appends(self) -> None:
        store, stream = SessionStore(), TransactionEventStream()
        log = TransactionHistoryLog(store, stream)
        lengths = []

        async def on_history(field, old, new) -> None:
            lengths.append((len(old), len(new)))

        store.subscribe(StoreField.HISTORY, on_history)
        await log.append(_make_record("0x1"))
        await log.append(_make_record("0x2"))

        assert lengths == [(0, 1), (1, 2)]

    async def test_order_holds_with_slow_store_observer(self) -> None:
        store, stream = SessionStore(), TransactionEventStream()
        log = TransactionHistoryLog(store, stream)
        emitted: list[str] = []

        async def slow_observer(field, old, new) -> None:
            # The first append's observer finishes last.
            if len(new) == 1:
                await asyncio.sleep(0.001)

        async def on_record(record: TransactionRecord) -> None:
            emitted.append(record.hash)

        store.subscribe(StoreField.HISTORY, slow_observer)
        stream.subscribe(on_record)
        await asyncio.gather(log.append(_make_record("0x1")), log.append(_make_record("0x2")))
        await log.flush()

        assert emitted == ["0x1", "0x2"] == [r.hash for r in log.records]

    async def test_subscriber_can_append(self) -> None:
        store, stream = SessionStore(), TransactionEventStream()
        log = TransactionHistoryLog(store, stream)
        emitted: list[str] = []

        async def on_record(record: TransactionRecord) -> None:
            emitted.append(record.hash)
            if record.hash == "0x1":
                await log.append(_make_record("0x2"))

        stream.subscribe(on_record)
        await asyncio.wait_for(log.append(_make_record("0x1")), timeout=1)
        await asyncio.wait_for(log.flush(), timeout=1)

        assert emitted == ["0x1", "0x2"]
        assert len(log) == 2
