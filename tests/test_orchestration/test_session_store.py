"""
Tests for chainsession.orchestration.session_store
====================================================

What's Being Tested:
    - Snapshot-replace: every mutation produces a new top-level value
    - Snapshots are read-only and old snapshots never change
    - History is append-only
    - Field observers: notified with (field, old, new); errors isolated
    - Unknown fields raise StoreError
"""

import asyncio

import pytest

from chainsession.core.enums import OperationKind, StoreField
from chainsession.core.exceptions import StoreError
from chainsession.core.models import (
    CompiledArtifact,
    DeployedInstance,
    RawArtifact,
    TransactionRecord,
)
from chainsession.orchestration.session_store import ZERO_ADDRESS, SessionStore
from tests.conftest import TOKEN_SOURCE, token_document


def _make_artifact() -> CompiledArtifact:
    return CompiledArtifact.from_raw(TOKEN_SOURCE, RawArtifact.model_validate(token_document()))


def _make_record(hash: str = "0x1") -> TransactionRecord:
    return TransactionRecord(
        contract_name="Token",
        from_address=ZERO_ADDRESS,
        to_address="0xABC",
        hash=hash,
        kind=OperationKind.CALL,
    )


class TestSessionStore:

    # -------------------------------------------------------------------------
    # Initial state
    # -------------------------------------------------------------------------

    def test_initial_state(self) -> None:
        store = SessionStore()
        assert dict(store.artifacts) == {}
        assert dict(store.instances) == {}
        assert store.history == ()
        assert store.account == ZERO_ADDRESS
        assert store.version(StoreField.HISTORY) == 0

    def test_get_by_string_field(self) -> None:
        store = SessionStore(account="0xme")
        assert store.get("account") == "0xme"

    def test_unknown_field_raises(self) -> None:
        store = SessionStore()
        with pytest.raises(StoreError) as exc_info:
            store.get("balances")
        assert exc_info.value.error_code == "UNKNOWN_FIELD"

    # -------------------------------------------------------------------------
    # Snapshot-replace
    # -------------------------------------------------------------------------

    async def test_set_artifact_replaces_mapping(self) -> None:
        store = SessionStore()
        before = store.artifacts
        artifact = _make_artifact()

        await store.set_artifact(artifact)

        assert store.artifacts is not before
        assert dict(before) == {}
        assert store.artifact(artifact.id) is artifact
        assert store.version(StoreField.ARTIFACTS) == 1

    async def test_snapshots_are_read_only(self) -> None:
        store = SessionStore()
        await store.set_artifact(_make_artifact())
        with pytest.raises(TypeError):
            store.artifacts["x"] = None  # type: ignore[index]

    async def test_update_does_not_alias_caller_dict(self) -> None:
        store = SessionStore()
        value = {"a": None}
        await store.replace(StoreField.INSTANCES, value)
        value["b"] = None
        assert "b" not in store.instances

    async def test_set_instance_none_disposes(self) -> None:
        store = SessionStore()
        instance = DeployedInstance.from_artifact(_make_artifact(), "0xABC")
        await store.set_instance(instance.id, instance)
        assert store.instance(instance.id) is instance

        await store.set_instance(instance.id, None)
        assert store.instance(instance.id) is None
        assert store.instance("never-deployed") is None

    async def test_set_account(self) -> None:
        store = SessionStore()
        await store.set_account("0xnew")
        assert store.account == "0xnew"

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    async def test_append_history(self) -> None:
        store = SessionStore()
        first, second = _make_record("0x1"), _make_record("0x2")
        await store.append_history(first)
        snapshot = store.history
        await store.append_history(second)

        assert snapshot == (first,)
        assert store.history == (first, second)

    async def test_history_rewrite_rejected(self) -> None:
        store = SessionStore()
        await store.append_history(_make_record("0x1"))

        with pytest.raises(StoreError) as exc_info:
            await store.replace(StoreField.HISTORY, ())
        assert exc_info.value.error_code == "HISTORY_REWRITE"
        assert len(store.history) == 1

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    async def test_observer_receives_old_and_new(self) -> None:
        store = SessionStore()
        seen = []

        async def on_account(field, old, new) -> None:
            seen.append((field, old, new))

        store.subscribe(StoreField.ACCOUNT, on_account)
        await store.set_account("0xnew")

        assert seen == [(StoreField.ACCOUNT, ZERO_ADDRESS, "0xnew")]

    async def test_observer_only_for_its_field(self) -> None:
        store = SessionStore()
        seen = []

        async def on_history(field, old, new) -> None:
            seen.append(field)

        store.subscribe("history", on_history)
        await store.set_account("0xnew")
        assert seen == []

    async def test_observer_error_isolated(self) -> None:
        store = SessionStore()
        seen = []

        async def broken(field, old, new) -> None:
            raise RuntimeError("observer bug")

        async def healthy(field, old, new) -> None:
            seen.append(new)

        store.subscribe(StoreField.ACCOUNT, broken)
        store.subscribe(StoreField.ACCOUNT, healthy)
        await store.set_account("0xnew")

        assert store.account == "0xnew"
        assert seen == ["0xnew"]

    async def test_unsubscribe(self) -> None:
        store = SessionStore()
        seen = []

        async def cb(field, old, new) -> None:
            seen.append(new)

        store.subscribe(StoreField.ACCOUNT, cb)
        assert store.unsubscribe(StoreField.ACCOUNT, cb) is True
        assert store.unsubscribe(StoreField.ACCOUNT, cb) is False
        await store.set_account("0xnew")
        assert seen == []

    # -------------------------------------------------------------------------
    # Concurrency
    # -------------------------------------------------------------------------

    async def test_concurrent_updates_not_lost(self) -> None:
        """Concurrent writers to different keys of one field all land."""
        store = SessionStore()

        async def slow_observer(field, old, new) -> None:
            await asyncio.sleep(0)

        store.subscribe(StoreField.INSTANCES, slow_observer)
        await asyncio.gather(
            *(store.set_instance(f"id-{i}", None) for i in range(20))
        )
        assert len(store.instances) == 20
        assert store.version(StoreField.INSTANCES) == 20
