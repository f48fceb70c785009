"""
Tests for chainsession.operations.disposal - Disposer
=======================================================

dispose() and dispose_state() never fail and never write when there is
nothing to remove.
"""

import pytest

from chainsession.core.enums import StoreField
from chainsession.core.models import DeployedInstance
from chainsession.infrastructure.artifact_registry import parse_artifact
from tests.conftest import TOKEN_ID, TOKEN_SOURCE, encode, token_document


@pytest.fixture
async def token(store):
    artifact = parse_artifact(TOKEN_SOURCE, encode(token_document()))
    instance = (
        DeployedInstance.from_artifact(artifact, "0xABC")
        .with_outputs("balanceOf", [1])
        .with_outputs("transfer", [True])
    )
    await store.set_instance(TOKEN_ID, instance)
    return TOKEN_ID


class TestDisposer:

    async def test_dispose(self, store, token, disposer) -> None:
        result = await disposer.dispose(token)

        assert result.ok
        assert result.operation == "dispose"
        assert store.instance(token) is None

    async def test_dispose_twice_is_noop(self, store, token, disposer) -> None:
        await disposer.dispose(token)
        version = store.version(StoreField.INSTANCES)

        result = await disposer.dispose(token)

        assert result.ok
        assert store.version(StoreField.INSTANCES) == version

    async def test_dispose_unknown_is_noop(self, store, disposer) -> None:
        result = await disposer.dispose("never-deployed")
        assert result.ok
        assert store.version(StoreField.INSTANCES) == 0

    async def test_dispose_state_removes_one_function(self, store, token, disposer) -> None:
        result = await disposer.dispose_state(token, "balanceOf")

        assert result.ok
        assert store.instance(token).state == {"transfer": [True]}
        assert store.instance(token).address == "0xABC"

    async def test_dispose_state_missing_fn_is_noop(self, store, token, disposer) -> None:
        version = store.version(StoreField.INSTANCES)
        result = await disposer.dispose_state(token, "approve")

        assert result.ok
        assert store.version(StoreField.INSTANCES) == version

    async def test_dispose_state_missing_instance_is_noop(self, store, disposer) -> None:
        result = await disposer.dispose_state("never-deployed", "balanceOf")
        assert result.ok
        assert store.version(StoreField.INSTANCES) == 0
