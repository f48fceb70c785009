"""
chainsession.operations.disposal - Instance Disposal
======================================================

Forgets deployed instances, or the cached outputs of one function.

Both operations act immediately; they do not wait behind in-flight
deploys or invocations of the same id. Disposing something that is not
there is a silent no-op and writes nothing to the store.
"""

from __future__ import annotations

import structlog

from chainsession.core.enums import StoreField
from chainsession.core.models import OperationResult
from chainsession.orchestration.session_store import SessionStore

logger = structlog.get_logger()


class Disposer:
    """Removes instances and per-function state from the Session Store."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store
        self._logger = logger.bind(component="disposer")

    async def dispose(self, instance_id: str) -> OperationResult:
        """Forget the instance ``instance_id``.

        The key stays in ``instances`` with a None value, like a slot that
        was emptied.
        """
        if self._store.instance(instance_id) is None:
            self._logger.debug("dispose_noop", instance_id=instance_id)
            return OperationResult.success("dispose", target_id=instance_id)

        await self._store.set_instance(instance_id, None)
        self._logger.info("instance_disposed", instance_id=instance_id)
        return OperationResult.success("dispose", target_id=instance_id)

    async def dispose_state(self, instance_id: str, fn_name: str) -> OperationResult:
        """Drop the cached outputs of ``fn_name`` on ``instance_id``."""
        instance = self._store.instance(instance_id)
        if instance is None or fn_name not in instance.state:
            self._logger.debug("dispose_state_noop", instance_id=instance_id, fn=fn_name)
            return OperationResult.success("dispose_state", target_id=instance_id)

        await self._store.update(
            StoreField.INSTANCES,
            lambda current: {
                **current,
                instance_id: current[instance_id].without_outputs(fn_name),
            },
        )
        self._logger.info("instance_state_disposed", instance_id=instance_id, fn=fn_name)
        return OperationResult.success("dispose_state", target_id=instance_id)
