"""
chainsession.orchestration.session_store - Shared Session State
=================================================================

The Session Store is the single shared, mutable source of truth for a
contract session. The registry, the operations and any number of
unrelated consumers (UI panels, loggers) read from it.

Fields:
    artifacts  → Mapping[artifact_id, CompiledArtifact]
    instances  → Mapping[artifact_id, DeployedInstance | None]
    history    → tuple[TransactionRecord, ...]
    account    → str

Snapshot-Replace Discipline:
    Every mutation replaces the whole top-level field with a new value.
    Readers holding a snapshot never observe a partial update:

        old = store.instances            # read-only snapshot
        await store.update(INSTANCES, lambda m: {**m, id: inst})
        store.instances is not old       # new snapshot
        old                              # unchanged

    ``update()`` reads the current value, applies the transform and writes
    the result without suspending in between, so two coroutines updating
    the same field can never interleave a read-modify-write on the event
    loop. Field observers are notified after the write.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Union

import structlog

from chainsession.core.enums import StoreField
from chainsession.core.exceptions import StoreError
from chainsession.core.models import CompiledArtifact, DeployedInstance, TransactionRecord

logger = structlog.get_logger()

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# async def on_change(field, old_value, new_value) -> None
StoreCallback = Callable[[StoreField, Any, Any], Awaitable[None]]

FieldKey = Union[StoreField, str]


class SessionStore:
    """In-memory Session Store with copy-on-write fields and field-level
    change observers.

    Example:
        >>> store = SessionStore(account="0xabc")
        >>> async def on_history(field, old, new):
        ...     print(f"{len(new) - len(old)} new record(s)")
        >>> store.subscribe(StoreField.HISTORY, on_history)
        >>> await store.append_history(record)
        1 new record(s)
    """

    def __init__(self, account: str = ZERO_ADDRESS) -> None:
        self._fields: dict[StoreField, Any] = {
            StoreField.ARTIFACTS: MappingProxyType({}),
            StoreField.INSTANCES: MappingProxyType({}),
            StoreField.HISTORY: (),
            StoreField.ACCOUNT: account,
        }
        self._versions: dict[StoreField, int] = {f: 0 for f in StoreField}
        self._observers: dict[StoreField, list[StoreCallback]] = {}
        self._logger = logger.bind(component="session_store")

    # =========================================================================
    # Snapshot Accessors
    # =========================================================================

    @property
    def artifacts(self) -> Mapping[str, CompiledArtifact]:
        return self._fields[StoreField.ARTIFACTS]

    @property
    def instances(self) -> Mapping[str, Optional[DeployedInstance]]:
        return self._fields[StoreField.INSTANCES]

    @property
    def history(self) -> tuple[TransactionRecord, ...]:
        return self._fields[StoreField.HISTORY]

    @property
    def account(self) -> str:
        return self._fields[StoreField.ACCOUNT]

    def get(self, field: FieldKey) -> Any:
        """Current snapshot of ``field``."""
        return self._fields[self._field(field)]

    def version(self, field: FieldKey) -> int:
        """Number of times ``field`` has been replaced."""
        return self._versions[self._field(field)]

    def artifact(self, artifact_id: str) -> Optional[CompiledArtifact]:
        return self.artifacts.get(artifact_id)

    def instance(self, instance_id: str) -> Optional[DeployedInstance]:
        """Live instance for ``instance_id``.

        Disposed and never-deployed ids both return None.
        """
        return self.instances.get(instance_id)

    # =========================================================================
    # Mutation
    # =========================================================================

    async def update(
        self,
        field: FieldKey,
        transform: Callable[[Any], Any],
        committed: Optional[Callable[[Any], None]] = None,
    ) -> Any:
        """Replace ``field`` with ``transform(current)``.

        The read, transform, write and ``committed`` hook happen in one
        synchronous step, before any observer runs.

        Args:
            field: The field to replace.
            transform: Pure function from the current snapshot to the next
                value. It must not mutate its argument.
            committed: Optional synchronous hook called with the new
                snapshot right after the write.

        Returns:
            The new snapshot.

        Raises:
            StoreError: If the field is unknown or the new value would
                rewrite existing history.
        """
        key = self._field(field)
        old = self._fields[key]
        new = self._freeze(key, old, transform(old))
        self._fields[key] = new
        self._versions[key] += 1
        if committed is not None:
            committed(new)

        self._logger.debug("store_field_replaced", field=key.value, version=self._versions[key])
        await self._notify(key, old, new)
        return new

    async def replace(self, field: FieldKey, value: Any) -> Any:
        """Replace ``field`` with ``value``."""
        return await self.update(field, lambda _old: value)

    async def set_artifact(self, artifact: CompiledArtifact) -> None:
        await self.update(
            StoreField.ARTIFACTS,
            lambda current: {**current, artifact.id: artifact},
        )

    async def set_instance(
        self, instance_id: str, instance: Optional[DeployedInstance]
    ) -> None:
        """Set (or, with None, dispose) the instance for ``instance_id``."""
        await self.update(
            StoreField.INSTANCES,
            lambda current: {**current, instance_id: instance},
        )

    async def append_history(
        self,
        record: TransactionRecord,
        committed: Optional[Callable[[Any], None]] = None,
    ) -> None:
        await self.update(
            StoreField.HISTORY, lambda current: current + (record,), committed=committed
        )

    async def set_account(self, account: str) -> None:
        await self.replace(StoreField.ACCOUNT, account)

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, field: FieldKey, callback: StoreCallback) -> None:
        """Register ``callback`` for replacements of ``field``."""
        self._observers.setdefault(self._field(field), []).append(callback)

    def unsubscribe(self, field: FieldKey, callback: StoreCallback) -> bool:
        """Remove ``callback``. Returns False if it was not registered."""
        callbacks = self._observers.get(self._field(field), [])
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    @staticmethod
    def _field(field: FieldKey) -> StoreField:
        try:
            return StoreField(field)
        except ValueError as exc:
            raise StoreError(
                message=f"Unknown store field: {field!r}",
                error_code="UNKNOWN_FIELD",
                details={"field": str(field)},
            ) from exc

    @staticmethod
    def _freeze(field: StoreField, old: Any, new: Any) -> Any:
        """Coerce a new field value into its immutable snapshot form."""
        if field in (StoreField.ARTIFACTS, StoreField.INSTANCES):
            return MappingProxyType(dict(new))
        if field is StoreField.HISTORY:
            new = tuple(new)
            if new[: len(old)] != old:
                raise StoreError(
                    message="Transaction history is append-only",
                    error_code="HISTORY_REWRITE",
                    details={"old_length": len(old), "new_length": len(new)},
                )
            return new
        return str(new)

    async def _notify(self, field: StoreField, old: Any, new: Any) -> None:
        callbacks = list(self._observers.get(field, []))
        if not callbacks:
            return

        results = await asyncio.gather(
            *(cb(field, old, new) for cb in callbacks),
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                self._logger.error(
                    "store_observer_error",
                    field=field.value,
                    error=str(result),
                    error_type=type(result).__name__,
                    callback_index=i,
                )
