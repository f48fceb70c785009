"""
chainsession.operations.invocation - Contract Invocation
==========================================================

Runs a named function on a deployed instance, either as a read-only call
or as a state-changing transaction:

    invoke(instance_id, fn, params, state_changing)
        1. look up the instance and its ABI entry   (ResolutionError)
        2. chain.call(...) or chain.tx(...)
        3. append a CALL / TX record to the history
        4. merge the public outputs into instance.state[fn]

Output filtering:
    The chain returns outputs as an ordered name → value mapping. Outputs
    whose name marks them as internal (by default a leading "_") are
    dropped. If nothing is left, the state is not touched.

Merge:
    The merge reads the instance from the store at commit time, not the
    snapshot taken before the chain request, so it only ever replaces the
    ``fn`` entry of whatever the instance currently holds. If the instance
    was disposed while the request was in flight the merge is skipped; the
    history record is kept.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional

from chainsession.core.enums import OperationKind, StoreField, TxStatus
from chainsession.core.exceptions import ResolutionError
from chainsession.core.models import InvocationReceipt, OperationResult, TransactionRecord
from chainsession.integrations.chain.base import ChainInterface
from chainsession.operations.base import SessionOperation
from chainsession.orchestration.error_sink import ErrorSink
from chainsession.orchestration.history import TransactionHistoryLog
from chainsession.orchestration.serializer import KeyedSerializer
from chainsession.orchestration.session_store import SessionStore

OutputFilter = Callable[[str], bool]


def internal_output_filter(prefix: str = "_") -> OutputFilter:
    """Predicate that is True for output names starting with ``prefix``.

    An empty prefix keeps every output.
    """
    if not prefix:
        return lambda name: False
    return lambda name: name.startswith(prefix)


def public_outputs(result: Mapping[str, Any], is_internal: OutputFilter) -> list[Any]:
    """Values of ``result`` in order, minus internal outputs."""
    return [value for name, value in result.items() if not is_internal(name)]


class Invoker(SessionOperation):
    """Executes call/tx requests against deployed instances.

    Args:
        is_internal: Output-name predicate; see internal_output_filter().
    """

    def __init__(
        self,
        store: SessionStore,
        chain: ChainInterface,
        history: TransactionHistoryLog,
        sink: ErrorSink,
        serializer: KeyedSerializer,
        *,
        is_internal: Optional[OutputFilter] = None,
    ) -> None:
        super().__init__(store, chain, history, sink, serializer)
        self._is_internal = is_internal or internal_output_filter()

    async def invoke(
        self,
        instance_id: str,
        fn_name: str,
        params: Sequence[Any] = (),
        state_changing: bool = False,
    ) -> OperationResult:
        """Invoke ``fn_name`` on ``instance_id``. Never raises."""
        kind = OperationKind.TX if state_changing else OperationKind.CALL
        return await self.run(
            kind.value,
            instance_id,
            lambda: self._invoke(instance_id, fn_name, list(params), kind),
        )

    async def call(
        self, instance_id: str, fn_name: str, params: Sequence[Any] = ()
    ) -> OperationResult:
        return await self.invoke(instance_id, fn_name, params, state_changing=False)

    async def tx(
        self, instance_id: str, fn_name: str, params: Sequence[Any] = ()
    ) -> OperationResult:
        return await self.invoke(instance_id, fn_name, params, state_changing=True)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _invoke(
        self,
        instance_id: str,
        fn_name: str,
        params: list[Any],
        kind: OperationKind,
    ) -> TransactionRecord:
        instance = self._store.instance(instance_id)
        if instance is None:
            raise ResolutionError(
                message=f"No deployed instance with id {instance_id}",
                target_id=instance_id,
                fn=fn_name,
                error_code="INSTANCE_NOT_FOUND",
            )

        abi_entry = instance.find_function(fn_name)
        if abi_entry is None:
            raise ResolutionError(
                message=f"Function {fn_name} not found in {instance.contract_name}",
                target_id=instance_id,
                fn=fn_name,
                error_code="FUNCTION_NOT_FOUND",
            )

        account = self._store.account
        request = self._chain.tx if kind is OperationKind.TX else self._chain.call
        receipt: InvocationReceipt = await self.chain_request(
            lambda: request(
                account,
                instance.address,
                abi_entry,
                abi_entry.output_types,
                params,
            )
        )

        record = TransactionRecord(
            contract_name=instance.contract_name,
            from_address=account,
            to_address=instance.address,
            cost=receipt.cost,
            hash=receipt.hash,
            status=TxStatus.SUCCESS if kind is OperationKind.TX else None,
            fn=fn_name,
            kind=kind,
        )
        await self._history.append(record)

        outputs = public_outputs(receipt.result, self._is_internal)
        if outputs:
            await self._merge(instance_id, fn_name, outputs)

        self._logger.info(
            "contract_invoked",
            instance_id=instance_id,
            fn=fn_name,
            kind=kind.value,
            outputs=len(outputs),
        )
        return record

    async def _merge(self, instance_id: str, fn_name: str, outputs: list[Any]) -> None:
        if self._store.instance(instance_id) is None:
            self._logger.info(
                "state_merge_skipped",
                instance_id=instance_id,
                fn=fn_name,
                reason="instance disposed",
            )
            return

        # No await between the check above and the synchronous transform.
        await self._store.update(
            StoreField.INSTANCES,
            lambda current: {
                **current,
                instance_id: current[instance_id].with_outputs(fn_name, outputs),
            },
        )
