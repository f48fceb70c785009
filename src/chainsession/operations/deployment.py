"""
chainsession.operations.deployment - Contract Deployment
==========================================================

Turns a compiled artifact into a live instance:

    deploy(artifact_id, params)
        1. look up the artifact                 (ResolutionError if absent)
        2. chain.deploy_contract(account, bytecode, constructor_types, params)
        3. instances[artifact_id] = DeployedInstance(address, state={})
        4. append a DEPLOY record to the history

The instance is keyed by the artifact id, so deploying the same artifact
again replaces the previous instance and starts from empty state.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from chainsession.core.enums import OperationKind, TxStatus
from chainsession.core.exceptions import ResolutionError
from chainsession.core.models import DeployedInstance, OperationResult, TransactionRecord
from chainsession.operations.base import SessionOperation


class Deployer(SessionOperation):
    """Deploys artifacts from the Session Store to the chain."""

    async def deploy(self, artifact_id: str, params: Sequence[Any] = ()) -> OperationResult:
        """Deploy the artifact ``artifact_id`` with constructor ``params``.

        Never raises; failures are reported to the error sink and returned
        as ``OperationResult(ok=False)``.
        """
        return await self.run(
            OperationKind.DEPLOY.value,
            artifact_id,
            lambda: self._deploy(artifact_id, list(params)),
        )

    async def _deploy(self, artifact_id: str, params: list[Any]) -> TransactionRecord:
        artifact = self._store.artifact(artifact_id)
        if artifact is None:
            raise ResolutionError(
                message=f"No compiled artifact with id {artifact_id}",
                target_id=artifact_id,
                error_code="ARTIFACT_NOT_FOUND",
            )

        account = self._store.account
        self._logger.info(
            "contract_deploying",
            artifact_id=artifact_id,
            contract=artifact.contract_name,
            params=len(params),
        )

        receipt = await self.chain_request(
            lambda: self._chain.deploy_contract(
                account,
                artifact.bytecode,
                artifact.constructor_types,
                params,
            )
        )

        instance = DeployedInstance.from_artifact(artifact, receipt.address)
        await self._store.set_instance(artifact_id, instance)

        record = TransactionRecord(
            contract_name=artifact.contract_name,
            from_address=account,
            to_address=receipt.address,
            cost=receipt.cost,
            hash=receipt.hash,
            status=TxStatus.SUCCESS,
            kind=OperationKind.DEPLOY,
        )
        await self._history.append(record)

        self._logger.info(
            "contract_deployed",
            artifact_id=artifact_id,
            address=receipt.address,
            cost=receipt.cost,
        )
        return record
