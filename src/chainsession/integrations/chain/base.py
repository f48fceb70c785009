"""
chainsession.integrations.chain.base - Chain Interface Abstraction
====================================================================

The Chain Interface is the session's only route to the execution backend.
Deploys and invocations go through it; the session never talks to a node
directly.

    Deployer ──deploy_contract()──┐
                                  ▼
    Invoker ───call() / tx()──→ ChainInterface ──→ MockChain | (RPC provider)

Every method is asynchronous and may fail. Implementations raise
``ChainError`` (with an optional structured ``reason``); the operations
layer also treats any other exception from the chain as a chain failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Optional

from chainsession.core.config import ChainConfig
from chainsession.core.models import DeployReceipt, FunctionDescriptor, InvocationReceipt


class ChainInterface(ABC):
    """Abstract base class for chain backends.

    Subclasses must implement:
        - deploy_contract(): deploy bytecode, return address/cost/hash
        - call():            read-only invocation
        - tx():              state-changing invocation

    Attributes:
        _config: Chain configuration (provider name, endpoint).
    """

    def __init__(self, config: Optional[ChainConfig] = None) -> None:
        self._config = config or ChainConfig()

    @property
    def provider_name(self) -> str:
        return self._config.provider

    @property
    def config(self) -> ChainConfig:
        return self._config

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    async def deploy_contract(
        self,
        account: str,
        bytecode: str,
        constructor_types: Sequence[str],
        params: Sequence[Any],
    ) -> DeployReceipt:
        """Deploy ``bytecode`` from ``account``.

        Args:
            account: Sender address.
            bytecode: Hex-encoded contract bytecode.
            constructor_types: ABI types of the constructor inputs.
            params: Constructor arguments, one per type.

        Returns:
            DeployReceipt with the new contract address, cost and hash.

        Raises:
            ChainError: If the deployment is rejected.
        """

    @abstractmethod
    async def call(
        self,
        account: str,
        address: str,
        abi_entry: FunctionDescriptor,
        output_types: Sequence[str],
        params: Sequence[Any],
    ) -> InvocationReceipt:
        """Read-only invocation of ``abi_entry`` on ``address``.

        Returns:
            InvocationReceipt whose ``result`` maps output names to values.

        Raises:
            ChainError: If the call is rejected.
        """

    @abstractmethod
    async def tx(
        self,
        account: str,
        address: str,
        abi_entry: FunctionDescriptor,
        output_types: Sequence[str],
        params: Sequence[Any],
    ) -> InvocationReceipt:
        """State-changing invocation of ``abi_entry`` on ``address``.

        Returns:
            InvocationReceipt whose ``result`` maps output names to values.

        Raises:
            ChainError: If the transaction is rejected.
        """

    # =========================================================================
    # Optional Methods
    # =========================================================================

    async def validate(self) -> bool:
        """Check that the backend is reachable and configured."""
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider_name!r})"
