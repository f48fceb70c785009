"""
chainsession.integrations.chain.mock - Mock Chain Backend
===========================================================

An in-process ChainInterface for development and testing. No node, no
network: responses come from per-method queues or deterministic defaults.

Features:
    - **Response queues**: queue_deploy() / queue_call() / queue_tx() return
      scripted receipts (or failures) in FIFO order.
    - **Function results**: set_function_result("balanceOf", {...}) sets the
      default ``result`` for invocations of a function.
    - **Failure simulation**: fail_next(reason) / set_failure(reason).
    - **Gate**: hold() suspends every call until release(), so tests can keep
      several operations in flight at once.
    - **Call history**: every request is recorded for assertions, and the
      peak number of concurrent calls per address is tracked.

Usage:
    >>> chain = MockChain()
    >>> chain.queue_deploy(address="0xABC", cost=21000, hash="0xdeadbeef")
    >>> receipt = await chain.deploy_contract("0xme", "0x6080", ["uint256"], ["100"])
    >>> receipt.address
    '0xABC'
"""

from __future__ import annotations

import asyncio
import hashlib
from collections import deque
from collections.abc import Sequence
from typing import Any, Optional, Union

import structlog

from chainsession.core.config import ChainConfig
from chainsession.core.exceptions import ChainError
from chainsession.core.models import DeployReceipt, FunctionDescriptor, InvocationReceipt
from chainsession.integrations.chain.base import ChainInterface

logger = structlog.get_logger()

DEFAULT_DEPLOY_COST = 21000
DEFAULT_CALL_COST = 0
DEFAULT_TX_COST = 21000

_Scripted = Union[DeployReceipt, InvocationReceipt, BaseException]


class MockChain(ChainInterface):
    """Scripted chain backend.

    Attributes:
        _queues: FIFO of scripted responses per method ("deploy", "call", "tx").
        _function_results: Default ``result`` per function name.
        _call_history: Every request received, oldest first.
        _gate: Calls wait on this event; cleared by hold().
        _in_flight: Currently executing calls per address.
        _peak_in_flight: Highest concurrent call count seen per address.
    """

    def __init__(self, config: Optional[ChainConfig] = None) -> None:
        super().__init__(config or ChainConfig(provider="mock"))

        self._queues: dict[str, deque[_Scripted]] = {
            "deploy": deque(),
            "call": deque(),
            "tx": deque(),
        }
        self._function_results: dict[str, dict[str, Any]] = {}
        self._call_history: list[dict[str, Any]] = []

        self._failure: Optional[str] = None
        self._fail_next: deque[str] = deque()

        self._gate = asyncio.Event()
        self._gate.set()

        self._in_flight: dict[str, int] = {}
        self._peak_in_flight: dict[str, int] = {}
        self._counter: int = 0

        self._logger = logger.bind(component="mock_chain")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    def calls_for(self, method: str) -> list[dict[str, Any]]:
        """Recorded requests for one method ("deploy", "call" or "tx")."""
        return [c for c in self._call_history if c["method"] == method]

    def peak_in_flight(self, address: str) -> int:
        """Most calls ever executing at once against ``address``."""
        return self._peak_in_flight.get(address, 0)

    @property
    def in_flight(self) -> int:
        """Calls currently suspended (at the gate or in flight)."""
        return sum(self._in_flight.values())

    # =========================================================================
    # Scripting
    # =========================================================================

    def queue_deploy(
        self,
        address: Optional[str] = None,
        cost: Union[int, float] = DEFAULT_DEPLOY_COST,
        hash: Optional[str] = None,
    ) -> None:
        """Script the next deploy receipt."""
        self._queues["deploy"].append(
            DeployReceipt(
                address=address or self._next_address(),
                cost=cost,
                hash=hash or self._next_hash(),
            )
        )

    def queue_call(
        self,
        result: Optional[dict[str, Any]] = None,
        cost: Union[int, float] = DEFAULT_CALL_COST,
        hash: Optional[str] = None,
    ) -> None:
        """Script the next call receipt."""
        self._queues["call"].append(
            InvocationReceipt(cost=cost, hash=hash or self._next_hash(), result=result or {})
        )

    def queue_tx(
        self,
        result: Optional[dict[str, Any]] = None,
        cost: Union[int, float] = DEFAULT_TX_COST,
        hash: Optional[str] = None,
    ) -> None:
        """Script the next tx receipt."""
        self._queues["tx"].append(
            InvocationReceipt(cost=cost, hash=hash or self._next_hash(), result=result or {})
        )

    def queue_failure(self, method: str, error: Union[str, BaseException]) -> None:
        """Script the next ``method`` call to raise.

        A string is wrapped in ChainError with that reason.
        """
        if isinstance(error, str):
            error = ChainError(message=f"{method} failed", reason=error)
        self._queues[method].append(error)

    def set_function_result(self, fn_name: str, result: dict[str, Any]) -> None:
        """Default ``result`` for call/tx of ``fn_name`` when nothing is queued."""
        self._function_results[fn_name] = dict(result)

    def fail_next(self, reason: str) -> None:
        """Make the next request of any method fail with ``reason``."""
        self._fail_next.append(reason)

    def set_failure(self, reason: Optional[str]) -> None:
        """Fail every request with ``reason`` until reset with None."""
        self._failure = reason

    def hold(self) -> None:
        """Suspend all subsequent calls until release()."""
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    def reset(self) -> None:
        for queue in self._queues.values():
            queue.clear()
        self._function_results.clear()
        self._call_history.clear()
        self._fail_next.clear()
        self._failure = None
        self._gate.set()

    # =========================================================================
    # ChainInterface
    # =========================================================================

    async def deploy_contract(
        self,
        account: str,
        bytecode: str,
        constructor_types: Sequence[str],
        params: Sequence[Any],
    ) -> DeployReceipt:
        await self._enter(
            "deploy",
            "",
            account=account,
            bytecode=bytecode,
            constructor_types=list(constructor_types),
            params=list(params),
        )
        try:
            if len(constructor_types) != len(params):
                raise ChainError(
                    message="constructor argument count mismatch",
                    reason=(
                        f"expected {len(constructor_types)} constructor argument(s), "
                        f"got {len(params)}"
                    ),
                )
            scripted = self._take("deploy")
            receipt = scripted if scripted is not None else DeployReceipt(
                address=self._next_address(),
                cost=DEFAULT_DEPLOY_COST,
                hash=self._next_hash(),
            )
        finally:
            self._leave("")

        self._logger.debug("mock_deploy", address=receipt.address, hash=receipt.hash)
        return receipt

    async def call(
        self,
        account: str,
        address: str,
        abi_entry: FunctionDescriptor,
        output_types: Sequence[str],
        params: Sequence[Any],
    ) -> InvocationReceipt:
        return await self._invoke("call", account, address, abi_entry, output_types, params)

    async def tx(
        self,
        account: str,
        address: str,
        abi_entry: FunctionDescriptor,
        output_types: Sequence[str],
        params: Sequence[Any],
    ) -> InvocationReceipt:
        return await self._invoke("tx", account, address, abi_entry, output_types, params)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _invoke(
        self,
        method: str,
        account: str,
        address: str,
        abi_entry: FunctionDescriptor,
        output_types: Sequence[str],
        params: Sequence[Any],
    ) -> InvocationReceipt:
        await self._enter(
            method,
            address,
            account=account,
            address=address,
            fn=abi_entry.name,
            output_types=list(output_types),
            params=list(params),
        )
        try:
            scripted = self._take(method)
            if scripted is None:
                default_cost = DEFAULT_TX_COST if method == "tx" else DEFAULT_CALL_COST
                scripted = InvocationReceipt(
                    cost=default_cost,
                    hash=self._next_hash(),
                    result=dict(self._function_results.get(abi_entry.name or "", {})),
                )
        finally:
            self._leave(address)

        self._logger.debug("mock_invoke", method=method, fn=abi_entry.name, address=address)
        return scripted

    async def _enter(self, method: str, in_flight_key: str, **request: Any) -> None:
        self._call_history.append({"method": method, **request})
        self._in_flight[in_flight_key] = self._in_flight.get(in_flight_key, 0) + 1
        self._peak_in_flight[in_flight_key] = max(
            self._peak_in_flight.get(in_flight_key, 0), self._in_flight[in_flight_key]
        )
        # Always suspend at least once, like a real network round-trip.
        await asyncio.sleep(0)
        await self._gate.wait()

    def _leave(self, in_flight_key: str) -> None:
        self._in_flight[in_flight_key] -= 1

    def _take(self, method: str) -> Any:
        """Next scripted response for ``method``, raising scripted failures."""
        if self._fail_next:
            reason = self._fail_next.popleft()
            raise ChainError(message=f"{method} failed", reason=reason)
        if self._failure is not None:
            raise ChainError(message=f"{method} failed", reason=self._failure)

        queue = self._queues[method]
        if not queue:
            return None
        scripted = queue.popleft()
        if isinstance(scripted, BaseException):
            raise scripted
        return scripted

    def _next_address(self) -> str:
        self._counter += 1
        return "0x" + hashlib.sha256(f"address:{self._counter}".encode()).hexdigest()[:40]

    def _next_hash(self) -> str:
        self._counter += 1
        return "0x" + hashlib.sha256(f"tx:{self._counter}".encode()).hexdigest()
