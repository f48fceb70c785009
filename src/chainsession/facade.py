"""
chainsession.facade - ContractSession Top-Level Facade
========================================================

The single entry point a UI, CLI or test drives. It wires every layer
together and exposes the message-style operations:

    ┌──────────────────────────────────────────────────┐
    │              ContractSession (Facade)             │
    │                                                   │
    │  on_artifact_loaded / deploy / call / tx /        │
    │  dispose / dispose_state / set_account            │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Operations Layer                      │ │
    │  │  Deployer, Invoker, Disposer                  │ │
    │  └─────────────────────┬───────────────────────┘ │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Orchestration Layer                   │ │
    │  │  SessionStore, KeyedSerializer,               │ │
    │  │  TransactionHistoryLog, EventStream, Sink     │ │
    │  └─────────────────────┬───────────────────────┘ │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │   Infrastructure / Integration Layer          │ │
    │  │  ArtifactRegistry, ChainInterface             │ │
    │  └─────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────┘

Every operation returns an OperationResult; none raises for an operational
failure. Failure lines go to the error sink as well.

Usage:
    >>> async with ContractSession(config) as session:
    ...     await session.on_artifact_loaded(source_id, payload)
    ...     await session.deploy({"contract": "Token - Token.sol/Token.json",
    ...                           "params": ["100"]})
    ...     await session.call({"id": artifact_id, "fn": "balanceOf",
    ...                         "params": ["0xme"]})
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

from chainsession.core.config import SessionConfig
from chainsession.core.enums import ErrorKind
from chainsession.core.exceptions import ArtifactParseError
from chainsession.core.logging_setup import configure_logging
from chainsession.core.models import (
    CompiledArtifact,
    DeployedInstance,
    DeployRequest,
    DisposeStateRequest,
    InvokeRequest,
    OperationResult,
    TransactionRecord,
)
from chainsession.infrastructure.artifact_registry import ArtifactRegistry, Payload
from chainsession.integrations.chain.base import ChainInterface
from chainsession.integrations.chain.factory import create_chain
from chainsession.operations.deployment import Deployer
from chainsession.operations.disposal import Disposer
from chainsession.operations.invocation import Invoker, OutputFilter, internal_output_filter
from chainsession.orchestration.error_sink import ErrorSink, LoggingErrorSink, report
from chainsession.orchestration.event_stream import TransactionCallback, TransactionEventStream
from chainsession.orchestration.history import TransactionHistoryLog
from chainsession.orchestration.serializer import KeyedSerializer
from chainsession.orchestration.session_store import SessionStore


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()

RequestT = TypeVar("RequestT", bound=BaseModel)
Message = Union[Mapping[str, Any], BaseModel]


class ContractSession:
    """Top-level facade for a contract development session.

    Lifecycle:
        1. ``ContractSession(config)``  - build all components
        2. ``await start()``            - apply the log level
        3. notifications and operations
        4. ``await close()``            - end the event stream, drain callbacks

    Attributes:
        _config: Session configuration.
        _chain: Chain backend (from config unless injected).
        _store: The shared Session Store.
        _registry: Artifact Registry feeding ``artifacts``.
        _events: Transaction event stream.
        _history: Append-and-emit history log.
        _sink: Error sink receiving failure lines.
        _deployer / _invoker / _disposer: The operations.
        _started: Whether start() has been called.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        *,
        chain: Optional[ChainInterface] = None,
        store: Optional[SessionStore] = None,
        sink: Optional[ErrorSink] = None,
        is_internal_output: Optional[OutputFilter] = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Session configuration. Defaults to SessionConfig(), which
                reads CHAINSESSION_* environment variables.
            chain: Optional chain backend. Defaults to create_chain(config.chain).
            store: Optional pre-built store. Defaults to an empty store
                using ``config.account``.
            sink: Optional error sink. Defaults to LoggingErrorSink.
            is_internal_output: Optional output-name predicate. Defaults to
                the ``config.internal_output_prefix`` filter.
        """
        # --- Configuration ---
        self._config = config or SessionConfig()

        # --- Integration / Orchestration ---
        self._chain = chain or create_chain(self._config.chain)
        self._store = store or SessionStore(account=self._config.account)
        self._sink = sink or LoggingErrorSink()
        self._events = TransactionEventStream()
        self._history = TransactionHistoryLog(self._store, self._events)

        # --- Infrastructure ---
        self._registry = ArtifactRegistry(self._store)

        # --- Operations ---
        # Deployer and Invoker share one serializer: same id → one queue.
        operations = KeyedSerializer("instances")
        self._deployer = Deployer(
            self._store, self._chain, self._history, self._sink, operations
        )
        self._invoker = Invoker(
            self._store,
            self._chain,
            self._history,
            self._sink,
            operations,
            is_internal=is_internal_output
            or internal_output_filter(self._config.internal_output_prefix),
        )
        self._disposer = Disposer(self._store)

        self._started = False
        self._logger = logger.bind(component="contract_session")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def chain(self) -> ChainInterface:
        return self._chain

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def registry(self) -> ArtifactRegistry:
        return self._registry

    @property
    def events(self) -> TransactionEventStream:
        """Push stream of TransactionRecords, in completion order."""
        return self._events

    @property
    def sink(self) -> ErrorSink:
        return self._sink

    @property
    def artifacts(self) -> Mapping[str, CompiledArtifact]:
        return self._store.artifacts

    @property
    def instances(self) -> Mapping[str, Optional[DeployedInstance]]:
        return self._store.instances

    @property
    def history(self) -> tuple[TransactionRecord, ...]:
        return self._store.history

    @property
    def account(self) -> str:
        return self._store.account

    @property
    def is_started(self) -> bool:
        return self._started

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> None:
        """Apply the configured log level. Idempotent."""
        if self._started:
            return
        configure_logging(self._config.log_level)
        self._started = True
        self._logger.info(
            "session_started",
            environment=self._config.environment,
            chain=self._chain.provider_name,
            account=self.account,
        )

    async def close(self) -> None:
        """End the event stream and wait for pending deliveries. Idempotent."""
        if not self._started:
            return
        self._events.close()
        await self._history.flush()
        self._started = False
        self._logger.info("session_closed", transactions=len(self._history))

    async def __aenter__(self) -> ContractSession:
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # Artifacts
    # =========================================================================

    async def on_artifact_loaded(self, source_id: str, payload: Payload) -> OperationResult:
        """Handle a compiler ``(source_id, bytes)`` notification."""
        try:
            artifact = await self._registry.on_artifact_loaded(source_id, payload)
        except ArtifactParseError as exc:
            return self._failure("artifact_loaded", ErrorKind.ARTIFACT_PARSE, exc, source_id)
        return OperationResult.success("artifact_loaded", target_id=artifact.id)

    async def load_artifact_file(self, path: Union[str, Path]) -> OperationResult:
        """Read an artifact from disk and register it."""
        try:
            artifact = await self._registry.load_file(path)
        except ArtifactParseError as exc:
            return self._failure("artifact_loaded", ErrorKind.ARTIFACT_PARSE, exc, exc.source_id)
        return OperationResult.success("artifact_loaded", target_id=artifact.id)

    # =========================================================================
    # Operations
    # =========================================================================

    async def deploy(self, message: Message) -> OperationResult:
        """Deploy ``{"contract": id_or_display_name, "params": [...]}``.

        The instance is stored under the resolved artifact id.
        """
        request = self._parse("deploy", DeployRequest, message)
        if isinstance(request, OperationResult):
            return request
        artifact_id = self._registry.resolve(request.contract) or request.contract
        return await self._deployer.deploy(artifact_id, request.params)

    async def call(self, message: Message) -> OperationResult:
        """Read-only invocation of ``{"id", "fn", "params"}``."""
        request = self._parse("call", InvokeRequest, message)
        if isinstance(request, OperationResult):
            return request
        return await self._invoker.call(request.id, request.fn, request.params)

    async def tx(self, message: Message) -> OperationResult:
        """State-changing invocation of ``{"id", "fn", "params"}``."""
        request = self._parse("tx", InvokeRequest, message)
        if isinstance(request, OperationResult):
            return request
        return await self._invoker.tx(request.id, request.fn, request.params)

    async def dispose(self, instance_id: str) -> OperationResult:
        return await self._disposer.dispose(instance_id)

    async def dispose_state(self, message: Message) -> OperationResult:
        """Drop the cached outputs named by ``{"id", "fn"}``."""
        request = self._parse("dispose_state", DisposeStateRequest, message)
        if isinstance(request, OperationResult):
            return request
        return await self._disposer.dispose_state(request.id, request.fn)

    async def set_account(self, account: str) -> None:
        """Change the account used as ``from`` by subsequent operations."""
        await self._store.set_account(account)
        self._logger.info("account_changed", account=account)

    def subscribe_transactions(self, callback: TransactionCallback) -> None:
        self._events.subscribe(callback)

    async def flush_events(self) -> None:
        """Wait until subscribers have received every recorded transaction."""
        await self._history.flush()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _parse(
        self,
        operation: str,
        model: type[RequestT],
        message: Message,
    ) -> Union[RequestT, OperationResult]:
        """Validate a request message, or build the failure result."""
        if isinstance(message, model):
            return message
        try:
            return model.model_validate(
                message.model_dump() if isinstance(message, BaseModel) else message
            )
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
                for err in exc.errors()
            )
            error = ValueError(f"Invalid {operation} request: {problems}")
            return self._failure(operation, ErrorKind.RESOLUTION, error, None)

    def _failure(
        self,
        operation: str,
        kind: ErrorKind,
        error: BaseException,
        target_id: Optional[str],
    ) -> OperationResult:
        line = report(self._sink, error)
        self._logger.warning(
            "operation_failed",
            operation=operation,
            target_id=target_id,
            error_kind=kind.value,
            error=line,
        )
        return OperationResult.failure(operation, kind, line, target_id=target_id)
