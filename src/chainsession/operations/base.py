"""
chainsession.operations.base - Shared Operation Boundary
==========================================================

Deploy, call and tx share one execution skeleton:

    run(operation, target_id, body)
        │
        ├── 1. wait for the target id's queue (KeyedSerializer)
        ├── 2. body(): resolve → chain request → commit to the store
        │
        ├── success → OperationResult(ok=True, record=...)
        └── failure → reason written to the ErrorSink and shown
                      OperationResult(ok=False, error_kind=...)

Nothing raised inside ``body`` reaches the caller. A body only commits
after its chain request succeeded, so a failed operation leaves the store
exactly as it found it. There is no retry.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from chainsession.core.enums import ErrorKind
from chainsession.core.exceptions import (
    ArtifactParseError,
    ChainError,
    ResolutionError,
    SessionError,
)
from chainsession.core.models import OperationResult, TransactionRecord
from chainsession.integrations.chain.base import ChainInterface
from chainsession.orchestration.error_sink import ErrorSink, report
from chainsession.orchestration.history import TransactionHistoryLog
from chainsession.orchestration.serializer import KeyedSerializer
from chainsession.orchestration.session_store import SessionStore

logger = structlog.get_logger()

T = TypeVar("T")


def error_kind_for(error: BaseException) -> ErrorKind:
    """Map an exception onto the failure taxonomy."""
    if isinstance(error, ArtifactParseError):
        return ErrorKind.ARTIFACT_PARSE
    if isinstance(error, ResolutionError):
        return ErrorKind.RESOLUTION
    if isinstance(error, ChainError):
        return ErrorKind.CHAIN
    return ErrorKind.INTERNAL


class SessionOperation:
    """Base class for operations that talk to the chain.

    Attributes:
        _store: Shared Session Store.
        _chain: Chain backend.
        _history: Transaction history log.
        _sink: Where failure lines go.
        _serializer: Per-instance-id queues. Deployer and Invoker must share
            one so that deploys and invocations of the same id are ordered.
    """

    def __init__(
        self,
        store: SessionStore,
        chain: ChainInterface,
        history: TransactionHistoryLog,
        sink: ErrorSink,
        serializer: KeyedSerializer,
    ) -> None:
        self._store = store
        self._chain = chain
        self._history = history
        self._sink = sink
        self._serializer = serializer
        self._logger = logger.bind(component=self.__class__.__name__.lower())

    async def run(
        self,
        operation: str,
        target_id: str,
        body: Callable[[], Awaitable[TransactionRecord]],
    ) -> OperationResult:
        """Execute ``body`` exclusively for ``target_id`` and catch all failures."""
        async with self._serializer.hold(target_id):
            try:
                record = await body()
            except SessionError as exc:
                return self.fail(operation, target_id, exc)
            except Exception as exc:
                self._logger.exception(
                    "operation_internal_error",
                    operation=operation,
                    target_id=target_id,
                )
                return self.fail(operation, target_id, exc)

        return OperationResult.success(operation, target_id=target_id, record=record)

    def fail(
        self,
        operation: str,
        target_id: str,
        error: BaseException,
    ) -> OperationResult:
        """Report ``error`` to the sink and build the failure result."""
        kind = error_kind_for(error)
        line = report(self._sink, error)
        self._logger.warning(
            "operation_failed",
            operation=operation,
            target_id=target_id,
            error_kind=kind.value,
            error=line,
        )
        return OperationResult.failure(operation, kind, line, target_id=target_id)

    async def chain_request(self, request: Callable[[], Awaitable[T]]) -> T:
        """Await a chain request, normalising any failure into ChainError."""
        try:
            return await request()
        except ChainError:
            raise
        except Exception as exc:
            raise ChainError(
                message=str(exc) or type(exc).__name__,
                reason=getattr(exc, "reason", None),
                details={"error_type": type(exc).__name__},
            ) from exc
