"""
chainsession.orchestration - Session Orchestration Layer
==========================================================

Shared state and coordination primitives used by the operations layer:

    - SessionStore:            copy-on-write source of truth with field observers
    - KeyedSerializer:         per-instance-id execution queues
    - TransactionEventStream:  push-based stream of new history records
    - TransactionHistoryLog:   append-only history (store + stream)
    - ErrorSink:               output channel for failure lines
"""

from chainsession.orchestration.error_sink import (
    CollectingErrorSink,
    ErrorSink,
    LoggingErrorSink,
    report,
)
from chainsession.orchestration.event_stream import TransactionEventStream
from chainsession.orchestration.history import TransactionHistoryLog
from chainsession.orchestration.serializer import KeyedSerializer
from chainsession.orchestration.session_store import SessionStore

__all__ = [
    "SessionStore",
    "KeyedSerializer",
    "TransactionEventStream",
    "TransactionHistoryLog",
    "ErrorSink",
    "LoggingErrorSink",
    "CollectingErrorSink",
    "report",
]
