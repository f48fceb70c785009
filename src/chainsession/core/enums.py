"""
chainsession.core.enums - Type-Safe Enumerations
==================================================

All enums inherit from both `str` and `Enum`, so they serialize to plain
strings in JSON/YAML and compare equal to their string values:

    >>> TxStatus.SUCCESS == "success"
    True
"""

from enum import Enum


# =============================================================================
# Transaction Status
# =============================================================================
# Set on history records for deploys and state-changing invocations.
# Pure reads (call) leave the status unset.
# =============================================================================
class TxStatus(str, Enum):
    """Outcome recorded on a transaction history entry."""

    SUCCESS = "success"
    ERROR = "error"


# =============================================================================
# Operation Kind
# =============================================================================
class OperationKind(str, Enum):
    """The three chain operations the session performs.

    DEPLOY: bytecode deployment producing a new address.
    CALL:   read-only invocation (no on-chain effect).
    TX:     state-changing invocation.
    """

    DEPLOY = "deploy"
    CALL = "call"
    TX = "tx"


# =============================================================================
# Error Kind
# =============================================================================
# The failure taxonomy every public operation reports through
# OperationResult.error_kind.
# =============================================================================
class ErrorKind(str, Enum):
    """Category of a failed operation."""

    ARTIFACT_PARSE = "artifact_parse"   # Malformed artifact notification payload
    RESOLUTION = "resolution"           # Unknown artifact/instance id or function
    CHAIN = "chain"                     # Chain interface rejected or raised
    INTERNAL = "internal"               # Unexpected error inside the session itself


# =============================================================================
# Store Field
# =============================================================================
class StoreField(str, Enum):
    """Top-level fields of the SessionStore.

    Each field is replaced as a whole on every mutation; observers
    subscribe per field.
    """

    ARTIFACTS = "artifacts"
    INSTANCES = "instances"
    HISTORY = "history"
    ACCOUNT = "account"
