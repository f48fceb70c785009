"""
chainsession.core - Foundation Layer
======================================

Plain data structures and configuration shared by every other layer:

    - config:        SessionConfig, ChainConfig, load_config()
    - enums:         TxStatus, OperationKind, ErrorKind, StoreField
    - exceptions:    SessionError hierarchy
    - models:        ABI, artifact, instance, receipt and history models
    - logging_setup: configure_logging()

Dependency Rule:
    core/ depends on NOTHING else in the chainsession package.
"""

from chainsession.core.config import ChainConfig, SessionConfig, load_config
from chainsession.core.enums import ErrorKind, OperationKind, StoreField, TxStatus
from chainsession.core.exceptions import (
    ArtifactParseError,
    ChainError,
    ConfigurationError,
    ResolutionError,
    SessionError,
    StoreError,
)
from chainsession.core.models import (
    AbiParameter,
    CompiledArtifact,
    DeployedInstance,
    DeployReceipt,
    DeployRequest,
    DisposeStateRequest,
    FunctionDescriptor,
    InvocationReceipt,
    InvokeRequest,
    OperationResult,
    RawArtifact,
    TransactionRecord,
)

__all__ = [
    # Config
    "SessionConfig",
    "ChainConfig",
    "load_config",
    # Enums
    "TxStatus",
    "OperationKind",
    "ErrorKind",
    "StoreField",
    # Models
    "AbiParameter",
    "FunctionDescriptor",
    "RawArtifact",
    "CompiledArtifact",
    "DeployedInstance",
    "DeployReceipt",
    "InvocationReceipt",
    "TransactionRecord",
    "OperationResult",
    "DeployRequest",
    "InvokeRequest",
    "DisposeStateRequest",
    # Exceptions
    "SessionError",
    "ConfigurationError",
    "ArtifactParseError",
    "ResolutionError",
    "ChainError",
    "StoreError",
]
