"""
chainsession.core.exceptions - Custom Exception Hierarchy
===========================================================

Structured exceptions for the contract session. Every exception carries a
machine-readable error code and a details dict in addition to the message.

Exception Hierarchy:
    SessionError (base)
        ├── ConfigurationError   - Invalid config, unknown chain provider
        ├── ArtifactParseError   - Malformed artifact notification payload
        ├── ResolutionError      - Unknown artifact/instance id or function name
        ├── ChainError           - Chain interface rejected a deploy/call/tx
        └── StoreError           - Invalid Session Store access

Error Handling Flow:
    Operation raises ResolutionError / ChainError
        → operation boundary catches it
        → reason written to the ErrorSink and made visible
        → OperationResult(ok=False, error_kind=...) returned to the caller

Usage:
    >>> raise ChainError(
    ...     message="deploy reverted",
    ...     reason="out of gas",
    ...     details={"artifact_id": "/ws/build/Token.json/Token"},
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
class SessionError(Exception):
    """Base exception for all chainsession errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable code, UPPER_SNAKE_CASE.
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary (for structured logs)."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(SessionError):
    """Raised when session configuration is invalid.

    Example:
        >>> raise ConfigurationError(
        ...     message="Unknown chain provider: 'geth'",
        ...     error_code="UNKNOWN_CHAIN_PROVIDER",
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Artifact Parse Error
# =============================================================================
# Fatal to the single notification that carried the payload, never to the
# registry as a whole.
# =============================================================================
class ArtifactParseError(SessionError):
    """Raised when an artifact payload does not match the minimal shape
    ``{contractName, abi, bytecode}``.

    Attributes:
        source_id: The source location the payload was loaded from.
    """

    def __init__(
        self,
        message: str,
        source_id: str,
        error_code: str = "ARTIFACT_PARSE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["source_id"] = source_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.source_id = source_id


# =============================================================================
# Resolution Error
# =============================================================================
class ResolutionError(SessionError):
    """Raised when a requested artifact id, instance id or function name has
    no matching entry.

    Attributes:
        target_id: The artifact or instance id that was looked up.
        fn: The function name, when resolving an ABI entry.
    """

    def __init__(
        self,
        message: str,
        target_id: str,
        fn: Optional[str] = None,
        error_code: str = "NOT_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["target_id"] = target_id
        if fn:
            enriched_details["fn"] = fn

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.target_id = target_id
        self.fn = fn


# =============================================================================
# Chain Error
# =============================================================================
class ChainError(SessionError):
    """Raised when the chain interface rejects a deploy, call or tx.

    Attributes:
        reason: Optional structured reason reported by the chain. When set,
            it is the line written to the error sink.
    """

    def __init__(
        self,
        message: str,
        reason: Optional[Any] = None,
        error_code: str = "CHAIN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if reason is not None:
            enriched_details["reason"] = reason

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.reason = reason


# =============================================================================
# Store Error
# =============================================================================
class StoreError(SessionError):
    """Raised on invalid Session Store access (e.g. an unknown field)."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)
