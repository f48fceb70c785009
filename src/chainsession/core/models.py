"""
chainsession.core.models - Core Data Models
=============================================

The Pydantic data models that flow through every layer of the session.

Model Hierarchy:
    AbiParameter / FunctionDescriptor → ABI shape (what can be called)
    RawArtifact                       → artifact document as produced by the compiler
    CompiledArtifact                  → registry entry (id, display name, abi, bytecode)
    DeployedInstance                  → CompiledArtifact bound to an address + derived state
    DeployReceipt / InvocationReceipt → what the chain interface returns
    TransactionRecord                 → one history entry per completed operation
    OperationResult                   → typed outcome of every public operation
    DeployRequest / InvokeRequest     → request messages accepted by ContractSession

Data Flow:
    artifact bytes ──parse──→ RawArtifact ──derive id──→ CompiledArtifact
                                                              │ deploy
                                                              ▼
    TransactionRecord ←── receipt ── chain ←── invoke ── DeployedInstance

Design Principles:
    1. Immutable by convention: models published to the SessionStore are
       never mutated; updates go through ``model_copy(update=...)``.
    2. Self-validating: malformed artifact documents fail closed with a
       validation error instead of being trusted structurally.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from chainsession.core.enums import ErrorKind, OperationKind, TxStatus


_HEX_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]*$")


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# ABI Models
# =============================================================================
# Only the parts of the ABI the session needs: names, kinds and the
# input/output type lists. This is not a general ABI decoder.
# =============================================================================
class AbiParameter(BaseModel):
    """A single typed input or output of an ABI entry.

    Attributes:
        name: Parameter name. Empty for unnamed outputs.
        type: Canonical ABI type string ("uint256", "address", "tuple", ...).
        internal_type: Compiler-specific type name (``internalType`` in JSON).
        components: Member parameters for tuple types.
    """

    name: str = Field(default="", description="Parameter name (may be empty)")
    type: str = Field(description="Canonical ABI type string")
    internal_type: Optional[str] = Field(
        default=None,
        alias="internalType",
        description="Compiler-specific type name",
    )
    components: list[AbiParameter] = Field(
        default_factory=list,
        description="Member parameters for tuple types",
    )

    model_config = {"populate_by_name": True, "extra": "ignore"}


class FunctionDescriptor(BaseModel):
    """One entry of a contract ABI.

    Attributes:
        type: Entry kind. Only "function" entries are invocable; the
            "constructor" entry supplies deploy-time parameter types.
        name: Function name (None for constructor/fallback/receive).
        inputs: Ordered input parameters.
        outputs: Ordered output parameters.
        state_mutability: "pure", "view", "nonpayable" or "payable".

    Example:
        >>> FunctionDescriptor.model_validate({
        ...     "type": "function", "name": "balanceOf",
        ...     "inputs": [{"name": "owner", "type": "address"}],
        ...     "outputs": [{"name": "", "type": "uint256"}],
        ...     "stateMutability": "view",
        ... })
    """

    type: Literal[
        "function", "constructor", "event", "fallback", "receive", "error"
    ] = Field(default="function", description="ABI entry kind")
    name: Optional[str] = Field(default=None, description="Entry name")
    inputs: list[AbiParameter] = Field(default_factory=list)
    outputs: list[AbiParameter] = Field(default_factory=list)
    state_mutability: Optional[str] = Field(
        default=None,
        alias="stateMutability",
        description="pure / view / nonpayable / payable",
    )

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def input_types(self) -> list[str]:
        """Input type strings, in declaration order."""
        return [p.type for p in self.inputs]

    @property
    def output_types(self) -> list[str]:
        """Output type strings, in declaration order."""
        return [p.type for p in self.outputs]

    @property
    def is_callable(self) -> bool:
        """True for entries that can be invoked with call/tx."""
        return self.type == "function"


# =============================================================================
# Raw Artifact
# =============================================================================
# The minimal artifact document the compiler writes. The session only ever
# reads this shape; it never writes artifact files.
# =============================================================================
class RawArtifact(BaseModel):
    """Minimal compiled-artifact document ``{contractName, abi, bytecode}``.

    Any other keys present in the document (sourceMap, metadata, ...) are
    ignored.
    """

    contract_name: str = Field(alias="contractName", min_length=1)
    abi: list[FunctionDescriptor]
    bytecode: str

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("bytecode")
    @classmethod
    def _bytecode_is_hex(cls, value: str) -> str:
        if not _HEX_PATTERN.match(value):
            raise ValueError("bytecode must be a hex string")
        return value


# =============================================================================
# Compiled Artifact
# =============================================================================
class CompiledArtifact(BaseModel):
    """A registry entry: one contract from one artifact source.

    Attributes:
        id: ``{source_id}/{contract_name}``. Stable across recompilation of
            the same source so deployed instances keyed by it survive reloads.
        name: Display name ``"{contract_name} - {parent}/{file}"``.
        contract_name: Declared contract name.
        source_id: Location the artifact was loaded from.
        abi: Callable functions and constructor.
        bytecode: Deployable bytecode as a hex string.
    """

    id: str = Field(description="Stable artifact identifier")
    name: str = Field(description="Human-readable display name")
    contract_name: str = Field(description="Declared contract name")
    source_id: str = Field(description="Artifact source location")
    abi: list[FunctionDescriptor] = Field(default_factory=list)
    bytecode: str = Field(default="", description="Hex-encoded bytecode")

    @classmethod
    def from_raw(cls, source_id: str, raw: RawArtifact) -> CompiledArtifact:
        """Build a registry entry from a parsed artifact document."""
        return cls(
            id=derive_artifact_id(source_id, raw.contract_name),
            name=display_name(source_id, raw.contract_name),
            contract_name=raw.contract_name,
            source_id=source_id,
            abi=raw.abi,
            bytecode=raw.bytecode,
        )

    def constructor(self) -> Optional[FunctionDescriptor]:
        """The ABI constructor entry, if the contract declares one."""
        return next((d for d in self.abi if d.type == "constructor"), None)

    @property
    def constructor_types(self) -> list[str]:
        """Constructor input types; empty when no constructor is declared."""
        ctor = self.constructor()
        return ctor.input_types if ctor else []

    def find_function(self, fn_name: str) -> Optional[FunctionDescriptor]:
        """First callable ABI entry named ``fn_name``."""
        return next(
            (d for d in self.abi if d.is_callable and d.name == fn_name),
            None,
        )

    @property
    def bytecode_bytes(self) -> bytes:
        """The bytecode decoded from hex."""
        code = self.bytecode[2:] if self.bytecode.startswith("0x") else self.bytecode
        return bytes.fromhex(code)


def derive_artifact_id(source_id: str, contract_name: str) -> str:
    """Artifact id: source location plus declared contract name."""
    return f"{source_id}/{contract_name}"


def display_name(source_id: str, contract_name: str) -> str:
    """Contract name plus the last two segments of the source path.

    >>> display_name("/ws/artifacts/Token.sol/Token.json", "Token")
    'Token - Token.sol/Token.json'
    """
    parts = PurePosixPath(source_id.replace("\\", "/")).parts
    short_path = "/".join(parts[-2:])
    return f"{contract_name} - {short_path}"


# =============================================================================
# Deployed Instance
# =============================================================================
class DeployedInstance(CompiledArtifact):
    """A compiled artifact bound to a deployed address.

    Attributes:
        address: On-chain address returned by the deploy.
        state: Function name → ordered outputs of the most recent invocation.
            Only functions invoked at least once with at least one
            non-internal output appear here.
    """

    address: str = Field(description="Deployed contract address")
    state: dict[str, list[Any]] = Field(
        default_factory=dict,
        description="Cached outputs of the latest invocation per function",
    )

    @classmethod
    def from_artifact(cls, artifact: CompiledArtifact, address: str) -> DeployedInstance:
        """Fresh instance with empty derived state."""
        return cls(
            id=artifact.id,
            name=artifact.name,
            contract_name=artifact.contract_name,
            source_id=artifact.source_id,
            abi=artifact.abi,
            bytecode=artifact.bytecode,
            address=address,
            state={},
        )

    def with_outputs(self, fn_name: str, outputs: list[Any]) -> DeployedInstance:
        """Copy with ``state[fn_name]`` replaced by ``outputs``."""
        return self.model_copy(update={"state": {**self.state, fn_name: list(outputs)}})

    def without_outputs(self, fn_name: str) -> DeployedInstance:
        """Copy with ``state[fn_name]`` removed."""
        state = {k: v for k, v in self.state.items() if k != fn_name}
        return self.model_copy(update={"state": state})


# =============================================================================
# Chain Receipts
# =============================================================================
class DeployReceipt(BaseModel):
    """Result of ChainInterface.deploy_contract()."""

    address: str
    cost: Union[int, float] = 0
    hash: str


class InvocationReceipt(BaseModel):
    """Result of ChainInterface.call() / ChainInterface.tx().

    ``result`` maps output names to decoded values, in output order.
    """

    cost: Union[int, float] = 0
    hash: str
    result: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Transaction Record
# =============================================================================
class TransactionRecord(BaseModel):
    """One entry in the append-only transaction history.

    Attributes:
        contract_name: Declared contract name of the target.
        from_address: Active account at the time of the operation.
        to_address: Deployed (or invoked) contract address.
        cost: Cost reported by the chain.
        hash: Transaction hash reported by the chain.
        status: SUCCESS for deploys and state-changing invocations,
            unset for pure reads.
        fn: Invoked function; None for deploys.
        kind: Which operation produced the record.
        completed_at: When the operation completed (UTC).

    ``model_dump(by_alias=True)`` yields the wire keys
    ``contract``/``from``/``to``; ``model_validate`` accepts either form.
    """

    model_config = {"populate_by_name": True}

    contract_name: str = Field(alias="contract")
    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    cost: Union[int, float] = 0
    hash: str
    status: Optional[TxStatus] = None
    fn: Optional[str] = None
    kind: OperationKind
    completed_at: datetime = Field(default_factory=_now)


# =============================================================================
# Operation Result
# =============================================================================
# Every public operation returns one of these instead of raising. The
# boundary layer (CLI/UI) decides how to surface failures; the error sink
# has already received the human-readable line.
# =============================================================================
class OperationResult(BaseModel):
    """Typed outcome of a public session operation.

    Attributes:
        ok: True if the operation completed.
        operation: Operation name ("deploy", "call", "tx", "artifact_loaded", ...).
        target_id: Artifact/instance id the operation targeted, if known.
        error_kind: Failure category when ok is False.
        message: Human-readable failure line when ok is False.
        record: The history record appended, for chain operations.
    """

    ok: bool
    operation: str
    target_id: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    record: Optional[TransactionRecord] = None

    @classmethod
    def success(
        cls,
        operation: str,
        target_id: Optional[str] = None,
        record: Optional[TransactionRecord] = None,
    ) -> OperationResult:
        return cls(ok=True, operation=operation, target_id=target_id, record=record)

    @classmethod
    def failure(
        cls,
        operation: str,
        error_kind: ErrorKind,
        message: str,
        target_id: Optional[str] = None,
    ) -> OperationResult:
        return cls(
            ok=False,
            operation=operation,
            target_id=target_id,
            error_kind=error_kind,
            message=message,
        )


# =============================================================================
# Request Messages
# =============================================================================
# The message shapes accepted by ContractSession: ``{"contract", "params"}``
# for deploys, ``{"id", "fn", "params"}`` for call/tx and ``{"id", "fn"}``
# for dispose_state.
# =============================================================================
class DeployRequest(BaseModel):
    """Deploy ``contract`` (artifact id or display name) with ``params``."""

    contract: str = Field(min_length=1)
    params: list[Any] = Field(default_factory=list)


class InvokeRequest(BaseModel):
    """Invoke ``fn`` on instance ``id`` with ``params``."""

    id: str = Field(min_length=1)
    fn: str = Field(min_length=1)
    params: list[Any] = Field(default_factory=list)


class DisposeStateRequest(BaseModel):
    id: str = Field(min_length=1)
    fn: str = Field(min_length=1)
