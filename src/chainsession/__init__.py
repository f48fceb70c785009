"""
chainsession - Contract Session Manager
=========================================

Session state for a smart-contract development tool: compiled artifacts
picked up from the compiler, contracts deployed from them, read-only calls
and state-changing transactions against deployed instances, and an
append-only history of every completed chain operation.

Architecture Layers (top to bottom):
    1. Facade               - ContractSession
    2. Operations Layer     - Deployer, Invoker, Disposer
    3. Orchestration Layer  - SessionStore, serializer, history, event stream
    4. Infrastructure Layer - ArtifactRegistry
    5. Integration Layer    - Chain interface (mock provider)

Quick Start:
    >>> from chainsession import ContractSession
    >>> async with ContractSession() as session:
    ...     await session.on_artifact_loaded(source_id, payload)
    ...     result = await session.deploy({"contract": artifact_id, "params": []})
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

# =============================================================================
# Package-Level Exports
# =============================================================================
# For specific components, import from submodules directly:
#   from chainsession.core.config import SessionConfig
#   from chainsession.integrations.chain.mock import MockChain
# =============================================================================
from chainsession.facade import ContractSession

__all__ = ["ContractSession", "__version__"]
