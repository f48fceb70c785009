"""
chainsession.operations - Session Operations
==============================================

The actions the session performs on deployed contracts:
    - Deployer: artifact → live instance
    - Invoker:  call / tx on an instance, merging outputs into its state
    - Disposer: forget an instance or one function's cached outputs
"""

from chainsession.operations.base import SessionOperation, error_kind_for
from chainsession.operations.deployment import Deployer
from chainsession.operations.disposal import Disposer
from chainsession.operations.invocation import (
    Invoker,
    OutputFilter,
    internal_output_filter,
    public_outputs,
)

__all__ = [
    "SessionOperation",
    "error_kind_for",
    "Deployer",
    "Disposer",
    "Invoker",
    "OutputFilter",
    "internal_output_filter",
    "public_outputs",
]
