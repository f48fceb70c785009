"""
chainsession.integrations.chain - Chain Backends
==================================================

    - ChainInterface: abstract deploy / call / tx contract
    - MockChain:      scripted in-process backend (development and tests)
    - create_chain(): factory selecting a backend from ChainConfig
"""

from chainsession.integrations.chain.base import ChainInterface
from chainsession.integrations.chain.mock import MockChain
from chainsession.integrations.chain.factory import create_chain

__all__ = [
    "ChainInterface",
    "MockChain",
    "create_chain",
]
