"""
Shared Test Fixtures for chainsession
=======================================

Reusable pytest fixtures, organized by layer:

    1. Configuration fixtures
    2. Artifact payload fixtures
    3. Orchestration fixtures (SessionStore, stream, history, sink)
    4. Integration fixtures (MockChain)
    5. Operation fixtures (Deployer, Invoker, Disposer)
    6. Facade fixtures (ContractSession)
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from chainsession.core.config import SessionConfig
from chainsession.facade import ContractSession
from chainsession.infrastructure.artifact_registry import ArtifactRegistry
from chainsession.integrations.chain.mock import MockChain
from chainsession.operations.deployment import Deployer
from chainsession.operations.disposal import Disposer
from chainsession.operations.invocation import Invoker
from chainsession.orchestration.error_sink import CollectingErrorSink
from chainsession.orchestration.event_stream import TransactionEventStream
from chainsession.orchestration.history import TransactionHistoryLog
from chainsession.orchestration.serializer import KeyedSerializer
from chainsession.orchestration.session_store import SessionStore

ACCOUNT = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
TOKEN_SOURCE = "/ws/build/Token.sol/Token.json"
TOKEN_ID = f"{TOKEN_SOURCE}/Token"
COUNTER_SOURCE = "/ws/build/Counter.sol/Counter.json"
COUNTER_ID = f"{COUNTER_SOURCE}/Counter"


# =============================================================================
# Artifact Payloads
# =============================================================================

def token_document() -> dict[str, Any]:
    """ERC20-ish artifact with a one-argument constructor."""
    return {
        "contractName": "Token",
        "abi": [
            {
                "type": "constructor",
                "inputs": [{"name": "supply", "type": "uint256"}],
                "stateMutability": "nonpayable",
            },
            {
                "type": "function",
                "name": "balanceOf",
                "inputs": [{"name": "owner", "type": "address"}],
                "outputs": [{"name": "", "type": "uint256"}],
                "stateMutability": "view",
            },
            {
                "type": "function",
                "name": "transfer",
                "inputs": [
                    {"name": "to", "type": "address"},
                    {"name": "amount", "type": "uint256"},
                ],
                "outputs": [{"name": "ok", "type": "bool"}],
                "stateMutability": "nonpayable",
            },
            {
                "type": "function",
                "name": "approve",
                "inputs": [
                    {"name": "spender", "type": "address"},
                    {"name": "amount", "type": "uint256"},
                ],
                "outputs": [{"name": "ok", "type": "bool"}],
                "stateMutability": "nonpayable",
            },
            {
                "type": "event",
                "name": "Transfer",
                "inputs": [],
            },
        ],
        "bytecode": "0x6080604052",
        "sourceMap": "1:2:3",
    }


def counter_document() -> dict[str, Any]:
    """Artifact without a constructor."""
    return {
        "contractName": "Counter",
        "abi": [
            {
                "type": "function",
                "name": "count",
                "inputs": [],
                "outputs": [{"name": "", "type": "uint256"}],
                "stateMutability": "view",
            },
            {
                "type": "function",
                "name": "increment",
                "inputs": [],
                "outputs": [],
                "stateMutability": "nonpayable",
            },
        ],
        "bytecode": "6080",
    }


def encode(document: dict[str, Any]) -> bytes:
    return json.dumps(document).encode()


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """SessionConfig with a fixed account and the mock chain."""
    return SessionConfig(account=ACCOUNT)


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
def store():
    """Empty SessionStore using the test account."""
    return SessionStore(account=ACCOUNT)


@pytest.fixture
def stream():
    return TransactionEventStream()


@pytest.fixture
def history(store, stream):
    return TransactionHistoryLog(store, stream)


@pytest.fixture
def sink():
    """In-memory error sink."""
    return CollectingErrorSink()


@pytest.fixture
def serializer():
    return KeyedSerializer("test")


# =============================================================================
# Integration
# =============================================================================

@pytest.fixture
def chain():
    """Fresh MockChain with no scripted responses."""
    return MockChain()


# =============================================================================
# Infrastructure / Operations
# =============================================================================

@pytest.fixture
def registry(store):
    return ArtifactRegistry(store)


@pytest.fixture
def deployer(store, chain, history, sink, serializer):
    return Deployer(store, chain, history, sink, serializer)


@pytest.fixture
def invoker(store, chain, history, sink, serializer):
    return Invoker(store, chain, history, sink, serializer)


@pytest.fixture
def disposer(store):
    return Disposer(store)


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
async def session(config, chain, sink):
    """Started ContractSession wired to the mock chain and collecting sink."""
    async with ContractSession(config, chain=chain, sink=sink) as s:
        yield s
