"""
Token Session Example - Compile, Deploy, Call, Transact
=========================================================

Drives a ContractSession against the in-process mock chain:

    1. the compiler reports a Token artifact
    2. deploy it with an initial supply
    3. read a balance (call) and send a transfer (tx)
    4. print the cached state and the transaction history

Usage:
    python examples/token_session.py
"""

from __future__ import annotations

import asyncio
import json

from chainsession.core.config import SessionConfig
from chainsession.facade import ContractSession
from chainsession.integrations.chain.mock import MockChain
from chainsession.orchestration.error_sink import CollectingErrorSink

ACCOUNT = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
SOURCE_ID = "/workspace/artifacts/Token.sol/Token.json"

TOKEN_ARTIFACT = {
    "contractName": "Token",
    "abi": [
        {
            "type": "constructor",
            "inputs": [{"name": "supply", "type": "uint256"}],
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
    ],
    "bytecode": "0x6080604052",
}


async def main() -> None:
    """Run one short session and print what it recorded."""
    chain = MockChain()
    chain.queue_deploy(address="0xABC", cost=21000, hash="0xdeadbeef")
    chain.set_function_result("balanceOf", {"0": 1000})
    chain.set_function_result("transfer", {"ok": True, "_gasUsed": 34000})

    sink = CollectingErrorSink()
    config = SessionConfig(account=ACCOUNT)

    async with ContractSession(config, chain=chain, sink=sink) as session:

        async def on_transaction(record) -> None:
            print(f"  -> {record.kind.value:6} {record.contract_name}.{record.fn or '<deploy>'}")

        session.subscribe_transactions(on_transaction)

        loaded = await session.on_artifact_loaded(
            SOURCE_ID, json.dumps(TOKEN_ARTIFACT).encode()
        )
        artifact_id = loaded.target_id

        print("Token Session")
        print("-" * 40)
        await session.deploy({"contract": "Token - Token.sol/Token.json", "params": ["1000"]})
        await session.call({"id": artifact_id, "fn": "balanceOf", "params": [ACCOUNT]})
        await session.tx({"id": artifact_id, "fn": "transfer", "params": ["0xdef", 10]})
        failed = await session.call({"id": artifact_id, "fn": "mint", "params": []})
        await session.flush_events()

        instance = session.instances[artifact_id]
        print()
        print(f"Address  : {instance.address}")
        print(f"State    : {instance.state}")
        print(f"History  : {len(session.history)} record(s)")
        for record in session.history:
            print(f"  {json.dumps(record.model_dump(by_alias=True, mode='json', exclude={'completed_at'}))}")
        print(f"Failure  : {failed.error_kind.value} ({sink.lines[-1]})")


if __name__ == "__main__":
    asyncio.run(main())
