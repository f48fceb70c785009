"""
Tests for chainsession.orchestration.serializer
=================================================

Same key → strictly one after another, in arrival order.
Different keys → concurrent.
"""

import asyncio

from chainsession.orchestration.serializer import KeyedSerializer


class TestKeyedSerializer:

    async def test_same_key_runs_sequentially(self) -> None:
        serializer = KeyedSerializer()
        events: list[str] = []

        async def job(name: str) -> None:
            async with serializer.hold("a"):
                events.append(f"{name}:start")
                await asyncio.sleep(0.01)
                events.append(f"{name}:end")

        await asyncio.gather(job("one"), job("two"), job("three"))

        assert events == [
            "one:start", "one:end",
            "two:start", "two:end",
            "three:start", "three:end",
        ]

    async def test_different_keys_overlap(self) -> None:
        serializer = KeyedSerializer()
        gate = asyncio.Event()
        inside: set[str] = set()

        async def job(key: str) -> None:
            async with serializer.hold(key):
                inside.add(key)
                await gate.wait()

        tasks = [asyncio.create_task(job("a")), asyncio.create_task(job("b"))]
        await asyncio.sleep(0.01)

        assert inside == {"a", "b"}
        gate.set()
        await asyncio.gather(*tasks)

    async def test_pending_and_cleanup(self) -> None:
        serializer = KeyedSerializer()
        gate = asyncio.Event()

        async def job() -> None:
            async with serializer.hold("a"):
                await gate.wait()

        tasks = [asyncio.create_task(job()) for _ in range(3)]
        await asyncio.sleep(0.01)

        assert serializer.pending("a") == 3
        assert serializer.is_busy("a")
        assert serializer.active_keys == ["a"]

        gate.set()
        await asyncio.gather(*tasks)

        assert serializer.pending("a") == 0
        assert serializer.active_keys == []

    async def test_lock_released_on_error(self) -> None:
        serializer = KeyedSerializer()

        try:
            async with serializer.hold("a"):
                raise ValueError("boom")
        except ValueError:
            pass

        async with serializer.hold("a"):
            assert serializer.pending("a") == 1
