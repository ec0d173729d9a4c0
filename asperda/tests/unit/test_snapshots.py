from __future__ import annotations

import asyncio

import pytest

from asperda.services.snapshots import LatestSnapshot


@pytest.mark.asyncio
async def test_stale_load_is_discarded() -> None:
    snapshot: LatestSnapshot[list[str]] = LatestSnapshot()
    release_slow = asyncio.Event()

    async def slow_fetch() -> list[str]:
        await release_slow.wait()
        return ["stale"]

    async def fast_fetch() -> list[str]:
        return ["fresh"]

    slow_task = asyncio.create_task(snapshot.load(slow_fetch))
    await asyncio.sleep(0)
    assert await snapshot.load(fast_fetch) == ["fresh"]
    release_slow.set()

    assert await slow_task is None
    assert snapshot.value == ["fresh"]
    assert snapshot.generation == 2


def test_abandon_invalidates_in_flight_generation() -> None:
    snapshot: LatestSnapshot[int] = LatestSnapshot()
    generation = snapshot.begin()
    snapshot.abandon()
    assert not snapshot.publish(generation, 1)
    assert snapshot.value is None
