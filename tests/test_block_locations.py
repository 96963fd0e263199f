import asyncio

import pytest

from gridsched.services.block_locations import InMemoryBlockLocationService


def test_locate_blocks_returns_overlapping_blocks():
    async def scenario():
        service = InMemoryBlockLocationService()
        await service.create_file("/f", 250, ["a", "b"], block_size=100)
        return (
            await service.locate_blocks("/f", 0, 250),
            await service.locate_blocks("/f", 150, 10),
            await service.locate_blocks("/f", 200, 0),
        )

    whole, middle, at_tail = asyncio.run(scenario())
    assert [(b.offset, b.length) for b in whole] == [(0, 100), (100, 100), (200, 50)]
    assert [(b.offset, b.length) for b in middle] == [(100, 100)]
    assert [(b.offset, b.length) for b in at_tail] == [(200, 50)]
    assert whole[0].hosts == ["a", "b"]


def test_unknown_file_raises():
    service = InMemoryBlockLocationService()
    with pytest.raises(FileNotFoundError):
        asyncio.run(service.get_file_status("/missing"))


def test_wait_for_replication_is_woken_by_new_replicas():
    async def scenario():
        service = InMemoryBlockLocationService()
        await service.create_file("/f", 10, ["a"])
        waiter = asyncio.ensure_future(service.wait_for_replication("/f", 3, timeout=5))
        await asyncio.sleep(0)
        assert not waiter.done()
        await service.add_replica("/f", "b")
        await asyncio.sleep(0)
        assert not waiter.done()
        await service.add_replica("/f", "c")
        return await waiter, service.replication_of("/f")

    reached, replication = asyncio.run(scenario())
    assert reached is True
    assert replication == 3


def test_wait_for_replication_of_a_file_created_later():
    async def scenario():
        service = InMemoryBlockLocationService()
        waiter = asyncio.ensure_future(service.wait_for_replication("/late", 1, timeout=5))
        await asyncio.sleep(0)
        await service.create_file("/late", 10, ["a"])
        return await waiter

    assert asyncio.run(scenario()) is True


def test_wait_for_replication_times_out():
    async def scenario():
        service = InMemoryBlockLocationService()
        await service.create_file("/f", 10, ["a"])
        return await service.wait_for_replication("/f", 2, timeout=0.05)

    assert asyncio.run(scenario()) is False


def test_adding_an_existing_replica_is_a_no_op():
    async def scenario():
        service = InMemoryBlockLocationService()
        await service.create_file("/f", 10, ["a"])
        await service.add_replica("/f", "a")
        return service.replication_of("/f")

    assert asyncio.run(scenario()) == 1
