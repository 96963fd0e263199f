import asyncio

import pytest

from gridsched.core.input_format import NonSplittableFileInputFormat
from gridsched.core.split_index import SplitLocationIndex
from gridsched.core.topology import TopologyResolver
from gridsched.models.split import Split
from gridsched.services.block_locations import InMemoryBlockLocationService

RACK1_HOST = "host1.rack1.com"
RACK2_HOSTS = ["host1.rack2.com", "host2.rack2.com"]
RACK1_SPARE_HOST = "host3.rack1.com"
INPUT_DIR = "/racktesting"


@pytest.fixture
def topology():
    return TopologyResolver({
        RACK1_HOST: "/r1",
        RACK1_SPARE_HOST: "/r1",
        RACK2_HOSTS[0]: "/r2",
        RACK2_HOSTS[1]: "/r2",
    })


async def _write_racktesting_files(service: InMemoryBlockLocationService):
    # file1 is written while only the rack1 datanode is up, with one replica.
    await service.create_file(f"{INPUT_DIR}/file1", 100, [RACK1_HOST])

    # file2 and file3 are written once the rack2 datanodes joined, with three replicas.
    for name in ("file2", "file3"):
        path = f"{INPUT_DIR}/{name}"
        await service.create_file(path, 100, [RACK1_HOST])
        waiter = asyncio.ensure_future(service.wait_for_replication(path, 3, timeout=5))
        for host in RACK2_HOSTS:
            await service.add_replica(path, host)
        assert await waiter


@pytest.fixture
def block_service():
    service = InMemoryBlockLocationService()
    asyncio.run(_write_racktesting_files(service))
    return service


@pytest.fixture
def racktesting_index(block_service):
    input_format = NonSplittableFileInputFormat(
        [f"{INPUT_DIR}/file3", f"{INPUT_DIR}/file1", f"{INPUT_DIR}/file2"],
        block_service
    )
    return asyncio.run(SplitLocationIndex.build(input_format, 3))


def make_splits(*host_lists):
    return [
        Split(index=i, path=f"/data/part-{i:05d}", offset=0, length=100, hosts=list(hosts))
        for i, hosts in enumerate(host_lists)
    ]
