from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import asyncio
import math

from gridsched.models.split import BlockLocation, FileStatus
from gridsched.utils.logger import get_logger


class BlockLocationService(ABC):
    """
    Interface to the distributed storage layer that knows where the
    replicas of each block live.
    """

    @abstractmethod
    async def get_file_status(self, path: str) -> FileStatus:
        """
        Return length and block size of a file.

        Raises:
            FileNotFoundError: If the path is unknown.
        """

    @abstractmethod
    async def locate_blocks(self, path: str, offset: int, length: int) -> List[BlockLocation]:
        """
        Return the blocks overlapping `[offset, offset + length)` in file order.

        Raises:
            FileNotFoundError: If the path is unknown.
        """


class _StoredFile:
    def __init__(self, length: int, block_size: int, hosts: List[str]):
        self.length = length
        self.block_size = block_size
        num_blocks = math.ceil(length / block_size) if length else 0
        self.blocks: List[List[str]] = [list(hosts) for _ in range(num_blocks)]


class InMemoryBlockLocationService(BlockLocationService):
    """
    Block-location service backed by a dictionary.

    Replica changes wake up coroutines blocked in `wait_for_replication`,
    so callers are notified when a file reaches a replica count instead of
    polling for it.
    """

    def __init__(self, default_block_size: int = 64 * 1024 * 1024):
        self.default_block_size = default_block_size
        self._files: Dict[str, _StoredFile] = {}
        self._changed: Optional[asyncio.Condition] = None
        self.logger = get_logger(__name__)

    def _condition(self) -> asyncio.Condition:
        if self._changed is None:
            self._changed = asyncio.Condition()
        return self._changed

    def _get(self, path: str) -> _StoredFile:
        stored = self._files.get(path)
        if stored is None:
            raise FileNotFoundError(f"Input file not found: {path}")
        return stored

    async def create_file(self, path: str, length: int, hosts: List[str], block_size: Optional[int] = None):
        """
        Register a file whose every block is replicated on `hosts`.

        Args:
            path (str): File path.
            length (int): File length in bytes.
            hosts (List[str]): Initial replica hosts of each block.
            block_size (Optional[int]): Block size; the service default if omitted.
        """
        block_size = block_size or self.default_block_size
        if block_size <= 0:
            raise ValueError("block_size must be positive")
        async with self._condition():
            self._files[path] = _StoredFile(length, block_size, hosts)
            self._condition().notify_all()
        self.logger.debug(f"File {path} created: {length} bytes on {hosts}")

    async def add_replica(self, path: str, host: str):
        """
        Record that `host` now holds a replica of every block of `path`.
        """
        async with self._condition():
            stored = self._get(path)
            for replicas in stored.blocks:
                if host not in replicas:
                    replicas.append(host)
            self._condition().notify_all()
        self.logger.debug(f"Replica of {path} added on {host}")

    def replication_of(self, path: str) -> int:
        """
        Number of replicas of the file's first block (0 for empty files).
        """
        stored = self._get(path)
        return len(stored.blocks[0]) if stored.blocks else 0

    async def wait_for_replication(self, path: str, replication: int, timeout: Optional[float] = None) -> bool:
        """
        Wait until the file's first block has at least `replication` replicas.

        Args:
            path (str): File to watch; it may not exist yet.
            replication (int): Replica count to wait for.
            timeout (Optional[float]): Seconds to wait; forever if None.

        Returns:
            bool: True once the count is reached, False on timeout.
        """
        def reached() -> bool:
            return path in self._files and self.replication_of(path) >= replication

        condition = self._condition()
        async with condition:
            try:
                await asyncio.wait_for(condition.wait_for(reached), timeout)
            except asyncio.TimeoutError:
                self.logger.warning(f"Timed out waiting for {path} to reach replication {replication}")
                return False
        return True

    async def get_file_status(self, path: str) -> FileStatus:
        stored = self._get(path)
        return FileStatus(path=path, length=stored.length, block_size=stored.block_size)

    async def locate_blocks(self, path: str, offset: int, length: int) -> List[BlockLocation]:
        stored = self._get(path)
        end = offset + length
        locations = []
        for i, replicas in enumerate(stored.blocks):
            block_start = i * stored.block_size
            block_len = min(stored.block_size, stored.length - block_start)
            block_end = block_start + block_len
            overlaps = block_start < end and offset < block_end
            contains = length == 0 and block_start <= offset < block_end
            if overlaps or contains:
                locations.append(BlockLocation(hosts=list(replicas), offset=block_start, length=block_len))
        return locations
