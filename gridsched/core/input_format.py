from abc import ABC, abstractmethod
from typing import List, Sequence

from gridsched.models.split import BlockLocation, Split
from gridsched.services.block_locations import BlockLocationService
from gridsched.utils.logger import get_logger

# A tail smaller than 10% of the split size is folded into the last split.
SPLIT_SLOP = 1.1


class InputFormat(ABC):
    """
    Produces the splits of a job. The scheduler does not care how.
    """

    @abstractmethod
    async def split_into(self, target_count: int) -> List[Split]:
        """
        Divide the job input into splits, aiming for `target_count` of them.

        Returns:
            List[Split]: Splits with `index` set in plan order.
        """


def _block_index(blocks: Sequence[BlockLocation], offset: int) -> int:
    for i, block in enumerate(blocks):
        if block.offset <= offset < block.offset + block.length:
            return i
    raise ValueError(f"Offset {offset} is outside the file's blocks")


class FileInputFormat(InputFormat):
    """
    Splits a set of files along block boundaries.

    Each split takes its replica hosts from the block holding its first
    byte, so a task reading the split from a replica host reads locally.
    """

    splittable = True

    def __init__(self, paths: Sequence[str], block_service: BlockLocationService, min_split_size: int = 1):
        self.paths = sorted(paths)
        self.block_service = block_service
        self.min_split_size = max(1, min_split_size)
        self.logger = get_logger(__name__)

    def compute_split_size(self, goal_size: int, block_size: int) -> int:
        return max(self.min_split_size, min(goal_size, block_size))

    async def split_into(self, target_count: int) -> List[Split]:
        statuses = [await self.block_service.get_file_status(path) for path in self.paths]
        total_size = sum(status.length for status in statuses)
        goal_size = total_size // max(1, target_count)

        splits: List[Split] = []
        for status in statuses:
            if status.length == 0:
                splits.append(Split(path=status.path, offset=0, length=0, hosts=[]))
                continue

            blocks = await self.block_service.locate_blocks(status.path, 0, status.length)
            if not self.splittable:
                hosts = blocks[0].hosts if blocks else []
                splits.append(Split(path=status.path, offset=0, length=status.length, hosts=hosts))
                continue

            split_size = self.compute_split_size(goal_size, status.block_size)
            remaining = status.length
            while remaining / split_size > SPLIT_SLOP:
                offset = status.length - remaining
                hosts = blocks[_block_index(blocks, offset)].hosts if blocks else []
                splits.append(Split(path=status.path, offset=offset, length=split_size, hosts=hosts))
                remaining -= split_size
            if remaining:
                hosts = blocks[-1].hosts if blocks else []
                splits.append(Split(
                    path=status.path,
                    offset=status.length - remaining,
                    length=remaining,
                    hosts=hosts
                ))

        for index, split in enumerate(splits):
            split.index = index

        self.logger.info(
            f"Planned {len(splits)} splits from {len(self.paths)} files "
            f"(target {target_count}, {total_size} bytes)"
        )
        return splits


class NonSplittableFileInputFormat(FileInputFormat):
    """
    One split per file, located on the hosts of its first block.
    """

    splittable = False
