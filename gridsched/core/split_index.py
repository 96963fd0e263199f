from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

from gridsched.core.input_format import InputFormat
from gridsched.models.split import Split


class SplitLocationIndex:
    """
    Point-in-time snapshot of the replica hosts of every split of a job.

    Built once when the job is planned; replication changes during the job
    are not reflected.
    """

    def __init__(self, splits: Iterable[Split]):
        self._splits: Tuple[Split, ...] = tuple(sorted(splits, key=lambda s: s.index))
        seen = set()
        for split in self._splits:
            if split.split_id in seen:
                raise ValueError(f"Duplicate split id: {split.split_id}")
            seen.add(split.split_id)
        self._hosts: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {split.split_id: tuple(split.hosts) for split in self._splits}
        )

    @classmethod
    async def build(cls, input_format: InputFormat, target_count: int) -> "SplitLocationIndex":
        return cls(await input_format.split_into(target_count))

    def hosts_for(self, split: Split) -> Tuple[str, ...]:
        """
        Replica hosts of a split in the order the storage layer reported them.

        Raises:
            KeyError: If the split is not part of this index.
        """
        return self._hosts[split.split_id]

    @property
    def splits(self) -> List[Split]:
        return list(self._splits)

    def __len__(self) -> int:
        return len(self._splits)

    def __iter__(self):
        return iter(self._splits)
