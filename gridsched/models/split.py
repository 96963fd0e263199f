# Third-party imports for data validation and type hints
from typing import List
from pydantic import BaseModel, Field


class BlockLocation(BaseModel):
    """
    Location of one block of a file as reported by the block-location service.

    Attributes:
        hosts (List[str]): Hosts holding a replica of the block.
        offset (int): Byte offset of the block within the file.
        length (int): Length of the block in bytes.
    """
    hosts: List[str] = []
    offset: int = 0
    length: int = 0


class FileStatus(BaseModel):
    """
    Size information for one input file.
    """
    path: str
    length: int
    block_size: int


class Split(BaseModel):
    """
    A contiguous logical unit of input data processed by exactly one task.

    Splits are produced once when a job is planned and never change
    afterwards. `hosts` keeps the replica order reported by the
    block-location service; `index` is the position of the split in the
    job plan and drives the deterministic assignment order.
    """

    # === Split Identification ===
    split_id: str = None                        # Defaults to "<path>:<offset>+<length>"
    index: int = 0                              # Position in the job plan

    # === Data Range ===
    path: str
    offset: int = 0
    length: int = 0

    # === Replica Locations ===
    hosts: List[str] = Field(default_factory=list)

    def __init__(self, **data):
        if data.get('split_id') is None:
            data['split_id'] = f"{data.get('path')}:{data.get('offset', 0)}+{data.get('length', 0)}"
        super().__init__(**data)
