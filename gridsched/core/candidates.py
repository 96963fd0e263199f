from typing import Iterable, List, Optional, Tuple

from gridsched.core.split_index import SplitLocationIndex
from gridsched.core.topology import TopologyResolver
from gridsched.models.split import Split


def _dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def build_candidates(
    split: Split,
    topology: TopologyResolver,
    split_index: Optional[SplitLocationIndex] = None
) -> Tuple[List[str], List[str]]:
    """
    Expand a split's replica hosts into the hosts and racks it prefers.

    Both lists keep first-seen order and contain no duplicates. A split
    with no known replicas yields two empty lists. When a split index is
    given, its snapshot of the replica hosts is used instead of the
    split's own host list.

    Args:
        split (Split): Split whose replica hosts are expanded.
        topology (TopologyResolver): Resolver used to map hosts to racks.
        split_index (Optional[SplitLocationIndex]): Snapshot holding the split.

    Returns:
        Tuple[List[str], List[str]]: (preferred hosts, preferred racks)
    """
    replicas = split_index.hosts_for(split) if split_index is not None else split.hosts
    hosts = _dedupe(replicas)
    racks = _dedupe(topology.rack_of(host) for host in hosts)
    return hosts, racks
