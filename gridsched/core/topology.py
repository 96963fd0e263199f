from typing import Dict, Iterable, Optional, Set, Tuple
import threading

from gridsched.utils.logger import get_logger

DEFAULT_RACK = "/default-rack"


def normalize_rack(rack: str) -> str:
    """
    Return the rack name with a single leading slash, e.g. "r1" -> "/r1".
    """
    rack = rack.strip()
    return "/" + rack.lstrip("/")


class TopologyResolver:
    """
    Two-level cluster topology: racks containing hosts.

    `rack_of` is total: hosts that were never added resolve to the default
    rack instead of failing, and the gap is logged once per host.
    """

    def __init__(self, mapping: Optional[Dict[str, str]] = None, default_rack: str = DEFAULT_RACK):
        self.default_rack = normalize_rack(default_rack)
        self._host_to_rack: Dict[str, str] = {}
        self._rack_to_hosts: Dict[str, Set[str]] = {}
        self._warned: Set[str] = set()
        self._lock = threading.Lock()
        self.logger = get_logger(__name__)

        for host, rack in (mapping or {}).items():
            self.add_host(host, rack)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]], default_rack: str = DEFAULT_RACK) -> "TopologyResolver":
        resolver = cls(default_rack=default_rack)
        for host, rack in pairs:
            resolver.add_host(host, rack)
        return resolver

    def add_host(self, host: str, rack: Optional[str] = None):
        """
        Place a host in a rack, moving it if it was known under another rack.

        Args:
            host (str): Host identifier.
            rack (Optional[str]): Rack identifier; the default rack if omitted.
        """
        rack = normalize_rack(rack) if rack else self.default_rack
        with self._lock:
            previous = self._host_to_rack.get(host)
            if previous == rack:
                return
            if previous is not None:
                self._rack_to_hosts[previous].discard(host)
                if not self._rack_to_hosts[previous]:
                    del self._rack_to_hosts[previous]
            self._host_to_rack[host] = rack
            self._rack_to_hosts.setdefault(rack, set()).add(host)
            self._warned.discard(host)
        self.logger.debug(f"Host {host} placed in rack {rack}")

    def remove_host(self, host: str):
        with self._lock:
            rack = self._host_to_rack.pop(host, None)
            if rack is not None:
                self._rack_to_hosts[rack].discard(host)
                if not self._rack_to_hosts[rack]:
                    del self._rack_to_hosts[rack]

    def rack_of(self, host: str) -> str:
        rack = self._host_to_rack.get(host)
        if rack is not None:
            return rack
        with self._lock:
            first_miss = host not in self._warned
            self._warned.add(host)
        if first_miss:
            self.logger.warning(f"Host {host} not found in topology, using {self.default_rack}")
        return self.default_rack

    def hosts_of(self, rack: str) -> Set[str]:
        """
        Hosts known to live in a rack. Diagnostic only.
        """
        return set(self._rack_to_hosts.get(normalize_rack(rack), ()))

    def racks(self) -> Set[str]:
        return set(self._rack_to_hosts)

    def __contains__(self, host: str) -> bool:
        return host in self._host_to_rack

    def __len__(self) -> int:
        return len(self._host_to_rack)
