from enum import Enum
from typing import Dict
import threading

from gridsched.models.task import Locality


class Counter(str, Enum):
    DATA_LOCAL_MAPS = "DATA_LOCAL_MAPS"
    RACK_LOCAL_MAPS = "RACK_LOCAL_MAPS"
    OFF_RACK_MAPS = "OFF_RACK_MAPS"
    TOTAL_LAUNCHED_MAPS = "TOTAL_LAUNCHED_MAPS"


class RequeueCounterPolicy(str, Enum):
    """
    What happens to a task's classification when it is re-queued.

    - ADDITIVE: counters are left alone; the next assignment adds to them,
      so counters track assignments made.
    - CORRECTIVE: the previous classification is retracted first, so
      counters track tasks currently assigned or finished.
    """
    ADDITIVE = "additive"
    CORRECTIVE = "corrective"


_COUNTER_FOR = {
    Locality.DATA_LOCAL: Counter.DATA_LOCAL_MAPS,
    Locality.RACK_LOCAL: Counter.RACK_LOCAL_MAPS,
    Locality.OFF_RACK: Counter.OFF_RACK_MAPS,
}


class LocalityCounters:
    """
    Per-job counters, one per locality classification.

    `record` is called exactly once per assignment. `retract` exists only
    for the corrective re-queue policy.
    """

    def __init__(self):
        self._values: Dict[Counter, int] = {c: 0 for c in _COUNTER_FOR.values()}
        self._lock = threading.Lock()

    def record(self, locality: Locality):
        with self._lock:
            self._values[_COUNTER_FOR[locality]] += 1

    def retract(self, locality: Locality):
        with self._lock:
            counter = _COUNTER_FOR[locality]
            if self._values[counter] > 0:
                self._values[counter] -= 1

    def get(self, counter: Counter) -> int:
        if counter == Counter.TOTAL_LAUNCHED_MAPS:
            return self.total
        with self._lock:
            return self._values[counter]

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._values.values())

    def snapshot(self) -> Dict[str, int]:
        """
        Copy of all counters keyed by counter name, including the total.
        """
        with self._lock:
            values = {c.value: v for c, v in self._values.items()}
        values[Counter.TOTAL_LAUNCHED_MAPS.value] = sum(values.values())
        return values
