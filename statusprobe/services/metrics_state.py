from threading import Lock
from typing import Dict, List, Tuple

from statusprobe.schemas.targets import StatusSignal, TargetKey


class MetricsState:
    """Latest status signal per (url, tag), shared by the probe loop and scrapes.

    Only `write` and `read_all` touch the mapping, both under one lock. The
    critical sections are a single assignment or a shallow copy, so neither
    side can hold the other off for long. Keys are never removed: a target
    that starts failing keeps its series, now at 0.
    """

    def __init__(self):
        self._lock = Lock()
        self._signals: Dict[TargetKey, StatusSignal] = {}

    def write(self, key: TargetKey, signal: StatusSignal) -> None:
        url, tag = key
        value = int(signal)
        with self._lock:
            self._signals[(url, tag)] = value

    def read_all(self) -> List[Tuple[TargetKey, StatusSignal]]:
        with self._lock:
            snapshot = dict(self._signals)
        return sorted(snapshot.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)
