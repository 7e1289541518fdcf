from dataclasses import dataclass
from typing import Any, List

import numpy as np

from MortarFEM.Exceptions import MortarConfigurationError


@dataclass
class Snapshot:
    """Field data valid from ``time`` onwards."""
    time: float
    data: Any


class TimeSeriesField:
    """
    Time-stamped storage of one named element field.

    Snapshots are kept sorted by time. Writing at a time that already exists
    (within ``TIME_TOLERANCE``) overwrites that snapshot, reading returns the
    most recent snapshot at or before the query time.

    Examples
    --------
    >>> field = TimeSeriesField(0.0, np.zeros((2, 2)))
    >>> field.update(1.0, np.ones((2, 2)))
    >>> field(0.5)
    array([[0., 0.],
           [0., 0.]])
    """
    TIME_TOLERANCE = 1e-12

    def __init__(self, time: float = None, data=None):
        self.snapshots: List[Snapshot] = []
        if time is not None:
            self.update(time, data)

    def __len__(self):
        return len(self.snapshots)

    def __repr__(self):
        times = [s.time for s in self.snapshots]
        return f"TimeSeriesField(times={times})"

    def _same_time(self, t1: float, t2: float) -> bool:
        return abs(t1 - t2) <= self.TIME_TOLERANCE * max(1.0, abs(t1), abs(t2))

    def update(self, time: float, data):
        """Insert a snapshot, or overwrite the one stored at the same time."""
        time = float(time)
        for snapshot in self.snapshots:
            if self._same_time(snapshot.time, time):
                snapshot.data = data
                return
        self.snapshots.append(Snapshot(time, data))
        self.snapshots.sort(key=lambda s: s.time)

    def __call__(self, time: float):
        """Most recent snapshot data at or before ``time``."""
        found = None
        for snapshot in self.snapshots:
            if snapshot.time <= time or self._same_time(snapshot.time, time):
                found = snapshot
            else:
                break
        if found is None:
            raise MortarConfigurationError(f"No snapshot at or before time {time}")
        return found.data

    def last(self) -> Snapshot:
        if not self.snapshots:
            raise MortarConfigurationError("Field has no snapshots")
        return self.snapshots[-1]

    def initialize(self, time: float):
        """Copy the last known snapshot forward as the initial guess at ``time``."""
        last = self.last()
        if not self._same_time(last.time, time):
            self.update(time, np.array(last.data, copy=True))
