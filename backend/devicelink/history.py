from collections import deque
from typing import Iterator

from .schemas import HistoryEntry, SensorReading


class HistoryBuffer:
    """Most recent readings in arrival order; the oldest fall off first."""

    def __init__(self, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[HistoryEntry] = deque(maxlen=capacity)

    def append(self, reading: SensorReading, timestamp: str) -> HistoryEntry:
        entry = HistoryEntry(timestamp=timestamp, **reading.model_dump())
        self._entries.append(entry)
        return entry

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def latest(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))
