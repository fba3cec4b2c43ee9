"""
History Buffer

Bounded, append-only excitement history with a scrollable viewing window.
"""

from collections import deque
from itertools import islice
from typing import Iterator

from impulsesense.contracts.state import HistorySample

DEFAULT_CAPACITY = 300
DEFAULT_WINDOW = 30


class HistoryBuffer:
    """FIFO ring buffer of history samples.

    Samples are kept in append order; once `capacity` is reached the
    oldest sample is evicted for every new one.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """Initialize history buffer.

        Args:
            capacity: Maximum samples retained (minimum 1)
        """
        self.capacity = max(1, int(capacity))
        self._samples: deque[HistorySample] = deque(maxlen=self.capacity)
        self._evicted = 0

    def append(self, sample: HistorySample) -> None:
        """Append a sample, evicting the oldest one when full."""
        if len(self._samples) == self.capacity:
            self._evicted += 1
        self._samples.append(sample)

    def clamp_offset(self, offset: int) -> int:
        """Clamp an offset from the live edge into [0, len]."""
        return max(0, min(int(offset), len(self._samples)))

    def window_bounds(
        self, offset: int = 0, size: int = DEFAULT_WINDOW
    ) -> tuple[int, int]:
        """Return the [start, end) indices of a viewing window.

        Args:
            offset: Samples back from the live edge (0 = live)
            size: Window size in samples

        Returns:
            (start, end) with start = max(0, len - offset - size)
        """
        end = len(self._samples) - self.clamp_offset(offset)
        start = max(0, end - max(0, int(size)))
        return start, end

    def window(
        self, offset: int = 0, size: int = DEFAULT_WINDOW
    ) -> list[HistorySample]:
        """Return a snapshot of the samples inside a viewing window.

        The returned list is a copy; later appends never show up in it.
        """
        start, end = self.window_bounds(offset, size)
        return list(islice(self._samples, start, end))

    def max_offset(self, size: int = DEFAULT_WINDOW) -> int:
        """Largest useful offset for a window of `size` (slider range)."""
        return max(0, len(self._samples) - size)

    @staticmethod
    def is_live(offset: int) -> bool:
        """Whether a window at `offset` follows the live edge."""
        return offset <= 0

    def snapshot(self) -> list[HistorySample]:
        """Copy of all retained samples, oldest first."""
        return list(self._samples)

    def find(self, timestamp: int) -> HistorySample | None:
        """Find the most recent sample with the given timestamp."""
        for sample in reversed(self._samples):
            if sample.timestamp == timestamp:
                return sample
        return None

    def triggers(self) -> list[HistorySample]:
        """All retained samples that carry trigger info."""
        return [s for s in self._samples if s.trigger is not None]

    @property
    def latest(self) -> HistorySample | None:
        """Most recent sample, if any."""
        return self._samples[-1] if self._samples else None

    @property
    def total_evicted(self) -> int:
        """Samples dropped by FIFO eviction so far."""
        return self._evicted

    def clear(self) -> None:
        """Drop all samples."""
        self._samples.clear()
        self._evicted = 0

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[HistorySample]:
        return iter(list(self._samples))
