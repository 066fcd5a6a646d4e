"""
Fixed-capacity ring buffer backed by a numpy array.

Every per-frame history in the engine lives in one of these, so memory
use is fixed at construction and pushes never allocate.
"""

import numpy as np


class RingBuffer:
    """
    Fixed-capacity FIFO of floats.

    With prefill=True the buffer starts full of zeros, so its length is
    constant from the first push. Otherwise it grows until it reaches
    capacity and then evicts the oldest value on each push.
    """

    def __init__(self, capacity: int, prefill: bool = False):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.prefill = prefill
        self._data = np.zeros(capacity, dtype=np.float64)
        self._head = 0  # next write position
        self._count = capacity if prefill else 0

    def __len__(self) -> int:
        return self._count

    def push(self, value: float) -> None:
        self._data[self._head] = value
        self._head = (self._head + 1) % self.capacity
        if self._count < self.capacity:
            self._count += 1

    def values(self) -> np.ndarray:
        """Contents ordered oldest to newest (a copy)."""
        if self._count < self.capacity:
            return self._data[: self._count].copy()
        return np.roll(self._data, -self._head)

    def mean(self) -> float:
        if self._count == 0:
            return 0.0
        if self._count < self.capacity:
            return float(np.mean(self._data[: self._count]))
        return float(np.mean(self._data))

    def weighted_mean(self) -> float:
        """Mean weighted by position, oldest=1 up to newest=len."""
        if self._count == 0:
            return 0.0
        weights = np.arange(1, self._count + 1, dtype=np.float64)
        return float(np.dot(self.values(), weights) / weights.sum())

    def clear(self) -> None:
        self._data.fill(0.0)
        self._head = 0
        self._count = self.capacity if self.prefill else 0
