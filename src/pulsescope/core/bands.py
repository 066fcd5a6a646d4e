"""
Band decomposition and smoothing.

Splits a magnitude spectrum into five named energy bands and smooths
each band across frames with a recency-weighted history.
"""

import math
from dataclasses import dataclass

import numpy as np

from pulsescope.core.frame import SpectrumFrame
from pulsescope.core.ring import RingBuffer

BAND_NAMES = ("bass", "mid_low", "mid", "high_mid", "high")

# (low_hz, high_hz) per band
BAND_RANGES = {
    "bass": (0.0, 200.0),
    "mid_low": (200.0, 500.0),
    "mid": (500.0, 2000.0),
    "high_mid": (2000.0, 4000.0),
    "high": (4000.0, 20000.0),
}


@dataclass(frozen=True)
class BandSet:
    """Energy per named band, in the units of the input spectrum."""

    bass: float = 0.0
    mid_low: float = 0.0
    mid: float = 0.0
    high_mid: float = 0.0
    high: float = 0.0

    @classmethod
    def zeros(cls) -> "BandSet":
        return cls()

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in BAND_NAMES}

    def as_array(self) -> np.ndarray:
        return np.array([getattr(self, name) for name in BAND_NAMES], dtype=np.float64)


def band_index(freq_hz: float, nyquist: float, n_bins: int) -> int:
    """Map a frequency to a bin index, rounding halves up."""
    return int(math.floor(freq_hz / nyquist * n_bins + 0.5))


class BandDecomposer:
    """Averages spectrum bins into the five fixed bands."""

    def band_average(self, frame: SpectrumFrame, low_hz: float, high_hz: float) -> float:
        """
        Mean magnitude of the bins between two frequencies.

        Both ends are inclusive and clipped to the spectrum; an empty range
        averages to 0.
        """
        n = frame.n_bins
        if n == 0 or frame.sample_rate <= 0:
            return 0.0

        low = max(band_index(low_hz, frame.nyquist, n), 0)
        high = min(band_index(high_hz, frame.nyquist, n), n - 1)
        if high < low:
            return 0.0
        return float(np.mean(frame.magnitudes[low : high + 1]))

    def decompose(self, frame: SpectrumFrame) -> BandSet:
        return BandSet(
            **{
                name: self.band_average(frame, low, high)
                for name, (low, high) in BAND_RANGES.items()
            }
        )


class BandSmoother:
    """
    Recency-weighted smoothing of band energies.

    Each band keeps the last ``history_length`` raw values (zero-filled at
    start) and reports their mean weighted 1..N from oldest to newest.
    """

    def __init__(self, history_length: int = 5):
        self.history_length = history_length
        self._history = {
            name: RingBuffer(history_length, prefill=True) for name in BAND_NAMES
        }

    def push(self, bands: BandSet) -> BandSet:
        smoothed = {}
        for name in BAND_NAMES:
            history = self._history[name]
            history.push(getattr(bands, name))
            smoothed[name] = history.weighted_mean()
        return BandSet(**smoothed)

    def history(self, name: str) -> np.ndarray:
        """Raw history of one band, oldest first."""
        return self._history[name].values()

    def reset(self) -> None:
        for history in self._history.values():
            history.clear()
