"""
Spectrum frame value type.

A SpectrumFrame is one magnitude spectrum produced by an external
transform, plus the metadata needed to map bins back to frequencies.
"""

from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True, eq=False)
class SpectrumFrame:
    """One frame of frequency-domain magnitudes, compared by value."""

    magnitudes: np.ndarray  # 0-255 byte scale or 0.0-1.0
    sample_rate: float
    timestamp: float  # monotonic engine-clock seconds
    fft_size: int = field(default=0)

    def __post_init__(self):
        data = np.array(self.magnitudes, dtype=np.float64).ravel()
        data.flags.writeable = False
        object.__setattr__(self, "magnitudes", data)
        if not self.fft_size:
            object.__setattr__(self, "fft_size", 2 * len(data))

    @property
    def n_bins(self) -> int:
        return len(self.magnitudes)

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    @property
    def bin_width(self) -> float:
        """Frequency span of one bin in Hz."""
        if self.n_bins == 0:
            return 0.0
        return self.nyquist / self.n_bins

    @property
    def is_valid(self) -> bool:
        """True when the frame can be analyzed."""
        return (
            self.n_bins > 0
            and self.sample_rate > 0
            and bool(np.all(np.isfinite(self.magnitudes)))
        )

    def __eq__(self, other):
        if not isinstance(other, SpectrumFrame):
            return NotImplemented
        return (
            (self.sample_rate, self.timestamp, self.fft_size)
            == (other.sample_rate, other.timestamp, other.fft_size)
            and np.array_equal(self.magnitudes, other.magnitudes, equal_nan=True)
        )

    def __hash__(self):
        return hash((self.sample_rate, self.timestamp, self.fft_size, self.magnitudes.tobytes()))
