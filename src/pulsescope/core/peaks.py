"""
Dominant frequency extraction by local-maximum peak picking.
"""

from dataclasses import dataclass

import numpy as np

from pulsescope.core.frame import SpectrumFrame


@dataclass(frozen=True)
class Peak:
    """One spectral peak."""

    frequency: float  # Hz
    amplitude: float
    index: int


class PeakPicker:
    """
    Finds the strongest local maxima of a spectrum.

    A bin is a peak when it is strictly greater than the two bins on
    either side and above ``floor``.
    """

    def __init__(self, floor: float = 100.0, max_peaks: int = 3):
        self.floor = floor
        self.max_peaks = max_peaks

    def candidate_indices(self, magnitudes: np.ndarray) -> np.ndarray:
        """Indices of all qualifying local maxima, in bin order."""
        n = len(magnitudes)
        if n < 5:
            return np.array([], dtype=int)

        center = magnitudes[2 : n - 2]
        mask = (
            (center > magnitudes[0 : n - 4])
            & (center > magnitudes[1 : n - 3])
            & (center > magnitudes[3 : n - 1])
            & (center > magnitudes[4:n])
            & (center > self.floor)
        )
        return np.nonzero(mask)[0] + 2

    def find_peaks(self, frame: SpectrumFrame) -> tuple[Peak, ...]:
        if self.max_peaks == 0 or frame.sample_rate <= 0:
            return ()

        magnitudes = frame.magnitudes
        indices = self.candidate_indices(magnitudes)
        if len(indices) == 0:
            return ()

        # Stable sort keeps lower bins first on equal amplitude
        order = np.argsort(-magnitudes[indices], kind="stable")
        top = indices[order][: self.max_peaks]
        bin_width = frame.bin_width

        return tuple(
            Peak(
                frequency=float(i * bin_width),
                amplitude=float(magnitudes[i]),
                index=int(i),
            )
            for i in top
        )
