"""
Spectral flux onset detection.

Flux measures how much the spectrum grew since the previous frame. Only
increases count; a frame whose flux clearly exceeds the recent average is
flagged as an onset.
"""

import logging
from dataclasses import dataclass

import numpy as np

from pulsescope.core.ring import RingBuffer

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FluxResult:
    """Flux value and onset decision for one frame."""

    value: float = 0.0
    is_onset: bool = False


class FluxDetector:
    """
    Half-wave rectified spectral flux with a rolling-average threshold.

    The flux history starts zero-filled and always averages over its full
    length, so early onsets are judged against a quiet baseline.
    """

    def __init__(self, history_length: int = 20, threshold: float = 0.5):
        self.threshold = threshold
        self.history = RingBuffer(history_length, prefill=True)
        self._previous: np.ndarray | None = None

    @property
    def previous_spectrum(self) -> np.ndarray | None:
        return None if self._previous is None else self._previous.copy()

    def compute_flux(self, current: np.ndarray, previous: np.ndarray) -> float:
        """Root of summed squared positive differences, divided by bin count."""
        rise = np.maximum(current - previous, 0.0)
        return float(np.sqrt(np.sum(rise * rise)) / len(current))

    def update(self, magnitudes: np.ndarray) -> FluxResult:
        current = np.asarray(magnitudes, dtype=np.float64)

        if self._previous is None:
            self._previous = current.copy()
            return FluxResult()

        if self._previous.shape != current.shape:
            LOGGER.warning(
                "Spectrum length changed from %d to %d without reset; re-seeding flux",
                len(self._previous),
                len(current),
            )
            self._previous = current.copy()
            return FluxResult()

        flux = self.compute_flux(current, self._previous)
        self.history.push(flux)
        is_onset = flux > self.history.mean() * self.threshold

        self._previous = current.copy()
        return FluxResult(value=flux, is_onset=bool(is_onset))

    def reset(self) -> None:
        self._previous = None
        self.history.clear()
