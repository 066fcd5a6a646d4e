"""Core feature extraction modules."""

from pulsescope.core.bands import BandDecomposer, BandSet, BandSmoother
from pulsescope.core.beats import BeatDetector, BeatFlags, TempoEstimator
from pulsescope.core.flux import FluxDetector, FluxResult
from pulsescope.core.frame import SpectrumFrame
from pulsescope.core.peaks import Peak, PeakPicker

__all__ = [
    "BandDecomposer",
    "BandSet",
    "BandSmoother",
    "BeatDetector",
    "BeatFlags",
    "TempoEstimator",
    "FluxDetector",
    "FluxResult",
    "SpectrumFrame",
    "Peak",
    "PeakPicker",
]
