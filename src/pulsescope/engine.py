"""
Real-time feature engine.

Orchestrates the per-frame flow from a magnitude spectrum to an immutable
FeatureSet: band decomposition, smoothing, beat detection, tempo
estimation, spectral flux and peak picking.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from pulsescope.config import EngineConfig
from pulsescope.core.bands import BandDecomposer, BandSet, BandSmoother
from pulsescope.core.beats import BeatDetector, BeatFlags, TempoEstimator
from pulsescope.core.flux import FluxDetector, FluxResult
from pulsescope.core.frame import SpectrumFrame
from pulsescope.core.peaks import Peak, PeakPicker

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FeatureSet:
    """
    All derived signals for one processed frame.

    Equality compares every field, ``frequency_data`` element-wise.
    """

    frame_index: int  # -1 for a degenerate frame
    timestamp: float
    frequency_data: np.ndarray  # read-only copy of the input spectrum
    average: float  # mean magnitude across all bins
    bands: BandSet  # smoothed
    beats: BeatFlags
    is_beat: bool
    tempo: int
    tempo_confidence: float
    flux: FluxResult
    peaks: tuple[Peak, ...]
    degenerate: bool = False  # frame was rejected as malformed

    @property
    def is_onset(self) -> bool:
        return self.flux.is_onset

    def _scalars(self) -> tuple:
        return (
            self.frame_index,
            self.timestamp,
            self.average,
            self.bands,
            self.beats,
            self.is_beat,
            self.tempo,
            self.tempo_confidence,
            self.flux,
            self.peaks,
            self.degenerate,
        )

    def __eq__(self, other):
        if not isinstance(other, FeatureSet):
            return NotImplemented
        return self._scalars() == other._scalars() and np.array_equal(
            self.frequency_data, other.frequency_data, equal_nan=True
        )

    def __hash__(self):
        return hash((self._scalars(), self.frequency_data.tobytes()))


class EngineState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"


FeatureCallback = Callable[[FeatureSet], None]


class FeatureEngine:
    """
    Stateful per-frame audio feature extraction.

    Frames must be processed in timestamp order by one caller at a time;
    the engine does no locking. Output is delivered both as the return
    value of process() and to the registered subscriber, synchronously.
    """

    def __init__(self, config: EngineConfig | None = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration. Defaults to EngineConfig().
        """
        self.config = config or EngineConfig()
        cfg = self.config

        self.decomposer = BandDecomposer()
        self.smoother = BandSmoother(history_length=cfg.band_history)
        self.beat_detector = BeatDetector(
            params=cfg.beat_params(),
            history_length=cfg.beat_history,
        )
        self.tempo = TempoEstimator(
            window=cfg.tempo_window,
            min_beats=cfg.tempo_min_beats,
            min_interval=cfg.bass.refractory,
        )
        self.flux = FluxDetector(
            history_length=cfg.flux_history,
            threshold=cfg.flux_threshold,
        )
        self.peak_picker = PeakPicker(floor=cfg.peak_floor, max_peaks=cfg.max_peaks)

        self._callback: Optional[FeatureCallback] = None
        self._state = EngineState.UNINITIALIZED
        self._last_timestamp: float | None = None
        self._frame_index = 0

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def frame_count(self) -> int:
        """Number of frames processed since construction or reset."""
        return self._frame_index

    def on_features(self, callback: Optional[FeatureCallback]) -> None:
        """
        Register the subscriber.

        Only one subscriber is held; registering replaces the previous one
        and None removes it.
        """
        self._callback = callback

    def submit_frame(self, frame: SpectrumFrame) -> FeatureSet:
        """Push interface for the capture driver. Same as process()."""
        return self.process(frame)

    def reset(self) -> None:
        """Clear all histories, flux and tempo state."""
        self.smoother.reset()
        self.beat_detector.reset()
        self.tempo.reset()
        self.flux.reset()
        self._state = EngineState.UNINITIALIZED
        self._last_timestamp = None
        self._frame_index = 0
        LOGGER.debug("Feature engine reset")

    def _timing_valid(self, timestamp: float) -> bool:
        if not math.isfinite(timestamp):
            return False
        return self._last_timestamp is None or timestamp >= self._last_timestamp

    def _degenerate(self, frame: SpectrumFrame) -> FeatureSet:
        tempo = self.tempo.state
        return FeatureSet(
            frame_index=-1,
            timestamp=frame.timestamp,
            frequency_data=frame.magnitudes,
            average=0.0,
            bands=BandSet.zeros(),
            beats=BeatFlags(),
            is_beat=False,
            tempo=tempo.bpm,
            tempo_confidence=tempo.confidence,
            flux=FluxResult(),
            peaks=(),
            degenerate=True,
        )

    def process(self, frame: SpectrumFrame) -> FeatureSet:
        """
        Analyze one frame and deliver the resulting FeatureSet.

        Malformed frames (no bins, non-positive sample rate, non-finite
        values) produce a degenerate FeatureSet with frame_index -1 and leave
        all state alone.
        A timestamp earlier than the previous one still updates smoothing
        and flux state, but skips beat detection and the tempo update.
        """
        if not frame.is_valid:
            LOGGER.warning(
                "Rejecting malformed frame: %d bins, sample_rate=%s",
                frame.n_bins,
                frame.sample_rate,
            )
            return self._deliver(self._degenerate(frame))

        if self._state is EngineState.UNINITIALIZED:
            LOGGER.debug(
                "First frame: %d bins at %s Hz", frame.n_bins, frame.sample_rate
            )
            self._state = EngineState.RUNNING

        timing_valid = self._timing_valid(frame.timestamp)
        if not timing_valid:
            LOGGER.warning(
                "Non-monotonic timestamp %s (last %s); skipping beat and tempo update",
                frame.timestamp,
                self._last_timestamp,
            )

        raw_bands = self.decomposer.decompose(frame)
        bands = self.smoother.push(raw_bands)

        if timing_valid:
            now = frame.timestamp
            beats = self.beat_detector.detect(bands, now)
            tempo = self.tempo.update(beats.bass, now)
            self._last_timestamp = now
        else:
            beats = BeatFlags()
            tempo = self.tempo.state

        flux = self.flux.update(frame.magnitudes)
        if not timing_valid:
            flux = FluxResult(value=flux.value, is_onset=False)

        peaks = self.peak_picker.find_peaks(frame)

        features = FeatureSet(
            frame_index=self._frame_index,
            timestamp=frame.timestamp,
            frequency_data=frame.magnitudes,
            average=float(np.mean(frame.magnitudes)),
            bands=bands,
            beats=beats,
            is_beat=beats.any,
            tempo=tempo.bpm,
            tempo_confidence=tempo.confidence,
            flux=flux,
            peaks=peaks,
        )
        self._frame_index += 1
        return self._deliver(features)

    def _deliver(self, features: FeatureSet) -> FeatureSet:
        if self._callback is not None:
            self._callback(features)
        return features
