"""
Beat detection and tempo estimation.

Beats are declared per band when the current energy rises above a
rolling-average threshold, gated by a refractory window. Bass beats feed
a tempo estimator that derives BPM and a regularity-based confidence.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass

import numpy as np

from pulsescope.config import BandBeatParams
from pulsescope.core.bands import BandSet
from pulsescope.core.ring import RingBuffer

LOGGER = logging.getLogger(__name__)

TRACKED_BANDS = ("bass", "mid", "high")


@dataclass(frozen=True)
class BeatFlags:
    """Per-band beat decisions for one frame."""

    bass: bool = False
    mid: bool = False
    high: bool = False

    @property
    def any(self) -> bool:
        return self.bass or self.mid or self.high

    def as_dict(self) -> dict[str, bool]:
        return {"bass": self.bass, "mid": self.mid, "high": self.high}


class BeatDetectorState:
    """Rolling energy history and timing for one band."""

    def __init__(self, params: BandBeatParams, history_length: int = 20):
        self.multiplier = params.multiplier
        self.refractory = params.refractory
        self.history = RingBuffer(history_length)
        self.last_beat = 0.0
        self.threshold = 0.0

    def update(self, energy: float, now: float) -> bool:
        """Push one energy value and decide whether it is a beat."""
        self.history.push(energy)
        self.threshold = self.history.mean() * self.multiplier

        is_beat = energy > self.threshold and (now - self.last_beat) > self.refractory
        if is_beat:
            self.last_beat = now
        return is_beat

    def reset(self) -> None:
        self.history.clear()
        self.last_beat = 0.0
        self.threshold = 0.0


class BeatDetector:
    """
    Adaptive-threshold beat detector for the bass, mid and high bands.

    ``now`` must come from a monotonic clock; the detector relies on the
    caller never moving it backwards.
    """

    def __init__(
        self,
        params: dict[str, BandBeatParams] | None = None,
        history_length: int = 20,
    ):
        params = params or {
            "bass": BandBeatParams(1.5, 0.2),
            "mid": BandBeatParams(1.2, 0.1),
            "high": BandBeatParams(1.8, 0.1),
        }
        self.states = {
            band: BeatDetectorState(params[band], history_length)
            for band in TRACKED_BANDS
        }

    def detect(self, bands: BandSet, now: float) -> BeatFlags:
        return BeatFlags(
            **{
                band: state.update(getattr(bands, band), now)
                for band, state in self.states.items()
            }
        )

    def reset(self) -> None:
        for state in self.states.values():
            state.reset()


@dataclass(frozen=True)
class TempoState:
    """Current tempo estimate."""

    bpm: int = 0
    confidence: float = 0.0


class TempoEstimator:
    """
    Tempo from the spacing of recent bass beats.

    Keeps the beat timestamps of a trailing window. Once enough beats are
    in the window, BPM comes from the mean inter-beat interval and
    confidence from how regular the intervals are. With too few beats the
    last estimate is kept rather than cleared.
    """

    def __init__(
        self,
        window: float = 6.0,
        min_beats: int = 4,
        min_interval: float = 0.2,
    ):
        self.window = window
        self.min_beats = min_beats
        self.min_interval = min_interval
        # Beats at most min_interval apart are ignored, which bounds the window
        capacity = int(math.ceil(window / min_interval)) + 2 if min_interval > 0 else None
        self._beat_times: deque[float] = deque(maxlen=capacity)
        self.state = TempoState()

    @property
    def beat_times(self) -> list[float]:
        return list(self._beat_times)

    @property
    def bpm(self) -> int:
        return self.state.bpm

    @property
    def confidence(self) -> float:
        return self.state.confidence

    def update(self, beat_fired: bool, now: float) -> TempoState:
        """
        Record a bass beat (if fired) and refresh the estimate.

        A beat landing no more than ``min_interval`` after the last kept
        beat is ignored; the refractory window makes it impossible anyway.
        """
        if beat_fired:
            if self._beat_times and now - self._beat_times[-1] <= self.min_interval:
                LOGGER.debug(
                    "Ignoring beat at %s: %.3fs after previous, min interval %s",
                    now,
                    now - self._beat_times[-1],
                    self.min_interval,
                )
            else:
                self._beat_times.append(now)

        oldest_allowed = now - self.window
        while self._beat_times and self._beat_times[0] < oldest_allowed:
            self._beat_times.popleft()

        if len(self._beat_times) >= self.min_beats:
            intervals = np.diff(np.fromiter(self._beat_times, dtype=np.float64))
            mean_interval = float(np.mean(intervals))
            if mean_interval > 0:
                std_interval = float(np.std(intervals))
                confidence = min(1.0, max(0.0, 1.0 - std_interval / mean_interval))
                self.state = TempoState(
                    bpm=int(math.floor(60.0 / mean_interval + 0.5)),
                    confidence=confidence,
                )

        return self.state

    def reset(self) -> None:
        self._beat_times.clear()
        self.state = TempoState()
