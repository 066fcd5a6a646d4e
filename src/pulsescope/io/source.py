"""
Frame sources for driving the engine.

FileSpectrumSource replays an audio file as a stream of byte-scaled
SpectrumFrames, the way a live analyser would have produced them.
FrameMailbox is the single-slot handoff between a capture thread and the
thread that runs the engine.
"""

import logging
import threading
from pathlib import Path
from typing import Iterator, Optional, Union

import librosa
import numpy as np

from pulsescope.config import EngineConfig
from pulsescope.core.frame import SpectrumFrame

LOGGER = logging.getLogger(__name__)

# dB range mapped onto 0-255, as in a browser AnalyserNode
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0


def magnitudes_to_bytes(
    magnitudes: np.ndarray,
    n_fft: int,
    min_db: float = MIN_DECIBELS,
    max_db: float = MAX_DECIBELS,
) -> np.ndarray:
    """
    Map linear STFT magnitudes onto the 0-255 byte scale.

    Magnitudes are normalized by the FFT size, converted to dB and mapped
    linearly so that min_db -> 0 and max_db -> 255.
    """
    db = librosa.amplitude_to_db(magnitudes / n_fft, ref=1.0, amin=1e-10, top_db=None)
    scaled = (db - min_db) / (max_db - min_db) * 255.0
    return np.floor(np.clip(scaled, 0.0, 255.0))


def check_frame_rate(fps: int, sample_rate: Optional[int]) -> None:
    """Raise ValueError unless ``fps`` gives a hop of at least one sample."""
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    if sample_rate is not None and int(sample_rate / fps) < 1:
        raise ValueError(f"fps {fps} exceeds sample rate {sample_rate}")


class FileSpectrumSource:
    """
    Replays an audio file as a sequence of SpectrumFrames.

    Frame timestamps come from the STFT frame times, so the engine sees a
    clean monotonic clock at exactly ``fps`` frames per second.
    """

    def __init__(
        self,
        audio_path: Union[str, Path],
        config: EngineConfig | None = None,
        sample_rate: int = 22050,
        fps: int = 60,
    ):
        """
        Initialize the source.

        Args:
            audio_path: Path to audio file (wav, mp3, flac).
            config: Engine config; its fft_size sets the STFT size.
            sample_rate: Target sample rate for loading.
            fps: Frames per second to emit.

        Raises:
            ValueError: If fps is not positive or exceeds the sample rate.
        """
        self.audio_path = Path(audio_path)
        self.config = config or EngineConfig()
        self.sample_rate = sample_rate
        check_frame_rate(fps, sample_rate)
        self.fps = fps

    @property
    def n_fft(self) -> int:
        return self.config.fft_size

    def hop_length(self, sr: int) -> int:
        """Hop length in samples for the target FPS."""
        check_frame_rate(self.fps, sr)
        return int(sr / self.fps)

    def load_audio(self) -> tuple[np.ndarray, int]:
        """Load the file as mono at the target sample rate."""
        y, sr = librosa.load(self.audio_path, sr=self.sample_rate, mono=True)
        LOGGER.debug("Loaded %s: %d samples at %d Hz", self.audio_path, len(y), sr)
        return y, sr

    def spectrogram(self, y: np.ndarray, sr: int) -> np.ndarray:
        """Byte-scaled magnitude spectrogram, shape (n_fft // 2, n_frames)."""
        stft = librosa.stft(y, n_fft=self.n_fft, hop_length=self.hop_length(sr))
        # Drop the Nyquist bin to get n_fft // 2 bins
        magnitudes = np.abs(stft)[: self.n_fft // 2]
        return magnitudes_to_bytes(magnitudes, self.n_fft)

    def frames(self) -> Iterator[SpectrumFrame]:
        y, sr = self.load_audio()
        spec = self.spectrogram(y, sr)
        times = librosa.frames_to_time(
            np.arange(spec.shape[1]),
            sr=sr,
            hop_length=self.hop_length(sr),
        )
        for column, t in zip(spec.T, times):
            yield SpectrumFrame(
                magnitudes=column,
                sample_rate=sr,
                timestamp=float(t),
                fft_size=self.n_fft,
            )

    def __iter__(self) -> Iterator[SpectrumFrame]:
        return self.frames()


class FrameMailbox:
    """
    Single-slot, latest-wins handoff between one producer and one consumer.

    The producer never blocks: a frame that was not taken before the next
    put() is overwritten and counted in ``dropped``.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._frame: Optional[SpectrumFrame] = None
        self.dropped = 0

    def put(self, frame: SpectrumFrame) -> None:
        with self._lock:
            if self._frame is not None:
                self.dropped += 1
            self._frame = frame

    def take(self) -> Optional[SpectrumFrame]:
        """Return the pending frame and empty the slot, or None."""
        with self._lock:
            frame, self._frame = self._frame, None
            return frame

    def clear(self) -> None:
        with self._lock:
            self._frame = None
