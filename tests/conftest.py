"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from pulsescope.core.frame import SpectrumFrame

# Default sample rate for test audio
TEST_SR = 22050

# Spectrum defaults matching a 2048-point FFT at 44.1kHz
SPECTRUM_SR = 44100
SPECTRUM_BINS = 1024
FRAME_RATE = 60


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def make_frame():
    """
    Factory for SpectrumFrames.

    Returns:
        Callable(magnitudes=None, timestamp=0.0, sample_rate=44100) -> SpectrumFrame.
        Without magnitudes, a flat spectrum of 10s is used.
    """

    def _make(magnitudes=None, timestamp: float = 0.0, sample_rate: float = SPECTRUM_SR):
        if magnitudes is None:
            magnitudes = np.full(SPECTRUM_BINS, 10.0)
        return SpectrumFrame(
            magnitudes=magnitudes,
            sample_rate=sample_rate,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def kick_frames(make_frame):
    """
    A 120 BPM kick pattern at 60 frames per second.

    Every 30th frame lifts the bass bins (0-9) to 250 over a flat
    background of 10.

    Returns:
        Callable(n_frames) -> list of SpectrumFrames.
    """

    def _make(n_frames: int):
        frames = []
        for i in range(n_frames):
            magnitudes = np.full(SPECTRUM_BINS, 10.0)
            if i % 30 == 0:
                magnitudes[:10] = 250.0
            frames.append(make_frame(magnitudes, timestamp=i / FRAME_RATE))
        return frames

    return _make


@pytest.fixture
def random_frames(make_frame):
    """
    Reproducible random spectra on the byte scale.

    Returns:
        Callable(n_frames, seed=0) -> list of SpectrumFrames.
    """

    def _make(n_frames: int, seed: int = 0):
        rng = np.random.default_rng(seed)
        return [
            make_frame(
                np.floor(rng.uniform(0, 255, SPECTRUM_BINS)),
                timestamp=i / FRAME_RATE,
            )
            for i in range(n_frames)
        ]

    return _make


@pytest.fixture
def click_track(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a simple click track at 120 BPM.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 4.0
    bpm = 120
    samples_per_beat = int(sample_rate * 60 / bpm)
    total_samples = int(sample_rate * duration)

    y = np.zeros(total_samples, dtype=np.float32)

    # Add clicks (short impulses) at each beat
    click_duration = int(sample_rate * 0.01)  # 10ms click
    for beat_start in range(0, total_samples, samples_per_beat):
        click_end = min(beat_start + click_duration, total_samples)
        # Exponential decay click
        click_samples = click_end - beat_start
        decay = np.exp(-np.linspace(0, 5, click_samples))
        y[beat_start:click_end] = 0.8 * decay

    return y, sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, click_track):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = click_track
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path
