"""Tests for the spectral flux onset detector."""

import numpy as np
import pytest

from pulsescope.core.flux import FluxDetector, FluxResult


class TestFluxDetector:
    """Tests for flux computation and onset flagging."""

    def test_first_frame_has_no_flux(self):
        """First call always returns zero and no onset."""
        detector = FluxDetector()
        result = detector.update(np.full(64, 255.0))

        assert result == FluxResult(value=0.0, is_onset=False)

    def test_first_frame_is_stored(self):
        """First call seeds the previous spectrum."""
        detector = FluxDetector()
        spectrum = np.arange(64, dtype=float)
        detector.update(spectrum)

        np.testing.assert_array_equal(detector.previous_spectrum, spectrum)

    def test_spike_after_silence_is_an_onset(self):
        """Zero spectrum followed by a spike gives flux > 0 and an onset."""
        detector = FluxDetector()
        detector.update(np.zeros(64))

        spike = np.zeros(64)
        spike[10] = 255.0
        result = detector.update(spike)

        assert result.value == pytest.approx(255.0 / 64)
        assert result.is_onset

    def test_spike_after_steady_baseline_is_an_onset(self):
        """A large rise stands out against a modest running flux."""
        detector = FluxDetector()
        rng = np.random.default_rng(3)
        for _ in range(30):
            detector.update(rng.uniform(40, 60, 64))

        result = detector.update(np.full(64, 250.0))

        assert result.is_onset

    def test_decreases_do_not_count(self):
        """Falling energy produces zero flux."""
        detector = FluxDetector()
        detector.update(np.full(64, 200.0))
        result = detector.update(np.zeros(64))

        assert result.value == 0.0
        assert not result.is_onset

    def test_identical_frames_have_zero_flux(self):
        """No change means no flux and no onset."""
        detector = FluxDetector()
        frame = np.full(64, 100.0)
        detector.update(frame)

        for _ in range(5):
            result = detector.update(frame)
            assert result.value == 0.0
            assert not result.is_onset

    def test_flux_formula(self):
        """Flux is sqrt of summed squared rises over bin count."""
        detector = FluxDetector()
        detector.update(np.array([0.0, 10.0, 0.0, 5.0]))
        result = detector.update(np.array([3.0, 0.0, 4.0, 5.0]))

        assert result.value == pytest.approx(5.0 / 4)

    def test_history_is_fixed_length(self):
        """Flux history keeps its configured length."""
        detector = FluxDetector(history_length=20)
        for i in range(50):
            detector.update(np.full(16, float(i)))

        assert len(detector.history) == 20

    def test_length_change_reseeds(self):
        """A spectrum of a new length restarts comparison instead of failing."""
        detector = FluxDetector()
        detector.update(np.zeros(64))
        result = detector.update(np.full(32, 100.0))

        assert result == FluxResult()
        assert len(detector.previous_spectrum) == 32

    def test_reset_forgets_previous_spectrum(self):
        """After reset() the next call behaves like the first."""
        detector = FluxDetector()
        detector.update(np.zeros(64))
        detector.reset()

        assert detector.previous_spectrum is None
        assert detector.update(np.full(64, 255.0)) == FluxResult()
