"""
FeatureSet serialization module.

Turns a sequence of engine outputs into a JSON manifest or a columnar
NumPy archive for offline inspection and downstream tooling.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence, Union

import numpy as np

from pulsescope.core.bands import BAND_NAMES
from pulsescope.engine import FeatureSet


@dataclass
class ManifestMetadata:
    """Metadata header for a feature manifest."""

    n_frames: int
    fps: float
    tempo: int
    tempo_confidence: float
    beat_count: int
    onset_count: int
    duration: float
    version: str = "1.0"


class FeatureExporter:
    """
    Exports FeatureSets to manifest formats.

    Each manifest frame holds every derived signal of one engine tick.
    """

    def __init__(self, precision: int = 4, include_spectrum: bool = False):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
            include_spectrum: Also write the raw frequency data per frame.
        """
        self.precision = precision
        self.include_spectrum = include_spectrum

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def frame_to_dict(self, features: FeatureSet) -> dict[str, Any]:
        """Build a single frame's data dictionary."""
        frame: dict[str, Any] = {
            "frame_index": features.frame_index,
            "time": self._round(features.timestamp),
            "average": self._round(features.average),
            "bands": {
                name: self._round(value) for name, value in features.bands.as_dict().items()
            },
            "beats": features.beats.as_dict(),
            "is_beat": features.is_beat,
            "tempo": features.tempo,
            "tempo_confidence": self._round(features.tempo_confidence),
            "flux": self._round(features.flux.value),
            "is_onset": features.flux.is_onset,
            "peaks": [
                {
                    "frequency": self._round(peak.frequency),
                    "amplitude": self._round(peak.amplitude),
                }
                for peak in features.peaks
            ],
        }
        if features.degenerate:
            frame["degenerate"] = True
        if self.include_spectrum:
            frame["frequency_data"] = [self._round(v) for v in features.frequency_data]
        return frame

    def build_manifest(
        self,
        feature_sets: Sequence[FeatureSet],
        fps: float,
    ) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            feature_sets: Engine outputs in processing order.
            fps: Frame rate the frames were produced at.

        Returns:
            Manifest dictionary ready for serialization.
        """
        last = feature_sets[-1] if feature_sets else None
        duration = 0.0
        if len(feature_sets) > 1:
            duration = feature_sets[-1].timestamp - feature_sets[0].timestamp

        metadata = ManifestMetadata(
            n_frames=len(feature_sets),
            fps=fps,
            tempo=last.tempo if last else 0,
            tempo_confidence=self._round(last.tempo_confidence) if last else 0.0,
            beat_count=sum(1 for f in feature_sets if f.is_beat),
            onset_count=sum(1 for f in feature_sets if f.is_onset),
            duration=self._round(duration),
        )

        return {
            "metadata": {
                "n_frames": metadata.n_frames,
                "fps": metadata.fps,
                "tempo": metadata.tempo,
                "tempo_confidence": metadata.tempo_confidence,
                "beat_count": metadata.beat_count,
                "onset_count": metadata.onset_count,
                "duration": metadata.duration,
                "version": metadata.version,
            },
            "frames": [self.frame_to_dict(f) for f in feature_sets],
        }

    def export_json(
        self,
        feature_sets: Sequence[FeatureSet],
        fps: float,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """Export manifest to JSON file."""
        manifest = self.build_manifest(feature_sets, fps)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        feature_sets: Sequence[FeatureSet],
        fps: float,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export features as a columnar NumPy .npz archive.

        Peaks are padded to a fixed width with zeros; ``n_peaks`` gives the
        real count per frame. A missing ``.npz`` suffix is appended, as
        numpy does, and the returned path is the file actually written.
        """
        output_path = Path(output_path)
        if output_path.suffix != ".npz":
            output_path = output_path.with_name(output_path.name + ".npz")
        n = len(feature_sets)
        max_peaks = max((len(f.peaks) for f in feature_sets), default=0)

        peak_freqs = np.zeros((n, max_peaks))
        peak_amps = np.zeros((n, max_peaks))
        for i, f in enumerate(feature_sets):
            for j, peak in enumerate(f.peaks):
                peak_freqs[i, j] = peak.frequency
                peak_amps[i, j] = peak.amplitude

        np.savez_compressed(
            output_path,
            times=np.array([f.timestamp for f in feature_sets]),
            average=np.array([f.average for f in feature_sets]),
            bands=np.array([f.bands.as_array() for f in feature_sets]).reshape(n, len(BAND_NAMES)),
            band_names=np.array(BAND_NAMES),
            beat_bass=np.array([f.beats.bass for f in feature_sets], dtype=bool),
            beat_mid=np.array([f.beats.mid for f in feature_sets], dtype=bool),
            beat_high=np.array([f.beats.high for f in feature_sets], dtype=bool),
            is_beat=np.array([f.is_beat for f in feature_sets], dtype=bool),
            tempo=np.array([f.tempo for f in feature_sets], dtype=int),
            tempo_confidence=np.array([f.tempo_confidence for f in feature_sets]),
            flux=np.array([f.flux.value for f in feature_sets]),
            is_onset=np.array([f.is_onset for f in feature_sets], dtype=bool),
            peak_frequencies=peak_freqs,
            peak_amplitudes=peak_amps,
            n_peaks=np.array([len(f.peaks) for f in feature_sets], dtype=int),
            fps=fps,
            n_frames=n,
        )

        return output_path

    def to_dict(
        self,
        feature_sets: Sequence[FeatureSet],
        fps: float,
    ) -> dict[str, Any]:
        """Return manifest as dictionary (for in-memory use)."""
        return self.build_manifest(feature_sets, fps)
