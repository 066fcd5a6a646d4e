"""
Offline analysis pipeline.

Replays an audio file through the feature engine frame by frame and
exports the resulting feature manifest.
"""

from pathlib import Path
from typing import Any, Union

from pulsescope.config import EngineConfig
from pulsescope.engine import FeatureEngine, FeatureSet
from pulsescope.io.exporter import FeatureExporter
from pulsescope.io.source import FileSpectrumSource, check_frame_rate


class AnalysisPipeline:
    """
    File-to-manifest processing pipeline.

    Combines frame replay, the real-time engine and export into a single
    interface. The engine sees exactly what it would see from a live
    capture running at ``target_fps``.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        target_fps: int = 60,
        sample_rate: int = 22050,
        include_spectrum: bool = False,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Engine configuration.
            target_fps: Frames per second to replay at.
            sample_rate: Audio sample rate for loading.
            include_spectrum: Write raw frequency data into JSON manifests.

        Raises:
            ValueError: If target_fps is not positive or exceeds sample_rate.
        """
        check_frame_rate(target_fps, sample_rate)
        self.config = config or EngineConfig()
        self.target_fps = target_fps
        self.sample_rate = sample_rate

        self.engine = FeatureEngine(self.config)
        self.exporter = FeatureExporter(include_spectrum=include_spectrum)

    def source(self, audio_path: Union[str, Path]) -> FileSpectrumSource:
        return FileSpectrumSource(
            audio_path,
            config=self.config,
            sample_rate=self.sample_rate,
            fps=self.target_fps,
        )

    def analyze(self, audio_path: Union[str, Path]) -> list[FeatureSet]:
        """
        Run every frame of a file through a freshly reset engine.

        Args:
            audio_path: Path to input audio file.

        Returns:
            One FeatureSet per frame, in order.
        """
        self.engine.reset()
        results: list[FeatureSet] = []
        self.engine.on_features(results.append)
        try:
            for frame in self.source(audio_path):
                self.engine.submit_frame(frame)
        finally:
            self.engine.on_features(None)
        return results

    def export(
        self,
        feature_sets: list[FeatureSet],
        output_path: Union[str, Path],
        format: str = "json",
    ) -> Path:
        if format == "numpy":
            return self.exporter.export_numpy(feature_sets, self.target_fps, output_path)
        return self.exporter.export_json(feature_sets, self.target_fps, output_path)

    def process(
        self,
        audio_path: Union[str, Path],
        output_path: Union[str, Path] | None = None,
        format: str = "json",
    ) -> dict[str, Any]:
        """
        Run the complete pipeline from audio file to manifest.

        Args:
            audio_path: Path to input audio file.
            output_path: Path for output manifest. If None, only returns dict.
            format: Output format ("json" or "numpy").

        Returns:
            Dictionary containing manifest data and processing info.
        """
        feature_sets = self.analyze(Path(audio_path))
        manifest = self.exporter.to_dict(feature_sets, self.target_fps)
        metadata = manifest["metadata"]

        result = {
            "manifest": manifest,
            "tempo": metadata["tempo"],
            "tempo_confidence": metadata["tempo_confidence"],
            "duration": metadata["duration"],
            "n_frames": metadata["n_frames"],
            "fps": self.target_fps,
        }

        if output_path:
            written_path = self.export(feature_sets, output_path, format)
            result["output_path"] = str(written_path)

        return result
