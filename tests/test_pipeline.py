"""Tests for the AnalysisPipeline module and the CLI."""

import json

import numpy as np
import pytest

from pulsescope.cli import main
from pulsescope.config import EngineConfig, save_config
from pulsescope.engine import FeatureSet
from pulsescope.pipeline import AnalysisPipeline


class TestAnalysisPipeline:
    """Tests for the complete pipeline."""

    def test_analyze_step(self, temp_audio_file):
        """analyze() should return one FeatureSet per frame."""
        pipeline = AnalysisPipeline(target_fps=60)
        result = pipeline.analyze(temp_audio_file)

        assert len(result) > 0
        assert all(isinstance(f, FeatureSet) for f in result)
        assert [f.frame_index for f in result] == list(range(len(result)))

    def test_analyze_detaches_subscriber(self, temp_audio_file):
        """The pipeline does not leave its collector registered."""
        pipeline = AnalysisPipeline(target_fps=60)
        pipeline.analyze(temp_audio_file)

        assert pipeline.engine._callback is None

    def test_repeat_runs_are_identical(self, temp_audio_file):
        """Each run starts from a reset engine."""
        pipeline = AnalysisPipeline(target_fps=60)
        first = pipeline.process(temp_audio_file)["manifest"]
        second = pipeline.process(temp_audio_file)["manifest"]

        assert first == second

    def test_click_track_beats_and_onsets(self, temp_audio_file):
        """Clicks over silence produce beats and onsets."""
        pipeline = AnalysisPipeline(target_fps=60)
        meta = pipeline.process(temp_audio_file)["manifest"]["metadata"]

        assert meta["beat_count"] > 0
        assert meta["onset_count"] > 0

    def test_process_full_pipeline(self, temp_audio_file):
        """process() should run complete pipeline."""
        result = AnalysisPipeline(target_fps=60).process(temp_audio_file)

        assert "manifest" in result
        assert "tempo" in result
        assert "tempo_confidence" in result
        assert "duration" in result
        assert "n_frames" in result
        assert "fps" in result

    def test_process_with_json_output(self, temp_audio_file, tmp_path):
        """process() should write JSON when output_path provided."""
        output_path = tmp_path / "output.json"
        result = AnalysisPipeline(target_fps=60).process(temp_audio_file, output_path=output_path)

        assert "output_path" in result
        assert output_path.exists()

        with open(output_path) as f:
            loaded = json.load(f)
        assert "metadata" in loaded

    def test_process_with_numpy_output(self, temp_audio_file, tmp_path):
        """process() should write NPZ when format=numpy."""
        output_path = tmp_path / "output.npz"
        AnalysisPipeline(target_fps=60).process(
            temp_audio_file,
            output_path=output_path,
            format="numpy",
        )

        assert output_path.exists()

    def test_custom_fps(self, temp_audio_file):
        """Pipeline should respect custom FPS."""
        result = AnalysisPipeline(target_fps=30).process(temp_audio_file)

        assert result["fps"] == 30
        assert result["manifest"]["metadata"]["fps"] == 30

    def test_rejects_non_positive_fps(self):
        """A zero frame rate is an error, not a silent default."""
        with pytest.raises(ValueError, match="fps"):
            AnalysisPipeline(target_fps=0)

    def test_times_increasing(self, temp_audio_file):
        """Frame times should be strictly increasing."""
        manifest = AnalysisPipeline(target_fps=60).process(temp_audio_file)["manifest"]

        times = [f["time"] for f in manifest["frames"]]
        assert np.all(np.diff(times) > 0)


class TestCli:
    """Tests for the pulsescope-analyze entry point."""

    def test_writes_default_output(self, temp_audio_file, capsys):
        """Without -o the manifest lands next to the input."""
        assert main([str(temp_audio_file)]) == 0

        expected = temp_audio_file.with_name("test_audio_features.json")
        assert expected.exists()
        assert "Tempo:" in capsys.readouterr().out

    def test_quiet_numpy_output(self, temp_audio_file, tmp_path, capsys):
        """--format numpy with -q writes npz and prints nothing."""
        output = tmp_path / "out.npz"

        assert main([str(temp_audio_file), "-o", str(output), "--format", "numpy", "-q"]) == 0
        assert output.exists()
        assert capsys.readouterr().out == ""

    def test_config_file(self, temp_audio_file, tmp_path):
        """--config loads engine settings."""
        config_path = save_config(EngineConfig(max_peaks=1), tmp_path / "cfg.json")
        output = tmp_path / "out.json"

        assert main([str(temp_audio_file), "-o", str(output), "-c", str(config_path), "-q"]) == 0

        with open(output) as f:
            frames = json.load(f)["frames"]
        assert all(len(frame["peaks"]) <= 1 for frame in frames)

    def test_missing_input(self, tmp_path, capsys):
        """Missing input exits with status 1."""
        assert main([str(tmp_path / "nope.wav")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_config(self, temp_audio_file, tmp_path, capsys):
        """A bad config file exits with status 1."""
        config_path = tmp_path / "bad.json"
        config_path.write_text(json.dumps({"band_history": 0}), encoding="utf-8")

        assert main([str(temp_audio_file), "-c", str(config_path)]) == 1
        assert "Invalid config" in capsys.readouterr().err

    def test_summary(self, temp_audio_file, tmp_path, capsys):
        """--summary prints metadata."""
        output = tmp_path / "out.json"

        assert main([str(temp_audio_file), "-o", str(output), "--summary"]) == 0
        assert "Manifest Summary" in capsys.readouterr().out

    def test_numpy_output_reports_written_path(self, temp_audio_file, tmp_path, capsys):
        """An output name without .npz is reported with the suffix numpy adds."""
        output = tmp_path / "out"

        assert main([str(temp_audio_file), "-o", str(output), "--format", "numpy"]) == 0
        assert f"Output: {output}.npz" in capsys.readouterr().out
        assert (tmp_path / "out.npz").exists()

    @pytest.mark.parametrize("fps", ["0", "-5", "30000"])
    def test_invalid_fps(self, temp_audio_file, tmp_path, fps, capsys):
        """An fps that gives no usable hop exits with status 1."""
        output = tmp_path / "out.json"

        assert main([str(temp_audio_file), "-o", str(output), "--fps", fps]) == 1
        assert "fps" in capsys.readouterr().err
        assert not output.exists()
