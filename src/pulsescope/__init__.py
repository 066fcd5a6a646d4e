"""Real-time audio feature engine for reactive visuals."""

from pulsescope.config import BandBeatParams, ConfigError, EngineConfig
from pulsescope.core.frame import SpectrumFrame
from pulsescope.engine import FeatureEngine, FeatureSet
from pulsescope.io.exporter import FeatureExporter
from pulsescope.pipeline import AnalysisPipeline

__version__ = "0.1.0"
__all__ = [
    "BandBeatParams",
    "ConfigError",
    "EngineConfig",
    "SpectrumFrame",
    "FeatureEngine",
    "FeatureSet",
    "FeatureExporter",
    "AnalysisPipeline",
]
