"""Frame sources and feature export."""

from pulsescope.io.exporter import FeatureExporter
from pulsescope.io.source import FileSpectrumSource, FrameMailbox

__all__ = ["FeatureExporter", "FileSpectrumSource", "FrameMailbox"]
