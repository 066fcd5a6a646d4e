"""
Engine configuration.

All tunables are supplied once at construction time. Invalid values are
rejected immediately with ConfigError; nothing is re-validated mid-stream.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Union


class ConfigError(ValueError):
    """Raised when an engine configuration value is out of range."""


@dataclass(frozen=True)
class BandBeatParams:
    """Beat detection parameters for one tracked band."""

    multiplier: float = 1.5  # dynamic threshold = mean(history) * multiplier
    refractory: float = 0.1  # seconds between beats

    def __post_init__(self):
        if self.multiplier <= 0:
            raise ConfigError(f"multiplier must be positive, got {self.multiplier}")
        if self.refractory < 0:
            raise ConfigError(f"refractory must be >= 0, got {self.refractory}")


@dataclass(frozen=True)
class EngineConfig:
    """
    Complete FeatureEngine configuration.

    Defaults reproduce the reference analyzer: 2048-point FFT, bass/mid/high
    beat multipliers of 1.5/1.2/1.8, a 5-frame smoothing history, a 20-frame
    beat and flux history, and a 6 second tempo window.
    """

    fft_size: int = 2048
    bass: BandBeatParams = field(default_factory=lambda: BandBeatParams(1.5, 0.2))
    mid: BandBeatParams = field(default_factory=lambda: BandBeatParams(1.2, 0.1))
    high: BandBeatParams = field(default_factory=lambda: BandBeatParams(1.8, 0.1))
    band_history: int = 5
    beat_history: int = 20
    tempo_window: float = 6.0
    tempo_min_beats: int = 4
    flux_history: int = 20
    flux_threshold: float = 0.5
    peak_floor: float = 100.0
    max_peaks: int = 3

    def __post_init__(self):
        if self.fft_size <= 0:
            raise ConfigError(f"fft_size must be positive, got {self.fft_size}")
        for name in ("band_history", "beat_history", "flux_history"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")
        if self.tempo_window <= 0:
            raise ConfigError(f"tempo_window must be positive, got {self.tempo_window}")
        if self.tempo_min_beats < 2:
            # Need at least one interval to estimate anything
            raise ConfigError(
                f"tempo_min_beats must be at least 2, got {self.tempo_min_beats}"
            )
        if self.flux_threshold < 0:
            raise ConfigError(f"flux_threshold must be >= 0, got {self.flux_threshold}")
        if self.peak_floor < 0:
            raise ConfigError(f"peak_floor must be >= 0, got {self.peak_floor}")
        if self.max_peaks < 0:
            raise ConfigError(f"max_peaks must be >= 0, got {self.max_peaks}")

    @property
    def n_bins(self) -> int:
        """Spectrum length implied by fft_size."""
        return self.fft_size // 2

    def beat_params(self) -> dict[str, BandBeatParams]:
        """Per-band beat parameters keyed by band name."""
        return {"bass": self.bass, "mid": self.mid, "high": self.high}

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        """
        Build a config from a plain dictionary.

        Missing keys keep their defaults. Unknown keys are rejected so a
        typo in a config file does not silently fall back to a default.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("bass", "mid", "high"):
                if isinstance(value, BandBeatParams):
                    kwargs[key] = value
                elif isinstance(value, dict):
                    try:
                        kwargs[key] = BandBeatParams(**value)
                    except TypeError as exc:
                        raise ConfigError(f"Invalid {key} parameters: {exc}") from exc
                else:
                    raise ConfigError(f"{key} must be a mapping, got {type(value).__name__}")
            else:
                kwargs[key] = value
        return cls(**kwargs)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a JSON file."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{path}: invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")
    return EngineConfig.from_dict(data)


def save_config(config: EngineConfig, path: Union[str, Path]) -> Path:
    """Write an EngineConfig to a JSON file."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    return path
