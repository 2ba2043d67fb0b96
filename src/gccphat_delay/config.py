from __future__ import annotations
import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Optional

import yaml

from .core.fft import is_power_of_two
from .core.phase_lut import DEFAULT_POINT_COUNT
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

OUTPUT_MODES = ("console", "csv")
NUMERIC_FIELDS = {"buffer_size": int, "workers": int, "lut_points": int, "fmin": float, "fmax": float}


def _as_number(key: str, value):
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ConfigurationError(f"{key} must be finite, got {value!r}")
    if NUMERIC_FIELDS[key] is int:
        if not number.is_integer():
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")
        return int(number)
    return number


@dataclass(frozen=True)
class AnalysisConfig:
    buffer_size: int = 1024
    fmin: float = 0.0
    fmax: Optional[float] = None     # None => fs/2
    normalize: bool = True           # PHAT weighting
    compute_rms: bool = True
    workers: int = 1
    lut_points: int = DEFAULT_POINT_COUNT
    output: str = "console"          # console/csv
    csv_path: Optional[str] = None
    summary_path: Optional[str] = None
    plot_path: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> "AnalysisConfig":
        """
        Accepts either flat keys or an `analysis:` section. Unknown keys are an error.
        """
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config must be a mapping, got {type(raw).__name__}")
        raw = dict(raw)
        section = raw.pop("analysis", None) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'analysis' section must be a mapping, got {type(section).__name__}")
        merged = {**raw, **section}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**merged)._coerced()

    def _coerced(self) -> "AnalysisConfig":
        values = {}
        for key in NUMERIC_FIELDS:
            value = getattr(self, key)
            if key == "fmax" and value is None:
                continue
            values[key] = _as_number(key, value)
        return replace(self, **values)

    def with_overrides(self, **overrides) -> "AnalysisConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def resolved_fmax(self, fs: float) -> float:
        return float(fs) / 2.0 if self.fmax is None else float(self.fmax)

    def validate(self, fs: Optional[float] = None) -> "AnalysisConfig":
        """Returns a copy with the numeric fields normalized to int/float."""
        cfg = self._coerced()
        if cfg.buffer_size < 2 or not is_power_of_two(cfg.buffer_size):
            raise ConfigurationError(f"buffer_size must be a power of two >= 2, got {cfg.buffer_size}")
        if cfg.fmin < 0:
            raise ConfigurationError(f"fmin must be >= 0, got {cfg.fmin}")
        if cfg.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {cfg.workers}")
        if cfg.lut_points < 2:
            raise ConfigurationError(f"lut_points must be >= 2, got {cfg.lut_points}")
        if cfg.output not in OUTPUT_MODES:
            raise ConfigurationError(f"output must be one of {OUTPUT_MODES}, got {cfg.output!r}")

        if fs is not None:
            fmax = cfg.resolved_fmax(fs)
            if not (0.0 <= cfg.fmin < fmax <= fs / 2.0):
                # still well defined: the band mask just keeps nothing (or everything up to Nyquist)
                logger.warning(
                    "Band %g..%g Hz is outside 0 <= fmin < fmax <= fs/2 (%g Hz)", cfg.fmin, fmax, fs / 2.0,
                )
        return cfg


def load_yaml(path: str) -> dict:
    with open(path, "r") as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse config file {path}: {exc}") from exc


def load_config(path: Optional[str] = None, **overrides) -> AnalysisConfig:
    cfg = AnalysisConfig.from_dict(load_yaml(path)) if path else AnalysisConfig()
    return cfg.with_overrides(**overrides)
