from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class Levels:
    peak: float
    peak_dbfs: float
    rms: float
    rms_dbfs: float


def _db(x: float, eps: float = 1e-12) -> float:
    return float(20.0 * np.log10(max(x, eps)))


def compute_levels(*channels: np.ndarray) -> Levels:
    """
    Peak and RMS over all samples of the given channels taken together.
    """
    parts = [np.asarray(c, dtype=np.float64).flatten() for c in channels]
    x = np.concatenate(parts) if parts else np.zeros(0)
    if x.size == 0:
        return Levels(0.0, -120.0, 0.0, -120.0)

    peak = float(np.max(np.abs(x)))
    rms = float(np.sqrt(np.mean(x * x)))

    return Levels(
        peak=peak,
        peak_dbfs=_db(peak),
        rms=rms,
        rms_dbfs=_db(rms),
    )
