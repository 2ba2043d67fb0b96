from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from ..errors import ConfigurationError
from .fft import is_power_of_two

if TYPE_CHECKING:
    from .context import SpectralContext

BAND_MODES = ("pass", "reject")


@dataclass(frozen=True, eq=False)
class FrequencyAxis:
    """Signed frequency (Hz) of every FFT bin for a given (n, fs)."""
    n: int
    fs: float
    freqs: np.ndarray

    @classmethod
    def compute(cls, n: int, fs: float) -> "FrequencyAxis":
        n = int(n)
        fs = float(fs)
        if n < 2 or not is_power_of_two(n):
            raise ConfigurationError(f"Frequency axis needs a power-of-two length >= 2, got {n}")
        half = n // 2
        pos = np.arange(half + 1, dtype=np.float64) * fs / 2.0 / half
        neg = -pos[1:-1][::-1]
        freqs = np.concatenate([pos, neg])
        freqs.setflags(write=False)
        return cls(n=n, fs=fs, freqs=freqs)


@dataclass(frozen=True, eq=False)
class BandMask:
    n: int
    in_band: np.ndarray
    out_of_band: np.ndarray

    @property
    def neither(self) -> np.ndarray:
        """Bins claimed by neither rule; empty for any sane 0 <= fmin <= fmax."""
        taken = np.zeros(self.n, dtype=bool)
        taken[self.in_band] = True
        taken[self.out_of_band] = True
        return np.flatnonzero(~taken)


def compute_band_mask(axis: FrequencyAxis, fmin: float, fmax: float) -> BandMask:
    """
    in-band:     fmin <= |f| <= fmax (edges inclusive)
    out-of-band: |f| < fmin or |f| > fmax
    A bin already in-band is never also out-of-band.
    """
    f = axis.freqs
    in_band = ((f >= fmin) & (f <= fmax)) | ((f <= -fmin) & (f >= -fmax))
    out_of_band = ~in_band & (((f < fmin) & (f > -fmin)) | (f < -fmax) | (f > fmax))
    return BandMask(n=axis.n, in_band=np.flatnonzero(in_band), out_of_band=np.flatnonzero(out_of_band))


def band_limit(
    signal: np.ndarray,
    fs: float,
    fmin: float,
    fmax: float,
    *,
    mode: str = "pass",
    context: Optional["SpectralContext"] = None,
) -> np.ndarray:
    """
    Band-limited, phase-quantized spectrum of a real buffer.

    The amplitude envelope is |Re(X)|, not |X|. mode="pass" zeroes the
    out-of-band bins, mode="reject" the in-band ones. Each bin's phase is
    replaced by the nearest lookup-table phase. Returns the spectrum, not a
    time signal.
    """
    from .context import default_context

    if mode not in BAND_MODES:
        raise ValueError(f"mode must be one of {BAND_MODES}, got {mode!r}")
    x = np.array(signal, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError("Expected mono array")
    if not np.all(np.isfinite(x)):
        raise ValueError("Signal contains non-finite samples")

    ctx = context or default_context()
    n = x.size
    axis = ctx.frequency_axis(n, fs)
    engine = ctx.engine(n)

    im = np.zeros(n, dtype=np.float64)
    engine.forward(x, im)
    spectrum = x + 1j * im

    mask = compute_band_mask(axis, fmin, fmax)
    amplitude = np.abs(spectrum.real)
    if mode == "pass":
        amplitude[mask.out_of_band] = 0.0
    else:
        amplitude[mask.in_band] = 0.0

    return amplitude * ctx.lookup.lookup_many(np.angle(spectrum))
