from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..core.band_filter import band_limit
from ..core.context import SpectralContext, default_context

PHAT_FLOOR = 1e-6


@dataclass
class DelayResult:
    delay_ms: float
    lag_samples: int
    lags: np.ndarray
    corr: np.ndarray


def cross_correlation(
    spectrum_a: np.ndarray,
    spectrum_b: np.ndarray,
    *,
    normalize: bool = True,
    context: Optional[SpectralContext] = None,
) -> np.ndarray:
    """
    Real cross-correlation (zero lag at index 0) of two spectra of equal length.
    normalize=True applies the PHAT weight 1/max(|Pxy|, 1e-6).
    """
    A = np.asarray(spectrum_a, dtype=np.complex128)
    B = np.asarray(spectrum_b, dtype=np.complex128)
    if A.shape != B.shape or A.ndim != 1:
        raise ValueError(f"Spectra must be 1-D with equal length, got {A.shape} and {B.shape}")

    R = A * np.conj(B)
    if normalize:
        denom = np.abs(R)
        denom[denom < PHAT_FLOOR] = PHAT_FLOOR
        R = R / denom

    ctx = context or default_context()
    re = R.real.copy()
    im = R.imag.copy()
    ctx.engine(re.size).inverse(re, im)
    # imaginary residue is rounding noise for a conjugate-symmetric R
    return re


def find_delay_ms(corr: np.ndarray, fs: float) -> float:
    """
    Peak of the correlation after rotating zero lag to the centre, in ms.
    Positive => the first signal lags the second. The first maximum wins, so a
    flat (e.g. all-zero) correlation gives -N/2 samples.
    """
    corr = np.asarray(corr, dtype=np.float64)
    half = corr.size // 2
    idx = int(np.argmax(np.roll(corr, -half)))
    return float((idx - half) / float(fs) * 1000.0)


def gcc_phat(
    x: np.ndarray,
    y: np.ndarray,
    *,
    fs: float,
    fmin: float,
    fmax: float,
    normalize: bool = True,
    context: Optional[SpectralContext] = None,
) -> DelayResult:
    """
    GCC-PHAT delay of one buffer pair (positive => x lags y, i.e. x occurs AFTER y).
    corr is returned centred, lags[i] being its lag in samples.
    """
    ctx = context or default_context()
    X = band_limit(x, fs, fmin, fmax, mode="pass", context=ctx)
    Y = band_limit(y, fs, fmin, fmax, mode="pass", context=ctx)
    cc = cross_correlation(X, Y, normalize=normalize, context=ctx)

    delay_ms = find_delay_ms(cc, fs)
    half = cc.size // 2
    lags = np.arange(-half, cc.size - half, dtype=np.int32)

    return DelayResult(
        delay_ms=delay_ms,
        lag_samples=int(round(delay_ms * fs / 1000.0)),
        lags=lags,
        corr=np.roll(cc, -half),
    )
