from __future__ import annotations

import logging
import math
import numbers
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np

from .core.context import SpectralContext
from .core.fft import is_power_of_two
from .errors import ConfigurationError, EngineMisuseError
from .metrics.delay import gcc_phat
from .metrics.levels import compute_levels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowDelay:
    index: int
    delay_ms: float
    rms: float


@dataclass(frozen=True)
class WindowFailure:
    index: int
    reason: str


WindowResult = Union[WindowDelay, WindowFailure]


@dataclass
class DelayTrack:
    """
    Per-window results of one run, in window order. Failed windows are absent
    from the arrays and listed in `failures` instead.
    """
    fs: float
    buffer_size: int
    num_windows: int
    window_indices: np.ndarray
    delays_ms: np.ndarray
    rms: np.ndarray
    failures: List[WindowFailure] = field(default_factory=list)

    def __len__(self) -> int:
        return int(self.delays_ms.size)

    @property
    def start_times_s(self) -> np.ndarray:
        return self.window_indices * self.buffer_size / float(self.fs)


def _validate(
    a: np.ndarray, b: np.ndarray, fs: float, buffer_size: int, workers: int, fmin, fmax,
) -> None:
    if a.ndim != 1 or b.ndim != 1:
        raise ConfigurationError("Expected one 1-D sample array per channel")
    if a.size != b.size:
        raise ConfigurationError(f"Channel lengths differ: {a.size} vs {b.size}")
    if buffer_size < 2 or not is_power_of_two(buffer_size):
        raise ConfigurationError(f"buffer_size must be a power of two >= 2, got {buffer_size}")
    if not fs > 0:
        raise ConfigurationError(f"fs must be positive, got {fs}")
    if workers < 1:
        raise ConfigurationError(f"workers must be >= 1, got {workers}")
    for name, value in (("fmin", fmin), ("fmax", fmax)):
        if name == "fmax" and value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise ConfigurationError(f"{name} must be a finite number, got {value!r}")


def process_window(
    channel_a: np.ndarray,
    channel_b: np.ndarray,
    index: int,
    *,
    fs: float,
    buffer_size: int,
    fmin: float,
    fmax: float,
    normalize: bool = True,
    compute_rms: bool = True,
    context: Optional[SpectralContext] = None,
) -> WindowResult:
    """
    Delay (and RMS) of window `index`. Errors become a WindowFailure, except
    engine misuse, which means the core itself is broken and is re-raised.
    """
    start = index * buffer_size
    wa = channel_a[start:start + buffer_size]
    wb = channel_b[start:start + buffer_size]
    try:
        res = gcc_phat(wa, wb, fs=fs, fmin=fmin, fmax=fmax, normalize=normalize, context=context)
        rms = compute_levels(wa, wb).rms if compute_rms else float("nan")
    except EngineMisuseError:
        raise
    except Exception as exc:
        logger.debug("Window %d failed", index, exc_info=True)
        return WindowFailure(index=index, reason=f"{type(exc).__name__}: {exc}")
    return WindowDelay(index=index, delay_ms=res.delay_ms, rms=rms)


def estimate_delays(
    channel_a: np.ndarray,
    channel_b: np.ndarray,
    *,
    fs: float,
    buffer_size: int,
    fmin: float = 0.0,
    fmax: Optional[float] = None,
    normalize: bool = True,
    compute_rms: bool = True,
    workers: int = 1,
    context: Optional[SpectralContext] = None,
) -> DelayTrack:
    """
    Slice both channels into consecutive, non-overlapping windows of
    buffer_size samples and estimate one delay per window.

    A trailing remainder shorter than buffer_size is dropped. fmax=None means
    fs/2. With workers > 1 windows run on a thread pool; the output keeps
    window order either way.
    """
    a = np.asarray(channel_a, dtype=np.float64)
    b = np.asarray(channel_b, dtype=np.float64)
    buffer_size = int(buffer_size)
    workers = int(workers)
    _validate(a, b, fs, buffer_size, workers, fmin, fmax)

    if fmax is None:
        fmax = fs / 2.0
    ctx = context or SpectralContext()

    num_windows = a.size // buffer_size
    tail = a.size - num_windows * buffer_size
    if tail:
        logger.debug("Dropping %d trailing samples shorter than one buffer", tail)

    def run(k: int) -> WindowResult:
        return process_window(
            a, b, k,
            fs=fs, buffer_size=buffer_size, fmin=fmin, fmax=fmax,
            normalize=normalize, compute_rms=compute_rms, context=ctx,
        )

    results: List[Optional[WindowResult]] = [None] * num_windows
    if workers == 1:
        for k in range(num_windows):
            results[k] = run(k)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(run, k): k for k in range(num_windows)}
            for fut in as_completed(futures):
                results[futures[fut]] = fut.result()

    ok: List[WindowDelay] = []
    failures: List[WindowFailure] = []
    for r in results:
        if isinstance(r, WindowFailure):
            logger.warning("Skipping window %d: %s", r.index, r.reason)
            failures.append(r)
        else:
            ok.append(r)

    logger.info(
        "Processed %d/%d windows (buffer=%d, fs=%g Hz, band=%g..%g Hz)",
        len(ok), num_windows, buffer_size, fs, fmin, fmax,
    )

    return DelayTrack(
        fs=float(fs),
        buffer_size=buffer_size,
        num_windows=num_windows,
        window_indices=np.array([r.index for r in ok], dtype=np.int64),
        delays_ms=np.array([r.delay_ms for r in ok], dtype=np.float64),
        rms=np.array([r.rms for r in ok], dtype=np.float64),
        failures=failures,
    )
