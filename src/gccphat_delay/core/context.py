from __future__ import annotations
import logging
import threading
from typing import Dict, Optional, Tuple

from .band_filter import FrequencyAxis
from .fft import Radix2FFT
from .phase_lut import DEFAULT_POINT_COUNT, PhaseLookupTable

logger = logging.getLogger(__name__)


class SpectralContext:
    """
    Caches shared by every window of a run: one FFT engine per length, one
    frequency axis per (n, fs), and the phase lookup table.

    Entries are keyed on their exact parameters, so interleaving different
    lengths or sample rates never serves a stale axis. Cache fills happen under
    a lock; everything handed out is read-only, so workers can share a context.
    """

    def __init__(self, lut_points: int = DEFAULT_POINT_COUNT):
        self.lookup = PhaseLookupTable.build(lut_points)
        self._engines: Dict[int, Radix2FFT] = {}
        self._axes: Dict[Tuple[int, float], FrequencyAxis] = {}
        self._lock = threading.Lock()

    def engine(self, n: int) -> Radix2FFT:
        n = int(n)
        eng = self._engines.get(n)
        if eng is None:
            with self._lock:
                eng = self._engines.get(n)
                if eng is None:
                    eng = Radix2FFT.for_length(n)
                    self._engines[n] = eng
                    logger.debug("Prepared FFT engine for n=%d", n)
        return eng

    def frequency_axis(self, n: int, fs: float) -> FrequencyAxis:
        key = (int(n), float(fs))
        axis = self._axes.get(key)
        if axis is None:
            with self._lock:
                axis = self._axes.get(key)
                if axis is None:
                    axis = FrequencyAxis.compute(*key)
                    self._axes[key] = axis
                    logger.debug("Computed frequency axis for n=%d fs=%g", *key)
        return axis


_default: Optional[SpectralContext] = None
_default_lock = threading.Lock()


def default_context() -> SpectralContext:
    """Lazily built context for calls that do not pass their own."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = SpectralContext()
    return _default
