"""Per-buffer GCC-PHAT time delay estimation between two audio channels."""
from __future__ import annotations

from .core.context import SpectralContext
from .errors import AudioDecodeError, ConfigurationError, EngineMisuseError, GccPhatError
from .metrics.delay import DelayResult, cross_correlation, find_delay_ms, gcc_phat
from .pipeline import DelayTrack, WindowDelay, WindowFailure, estimate_delays

__version__ = "0.1.0"
