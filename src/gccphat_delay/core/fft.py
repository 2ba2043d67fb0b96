from __future__ import annotations
from typing import Optional

import numpy as np

from ..errors import ConfigurationError, EngineMisuseError


def is_power_of_two(n: int) -> bool:
    n = int(n)
    return n > 0 and (n & (n - 1)) == 0


def log2_exact(n: int) -> int:
    """
    log2 of a power-of-two length. Anything else is a configuration error.
    """
    if not is_power_of_two(n):
        raise ConfigurationError(f"FFT length must be a power of two, got {n}")
    return int(n).bit_length() - 1


def bit_reverse(x: int, num_bits: int) -> int:
    """Reverse the lowest num_bits bits of x (0b1101 -> 0b1011)."""
    y = 0
    for _ in range(num_bits):
        y = (y << 1) | (x & 1)
        x >>= 1
    return y


def bit_reverse_permutation(log_n: int) -> np.ndarray:
    """Array rev with rev[i] == bit_reverse(i, log_n) for every i < 2**log_n."""
    idx = np.arange(1 << log_n, dtype=np.int64)
    rev = np.zeros_like(idx)
    for _ in range(log_n):
        rev = (rev << 1) | (idx & 1)
        idx >>= 1
    return rev


class Radix2FFT:
    """
    In-place iterative radix-2 complex FFT over buffers of a fixed length N = 2**log_n.

    Decimation in frequency: log_n stages, each halving the butterfly span and
    doubling the number of sub-transforms. Twiddles are advanced by repeated
    multiplication with the stage step, and every butterfly of one stage is
    evaluated as a single numpy operation. The result is written back through
    the bit-reversal permutation, so callers see natural bin order.

    The engine only holds the permutation, which is read-only once init() ran,
    so one instance can be shared between threads.
    """

    def __init__(self, log_n: Optional[int] = None):
        self._log_n: Optional[int] = None
        self._n = 0
        self._rev: Optional[np.ndarray] = None
        if log_n is not None:
            self.init(log_n)

    @classmethod
    def for_length(cls, n: int) -> "Radix2FFT":
        return cls(log2_exact(n))

    def init(self, log_n: int) -> None:
        log_n = int(log_n)
        if log_n < 0:
            raise ConfigurationError(f"log_n must be >= 0, got {log_n}")
        rev = bit_reverse_permutation(log_n)
        rev.setflags(write=False)
        self._log_n = log_n
        self._n = 1 << log_n
        self._rev = rev

    @property
    def log_n(self) -> Optional[int]:
        return self._log_n

    @property
    def n(self) -> int:
        return self._n

    def forward(self, re: np.ndarray, im: np.ndarray) -> None:
        self._run(re, im, inverse=False)

    def inverse(self, re: np.ndarray, im: np.ndarray) -> None:
        """Inverse transform, including the 1/N scale."""
        self._run(re, im, inverse=True)

    def _check(self, name: str, a: np.ndarray) -> None:
        if not isinstance(a, np.ndarray) or a.dtype.kind != "f":
            raise TypeError(f"{name} must be a floating point numpy array")
        if a.shape != (self._n,):
            raise EngineMisuseError(
                f"{name} has shape {a.shape}, engine was initialized for length {self._n}"
            )
        if not a.flags.writeable:
            raise ValueError(f"{name} is read-only; the transform runs in place")

    def _run(self, re: np.ndarray, im: np.ndarray, *, inverse: bool) -> None:
        if self._rev is None:
            raise EngineMisuseError("FFT engine used before init(log_n)")
        self._check("re", re)
        self._check("im", im)

        n = self._n
        scale = 1.0 / n if inverse else 1.0
        y = np.empty(n, dtype=np.complex128)
        y.real = re
        y.imag = im
        y *= scale

        span = n >> 1
        w_index_step = 1
        for _ in range(self._log_n):
            angle = w_index_step * 2.0 * np.pi / n
            if not inverse:
                angle = -angle
            w_mul = complex(np.cos(angle), np.sin(angle))

            # w_k = w_mul**k, built by successive multiplication
            twiddles = np.empty(span, dtype=np.complex128)
            twiddles[0] = 1.0
            if span > 1:
                twiddles[1:] = np.cumprod(np.full(span - 1, w_mul, dtype=np.complex128))

            # (sub-transforms, top/bottom half, span) view onto y
            blocks = y.reshape(-1, 2, span)
            top = blocks[:, 0, :]
            bot = blocks[:, 1, :]
            diff = top - bot
            blocks[:, 0, :] = top + bot
            blocks[:, 1, :] = diff * twiddles

            span >>= 1
            w_index_step <<= 1

        re[self._rev] = y.real
        im[self._rev] = y.imag


def _split(x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x)
    if x.ndim != 1:
        raise ValueError("Expected a 1-D sequence")
    return np.array(np.real(x), dtype=np.float64), np.array(np.imag(x), dtype=np.float64)


def fft(x: np.ndarray, engine: Optional[Radix2FFT] = None) -> np.ndarray:
    """Complex spectrum of a real or complex power-of-two length sequence."""
    re, im = _split(x)
    engine = engine or Radix2FFT.for_length(re.size)
    engine.forward(re, im)
    return re + 1j * im


def ifft(X: np.ndarray, engine: Optional[Radix2FFT] = None) -> np.ndarray:
    re, im = _split(X)
    engine = engine or Radix2FFT.for_length(re.size)
    engine.inverse(re, im)
    return re + 1j * im
