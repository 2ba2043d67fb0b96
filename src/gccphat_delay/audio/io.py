from __future__ import annotations
import soundfile as sf
import numpy as np

from ..errors import AudioDecodeError, ConfigurationError


def read_wav(path: str) -> tuple[np.ndarray, int]:
    try:
        x, fs = sf.read(path, always_2d=True, dtype="float64")
    except sf.SoundFileError as exc:
        raise AudioDecodeError(f"Could not decode {path}: {exc}") from exc
    return x, int(fs)


def read_stereo(path: str) -> tuple[np.ndarray, np.ndarray, int]:
    """
    Returns (left, right, fs) as float64 arrays. Anything but exactly two channels is rejected.
    """
    x, fs = read_wav(path)
    if x.shape[1] != 2:
        raise ConfigurationError(f"{path} must be a stereo file, got {x.shape[1]} channel(s)")
    return np.ascontiguousarray(x[:, 0]), np.ascontiguousarray(x[:, 1]), fs


def write_wav(path: str, x: np.ndarray, fs: int) -> None:
    sf.write(path, x, fs)
