from __future__ import annotations


class GccPhatError(Exception):
    """Base class for errors raised by gccphat_delay."""


class ConfigurationError(GccPhatError, ValueError):
    """
    Bad run parameters or input shape: buffer size, channel count or lengths,
    FFT length that is not a power of two.
    """


class EngineMisuseError(GccPhatError, RuntimeError):
    """
    The FFT engine was used before init() or with a buffer of the wrong length.
    This is a programming error; the pipeline never skips over it.
    """


class AudioDecodeError(GccPhatError):
    """The audio file could not be read or decoded."""
