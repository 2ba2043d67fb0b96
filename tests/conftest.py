"""Shared pytest configuration and fixtures for the gccphat_delay test suite."""

import os
import sys
from pathlib import Path

import numpy as np
import pytest

os.environ.setdefault("MPLBACKEND", "Agg")

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from gccphat_delay.core.context import SpectralContext  # noqa: E402


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture(scope="session")
def context():
    return SpectralContext()


@pytest.fixture
def noise(rng):
    """One second of white noise at 16 kHz."""
    return rng.standard_normal(16000)
