from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from ..errors import ConfigurationError

DEFAULT_POINT_COUNT = 360


@dataclass(frozen=True, eq=False)
class PhaseLookupTable:
    """
    Phases uniformly spaced over [-pi, pi) with their unit exponentials.

    Lookups snap to the nearest table phase, so the reconstructed phase is
    quantized to `resolution`; the angle error never exceeds resolution / 2.
    Both arrays are read-only once built.
    """
    phases: np.ndarray
    values: np.ndarray

    @classmethod
    def build(cls, point_count: int = DEFAULT_POINT_COUNT) -> "PhaseLookupTable":
        point_count = int(point_count)
        if point_count < 2:
            raise ConfigurationError(f"point_count must be >= 2, got {point_count}")
        step = 2.0 * np.pi / point_count
        phases = np.arange(point_count, dtype=np.float64) * step - np.pi
        values = np.exp(1j * phases)
        phases.setflags(write=False)
        values.setflags(write=False)
        return cls(phases=phases, values=values)

    @property
    def point_count(self) -> int:
        return int(self.phases.size)

    @property
    def resolution(self) -> float:
        return 2.0 * np.pi / self.point_count

    def nearest_index(self, phase):
        """
        Binary search for the insertion point, then keep whichever neighbour is
        closer (the upper one on a tie). Neighbours wrap around the circle, so
        +pi resolves to the -pi entry.
        """
        p = np.asarray(phase, dtype=np.float64)
        m = self.point_count
        hi = np.searchsorted(self.phases, p, side="left")
        lo = hi - 1
        hi_val = np.where(hi < m, self.phases[hi % m], self.phases[0] + 2.0 * np.pi)
        lo_val = np.where(lo >= 0, self.phases[lo % m], self.phases[-1] - 2.0 * np.pi)
        return np.where((p - lo_val) < (hi_val - p), lo % m, hi % m)

    def lookup(self, phase: float) -> complex:
        return complex(self.values[int(self.nearest_index(phase))])

    def lookup_many(self, phases: np.ndarray) -> np.ndarray:
        return self.values[self.nearest_index(phases)]
