"""
Heart Volume Generator
=======================

Samples home positions inside a heart-shaped solid built from the classic
parametric heart curve.
"""

import math
import numpy as np
from typing import Tuple


def heart_curve(t):
    """
    Boundary of the heart for angle ``t`` (scalar or array).

    x = 16 sin^3(t)
    y = 13 cos(t) - 5 cos(2t) - 2 cos(3t) - cos(4t)
    """
    t = np.asarray(t, dtype=np.float64)
    x = 16.0 * np.sin(t) ** 3
    y = 13.0 * np.cos(t) - 5.0 * np.cos(2 * t) - 2.0 * np.cos(3 * t) - np.cos(4 * t)
    return x, y


class HeartVolumeGenerator:
    """
    Stochastic interior sampler for the heart solid.

    Interior points scale a random boundary point by ``r = sqrt(u)``, which
    spreads them evenly over the area instead of bunching them at the
    center. Depth shrinks with the same factor so the volume tapers toward
    the outline. The raw curve sits low, so every point is lifted by
    ``y_offset``.
    """

    def __init__(self, depth: float = 5.0, y_offset: float = 2.0, seed=None):
        self.depth = depth
        self.y_offset = y_offset
        self._rng = np.random.default_rng(seed)

    def point_at(self, t, r, depth_unit=0.0) -> np.ndarray:
        """
        Deterministic mapping from sample parameters to 3D points.

        Args:
            t: angle along the boundary curve
            r: radial scale in [0, 1]
            depth_unit: position through the thickness in [-1, 1]

        Returns:
            float32 array of shape (3,) for scalars or (N, 3)
        """
        t, r, depth_unit = np.broadcast_arrays(
            np.asarray(t, dtype=np.float64),
            np.asarray(r, dtype=np.float64),
            np.asarray(depth_unit, dtype=np.float64),
        )
        x, y = heart_curve(t)
        points = np.stack([
            x * r,
            y * r + self.y_offset,
            depth_unit * self.depth * r,
        ], axis=-1)
        return points.astype(np.float32)

    def sample_polar(self, count: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Draw ``count`` (t, r, depth_unit) sample parameters."""
        t = self._rng.uniform(0.0, 2 * math.pi, count)
        r = np.sqrt(self._rng.random(count))
        depth_unit = self._rng.uniform(-1.0, 1.0, count)
        return t, r, depth_unit

    def sample(self, count: int) -> np.ndarray:
        """Draw ``count`` interior points as a (count, 3) float32 array."""
        return self.point_at(*self.sample_polar(count))

    def sample_point(self) -> np.ndarray:
        """Draw a single interior point."""
        return self.sample(1)[0]
