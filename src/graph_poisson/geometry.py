"""Point norms and axis-aligned bounding boxes in 3D."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

PointLike = Union[Sequence[float], NDArray[Any]]


def as_point(p: PointLike) -> NDArray[np.float64]:
    """Return `p` as a float array of shape (3,).

    Raises:
        ValueError: If `p` does not hold exactly three coordinates.
    """
    arr = np.asarray(p, dtype=float).reshape(-1)
    if arr.shape[0] != 3:
        raise ValueError(f"Expected a 3D point, got shape {np.shape(p)}")
    return arr


def norm_1(p: PointLike) -> float:
    """Sum of absolute coordinates."""
    return float(np.sum(np.abs(np.asarray(p, dtype=float))))


def norm_2(p: PointLike) -> float:
    """Euclidean length."""
    return float(np.linalg.norm(np.asarray(p, dtype=float)))


def norm_inf(p: PointLike) -> float:
    """Largest absolute coordinate."""
    return float(np.max(np.abs(np.asarray(p, dtype=float))))


@dataclass(frozen=True)
class BoundingBox:
    """Closed axis-aligned box ``[lo, hi]``.

    A box with ``lo > hi`` on any axis is empty and contains nothing.

    Attributes:
        lo: Minimum corner (x, y, z).
        hi: Maximum corner (x, y, z).
    """

    lo: Tuple[float, float, float]
    hi: Tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "lo", tuple(float(v) for v in as_point(self.lo)))
        object.__setattr__(self, "hi", tuple(float(v) for v in as_point(self.hi)))

    @property
    def is_empty(self) -> bool:
        """Return True if the box has an inverted extent on some axis."""
        return any(a > b for a, b in zip(self.lo, self.hi))

    def contains(self, p: PointLike) -> bool:
        """Return True if `p` lies inside the box or on its faces."""
        q = as_point(p)
        return bool(np.all(q >= self.lo) and np.all(q <= self.hi))

    def contains_points(self, points: NDArray[Any]) -> NDArray[np.bool_]:
        """Vectorized `contains` over an (N, 3) array."""
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        lo = np.asarray(self.lo)
        hi = np.asarray(self.hi)
        return np.all((pts >= lo) & (pts <= hi), axis=1)

    def shrink(self, h: float) -> BoundingBox:
        """Return the box moved inwards by `h` on every x and y face.

        The z extent is kept, which is how hole regions are cut out of a
        planar mesh.
        """
        lo = (self.lo[0] + h, self.lo[1] + h, self.lo[2])
        hi = (self.hi[0] - h, self.hi[1] - h, self.hi[2])
        return BoundingBox(lo, hi)
