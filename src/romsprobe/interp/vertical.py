"""Sigma-level bracketing for terrain-following vertical coordinates.

Sigma runs from -1 at the seabed to 0 at the free surface, so the physical
depth of level ``i`` at a location with floor depth ``H`` is
``-sigma[i] * H``. Level 0 is the deepest.

Example: a probe at 1.5 m over s_depths = [2.2, 1.7, 1.2, 0.7, 0.2] brackets
level 1 (1.7 m, last level still deeper than the probe) and level 2.
"""
from dataclasses import dataclass

import numpy as np

from romsprobe.config import NO_LEVEL


@dataclass(frozen=True)
class VerticalBracket:
    """Lower bracket level ``level`` and the gaps to it and to ``level + 1``.

    Either gap may be ``NO_LEVEL`` (-1) when that side does not exist.
    ``level`` is -1 for a probe at or below the deepest level; only level 0
    (the ``level + 1`` side) is then usable.
    """
    level: int
    dist_to_level: float
    dist_to_next: float

    @property
    def degenerate(self) -> bool:
        """Both sides missing; only happens on a single-level grid."""
        return self.dist_to_level == NO_LEVEL and self.dist_to_next == NO_LEVEL


def sigma_depths(floor_depth: float, sigma_levels) -> np.ndarray:
    """Physical depth (positive down) of each sigma level."""
    return -np.asarray(sigma_levels, dtype=float) * float(floor_depth)


def resolve_level(floor_depth: float, depth: float, sigma_levels) -> VerticalBracket:
    """Find the sigma levels bracketing a probe at ``depth``.

    The lower bracket ``k`` is the last level, scanning up from the seabed,
    whose physical depth is still greater than ``depth``; a probe at or below
    the deepest level gets ``k = -1`` and is bracketed by level 0 alone.
    ``dist_to_level`` is ``NO_LEVEL`` unless ``k`` is above the first level
    and ``dist_to_next`` is ``NO_LEVEL`` when ``k`` is the last one.
    """
    s_depths = sigma_depths(floor_depth, sigma_levels)
    n = s_depths.size
    if n == 0:
        raise ValueError('sigma_levels is empty')

    k = 0
    while k < n and s_depths[k] > depth:
        k += 1
    level = k - 1

    dist_to_level = float(s_depths[level] - depth) if level > 0 else NO_LEVEL
    dist_to_next = float(depth - s_depths[level + 1]) if level < n - 1 else NO_LEVEL
    return VerticalBracket(level=level, dist_to_level=dist_to_level, dist_to_next=dist_to_next)
