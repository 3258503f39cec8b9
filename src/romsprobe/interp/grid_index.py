"""Nearest-4 node search on a curvilinear horizontal mesh.

The same routine serves the rho grid and both staggered vector grids. It
returns the four nodes closest to a planar query point in ascending distance
order. Ties go to the node met first in a row-major scan of the grid, so the
result never depends on how the search is carried out.

Two strategies share that contract:
- a vectorized full scan (default), linear in the number of nodes;
- a `scipy.spatial.cKDTree` lookup for large meshes, which only proposes
  candidates; the winners are picked by the same exact rule as the scan.
"""
from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np

from romsprobe.config import MAX_SEARCH_RADIUS
from romsprobe.interp.errors import OutOfGridError
from romsprobe.interp.utils import safe_build_kdtree

logger = logging.getLogger(__name__)

N_NEIGHBORS = 4


@dataclass(frozen=True)
class NeighborSet:
    """Four (row, col) grid indices and their planar distances, nearest first."""
    rows: np.ndarray
    cols: np.ndarray
    distances: np.ndarray

    def __iter__(self):
        return iter(zip(self.rows.tolist(), self.cols.tolist(), self.distances.tolist()))


def _select_nearest(d2: np.ndarray, flat_idx: np.ndarray, max_radius: float):
    """Pick the four smallest squared distances, breaking ties by flat index.

    `flat_idx` holds the row-major position of each entry of `d2`. Raises
    `OutOfGridError` unless all four lie strictly inside `max_radius`.
    """
    if d2.size < N_NEIGHBORS:
        raise OutOfGridError(f'grid has only {d2.size} nodes in reach, need {N_NEIGHBORS}')
    # linear-time partition gives the fourth smallest value
    kth = np.partition(d2, N_NEIGHBORS - 1)[N_NEIGHBORS - 1]
    if not kth < float(max_radius) ** 2:
        raise OutOfGridError(f'no {N_NEIGHBORS} grid nodes within {max_radius} m of the query point')
    cand = np.flatnonzero(d2 <= kth)
    order = np.lexsort((flat_idx[cand], d2[cand]))[:N_NEIGHBORS]
    picked = cand[order]
    return flat_idx[picked], np.sqrt(d2[picked])


def find_nearest4(x: float, y: float, grid_x: np.ndarray, grid_y: np.ndarray,
                  max_radius: float = MAX_SEARCH_RADIUS) -> NeighborSet:
    """Return the four grid nodes closest to (x, y) by a full scan.

    Parameters
    - x, y: query position (planar meters, same system as the grid)
    - grid_x, grid_y: (rows, cols) easting and northing of every node
    - max_radius: search radius; fewer than four nodes inside it is a miss

    Raises `OutOfGridError` when the point is outside the grid's support.
    """
    gx = np.asarray(grid_x, dtype=float)
    gy = np.asarray(grid_y, dtype=float)
    if gx.shape != gy.shape or gx.ndim != 2:
        raise ValueError(f'grid_x and grid_y must be matching 2-D arrays (got {gx.shape}, {gy.shape})')

    d2 = ((gx - x) ** 2 + (gy - y) ** 2).ravel()
    flat, dist = _select_nearest(d2, np.arange(d2.size), max_radius)
    rows, cols = np.unravel_index(flat, gx.shape)
    return NeighborSet(rows=np.asarray(rows), cols=np.asarray(cols), distances=dist)


class GridIndexer:
    """Nearest-4 lookup bound to one coordinate grid.

    `use_kdtree=True` builds a cKDTree once at construction. Results are
    identical to the full scan, ties included.
    """

    def __init__(self, grid_x, grid_y, max_radius: float = MAX_SEARCH_RADIUS,
                 use_kdtree: bool = False, name: str = 'grid'):
        self.grid_x = np.asarray(grid_x, dtype=float)
        self.grid_y = np.asarray(grid_y, dtype=float)
        if self.grid_x.shape != self.grid_y.shape or self.grid_x.ndim != 2:
            raise ValueError(f'{name}: coordinate arrays must be matching 2-D arrays')
        self.shape = self.grid_x.shape
        self.max_radius = float(max_radius)
        self.name = name
        self._flat_x = self.grid_x.ravel()
        self._flat_y = self.grid_y.ravel()
        self.tree: Optional[object] = None
        if use_kdtree:
            self.tree = safe_build_kdtree(np.column_stack((self._flat_x, self._flat_y)),
                                          name=f'{name}_tree')
            if self.tree is None:
                logger.warning('%s: KDTree build failed; falling back to full scan', name)

    def find_nearest4(self, x: float, y: float) -> NeighborSet:
        if self.tree is None:
            return find_nearest4(x, y, self.grid_x, self.grid_y, self.max_radius)
        return self._query_tree(x, y)

    def _query_tree(self, x: float, y: float) -> NeighborSet:
        if self._flat_x.size < N_NEIGHBORS:
            raise OutOfGridError(f'{self.name}: grid has fewer than {N_NEIGHBORS} nodes')
        dists, _ = self.tree.query([x, y], k=N_NEIGHBORS)
        r4 = float(np.max(dists))
        if not np.isfinite(r4) or r4 >= self.max_radius:
            raise OutOfGridError(f'{self.name}: no {N_NEIGHBORS} grid nodes within '
                                 f'{self.max_radius} m of the query point')
        # widen slightly so nodes tied with the fourth one are all proposed
        cand = np.asarray(sorted(self.tree.query_ball_point([x, y], r=r4 * (1.0 + 1e-9) + 1e-12)),
                          dtype=int)
        d2 = (self._flat_x[cand] - x) ** 2 + (self._flat_y[cand] - y) ** 2
        flat, dist = _select_nearest(d2, cand, self.max_radius)
        rows, cols = np.unravel_index(flat, self.shape)
        return NeighborSet(rows=np.asarray(rows), cols=np.asarray(cols), distances=dist)
