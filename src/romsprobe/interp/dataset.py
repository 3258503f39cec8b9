"""Immutable in-memory model dataset consumed by the interpolation engine.

A dataset is assembled once (by `romsprobe.io.roms_reader` or directly from
arrays), validated at construction and then shared read-only by every query.
Any broken invariant raises `InitializationError`.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging

import numpy as np

from romsprobe.interp.errors import InitializationError
from romsprobe.interp.utils import as_readonly

logger = logging.getLogger(__name__)


def _water_mask(mask, shape) -> np.ndarray:
    """Boolean water mask; missing mask means all water, NaN means land."""
    if mask is None:
        return as_readonly(np.ones(shape, dtype=bool), dtype=bool)
    m = np.asarray(mask)
    if m.dtype != bool:
        m = np.where(np.isfinite(m.astype(float)), m.astype(float), 0.0) != 0.0
    return as_readonly(m, dtype=bool)


@dataclass(frozen=True)
class HorizontalGrid:
    """Planar node coordinates (meters) and water mask of one grid flavor."""
    name: str
    x: np.ndarray
    y: np.ndarray
    mask: Optional[np.ndarray] = None

    def __post_init__(self):
        x = np.asarray(self.x, dtype=float)
        y = np.asarray(self.y, dtype=float)
        if x.ndim != 2 or x.shape != y.shape:
            raise InitializationError(
                f"grid '{self.name}': x and y must be matching 2-D arrays (got {x.shape}, {y.shape})")
        if x.size == 0:
            raise InitializationError(f"grid '{self.name}' is empty")
        if not (np.isfinite(x).all() and np.isfinite(y).all()):
            raise InitializationError(f"grid '{self.name}': coordinates must be finite")
        if self.mask is not None and np.shape(self.mask) != x.shape:
            raise InitializationError(
                f"grid '{self.name}': mask shape {np.shape(self.mask)} does not match grid {x.shape}")
        object.__setattr__(self, 'x', as_readonly(x))
        object.__setattr__(self, 'y', as_readonly(y))
        object.__setattr__(self, 'mask', _water_mask(self.mask, x.shape))

    @property
    def shape(self):
        return self.x.shape


@dataclass(frozen=True)
class FieldValues:
    """One published quantity as a read-only (time, level, row, col) array."""
    name: str
    grid: str
    data: np.ndarray

    def __post_init__(self):
        data = np.asarray(self.data, dtype=float)
        if data.ndim != 4:
            raise InitializationError(
                f"field '{self.name}' must be 4-D (time, level, row, col), got {data.ndim}-D")
        object.__setattr__(self, 'data', as_readonly(data))

    @property
    def shape(self):
        return self.data.shape

    def corner_values(self, t: int, level: int, rows, cols) -> np.ndarray:
        """Values at the given (row, col) pairs for one time step and level.

        Indices are checked explicitly; numpy would silently wrap negatives.
        """
        nt, nk, nr, nc = self.data.shape
        rows = np.asarray(rows, dtype=int)
        cols = np.asarray(cols, dtype=int)
        if not (0 <= t < nt and 0 <= level < nk):
            raise IndexError(f"field '{self.name}': (time={t}, level={level}) outside ({nt}, {nk})")
        if rows.size and (rows.min() < 0 or rows.max() >= nr or cols.min() < 0 or cols.max() >= nc):
            raise IndexError(f"field '{self.name}': corner indices outside grid ({nr}, {nc})")
        return self.data[t, level, rows, cols]


@dataclass(frozen=True)
class ModelDataset:
    """Everything the engine needs, loaded once.

    Parameters
    - grids: mapping grid name -> HorizontalGrid; must contain 'rho'
    - bathymetry: (rows, cols) seafloor depth on the rho grid
    - sigma: 1-D sigma levels in [-1, 0], strictly increasing
    - time: 1-D time axis (seconds), strictly increasing
    - scalar: the scalar field, on the rho grid
    - east, north: optional vector components, both or neither
    - angle: optional rho-grid rotation (radians) of the xi axis from east
    """
    grids: Dict[str, HorizontalGrid]
    bathymetry: np.ndarray
    sigma: np.ndarray
    time: np.ndarray
    scalar: FieldValues
    east: Optional[FieldValues] = None
    north: Optional[FieldValues] = None
    angle: Optional[np.ndarray] = None
    attrs: dict = field(default_factory=dict)

    def __post_init__(self):
        if 'rho' not in self.grids:
            raise InitializationError("dataset has no 'rho' grid")
        rho_shape = self.grids['rho'].shape

        bathy = np.asarray(self.bathymetry, dtype=float)
        if bathy.shape != rho_shape:
            raise InitializationError(f'bathymetry shape {bathy.shape} does not match rho grid {rho_shape}')
        if not np.isfinite(bathy).all():
            raise InitializationError('bathymetry must be finite everywhere')
        object.__setattr__(self, 'bathymetry', as_readonly(bathy))

        sigma = np.asarray(self.sigma, dtype=float).ravel()
        if sigma.size == 0:
            raise InitializationError('no sigma levels')
        if not np.isfinite(sigma).all() or sigma.min() < -1.0 or sigma.max() > 0.0:
            raise InitializationError('sigma levels must lie within [-1, 0]')
        if np.any(np.diff(sigma) <= 0):
            raise InitializationError('sigma levels must increase strictly from seabed to surface')
        object.__setattr__(self, 'sigma', as_readonly(sigma))

        time = np.asarray(self.time, dtype=float).ravel()
        if time.size == 0:
            raise InitializationError('time axis is empty')
        if not np.isfinite(time).all() or np.any(np.diff(time) <= 0):
            raise InitializationError('time axis must be finite and strictly increasing')
        object.__setattr__(self, 'time', as_readonly(time))

        if (self.east is None) != (self.north is None):
            raise InitializationError('vector fields need both an east and a north component')
        if self.scalar.grid != 'rho':
            raise InitializationError(f"scalar field '{self.scalar.name}' must live on the rho grid")
        for fv in self.fields():
            self._check_field(fv)

        if self.angle is not None:
            angle = np.asarray(self.angle, dtype=float)
            if angle.shape != rho_shape or not np.isfinite(angle).all():
                raise InitializationError(f'angle must be a finite array shaped like the rho grid {rho_shape}')
            object.__setattr__(self, 'angle', as_readonly(angle))

        logger.debug('dataset ready: rho grid %s, %d levels, %d time steps, fields %s',
                     rho_shape, sigma.size, time.size, [f.name for f in self.fields()])

    def _check_field(self, fv: FieldValues) -> None:
        grid = self.grids.get(fv.grid)
        if grid is None:
            raise InitializationError(f"field '{fv.name}' refers to unknown grid '{fv.grid}'")
        expected = (self.time.size, self.sigma.size) + grid.shape
        if fv.shape != expected:
            raise InitializationError(f"field '{fv.name}' has shape {fv.shape}, expected {expected}")

    def fields(self):
        """Loaded fields, scalar first."""
        return [f for f in (self.scalar, self.east, self.north) if f is not None]

    @property
    def has_vectors(self) -> bool:
        return self.east is not None

    @property
    def rho(self) -> HorizontalGrid:
        return self.grids['rho']
