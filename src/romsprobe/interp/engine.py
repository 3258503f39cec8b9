"""
engine.py

Interpolation engine: estimates a scalar field and a horizontal vector field
at a probe position, depth and time from a `ModelDataset`.

Each query runs as a straight pipeline; every stage returns its result to
the next one and nothing in flight is stored on the engine:

    resolve_time -> find_nearest4 (rho, u, v) -> floor depth
        -> resolve_level -> corner / level / time averages -> ProbeResult

Only the lifecycle state, the once-only stale-time flag and the last
completed result live on the instance, so one dataset can safely back several
engines.

Usage:
    engine = InterpolationEngine(name='uSimROMS')
    engine.initialise(dataset)
    if engine.update(x, y, depth, t):
        temp = engine.get_value()
"""
import dataclasses
import enum
import logging
import math
import warnings
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from romsprobe.config import BAD_VALUE, NO_LEVEL, SEARCH
from romsprobe.interp.averaging import combine
from romsprobe.interp.dataset import FieldValues, ModelDataset
from romsprobe.interp.errors import (AllLandError, BadValueError, EngineStateError,
                                     InitializationError, OutOfGridError, StaleTimeWarning)
from romsprobe.interp.grid_index import GridIndexer, NeighborSet
from romsprobe.interp.temporal import TemporalBracket, resolve_time
from romsprobe.interp.utils import safe_log_exception
from romsprobe.interp.vertical import VerticalBracket, resolve_level

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    QUERIED = 'queried'
    FAILED = 'failed'
    LOAD_FAILED = 'load_failed'


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one query. Vector components are NaN when not loaded."""
    value: float
    east: float
    north: float
    altitude: float
    floor_depth: float
    valid: bool = True


class InterpolationEngine:
    """Nested inverse-distance interpolation over a ROMS-style dataset.

    Parameters
    - name: label prefixed to every log message
    - max_radius: nearest-4 search radius (m); defaults to `SEARCH['max_radius']`
    - use_kdtree: back the nearest-4 search with a KD-tree
    - rotate_vectors: rotate (u, v) into (east, north) when the dataset
      carries a grid angle
    """

    def __init__(self, name: str = 'romsprobe', max_radius: Optional[float] = None,
                 use_kdtree: Optional[bool] = None, rotate_vectors: bool = True):
        self.name = name
        self.max_radius = float(SEARCH['max_radius'] if max_radius is None else max_radius)
        self.use_kdtree = bool(SEARCH['use_kdtree'] if use_kdtree is None else use_kdtree)
        self.rotate_vectors = rotate_vectors
        self.state = EngineState.UNINITIALIZED
        self.dataset: Optional[ModelDataset] = None
        self._indexers: Dict[str, GridIndexer] = {}
        self._time_notice_posted = False
        self._result: Optional[ProbeResult] = None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def initialise(self, dataset: ModelDataset) -> 'InterpolationEngine':
        """Accept the dataset and move to READY.

        Raises `InitializationError` for an unusable dataset; the engine is
        then permanently unusable. Re-initialising a loaded engine raises
        `EngineStateError`.
        """
        if self.state is not EngineState.UNINITIALIZED:
            raise EngineStateError(f'{self.name}: engine already initialised (state={self.state.value})')
        try:
            if not isinstance(dataset, ModelDataset):
                raise InitializationError(f'expected a ModelDataset, got {type(dataset).__name__}')
            grids = ['rho'] + ([dataset.east.grid, dataset.north.grid] if dataset.has_vectors else [])
            self._indexers = {
                g: GridIndexer(dataset.grids[g].x, dataset.grids[g].y, max_radius=self.max_radius,
                               use_kdtree=self.use_kdtree, name=f'{self.name}:{g}')
                for g in grids
            }
        except InitializationError:
            self.state = EngineState.LOAD_FAILED
            logger.error('%s: error loading model dataset, engine disabled', self.name)
            raise
        self.dataset = dataset
        self.state = EngineState.READY
        logger.info('%s: loaded dataset with grids %s', self.name, sorted(self._indexers))
        return self

    @classmethod
    def from_roms(cls, path, variable: str, vector_variables=('u', 'v'), origin=None,
                  names=None, name: str = 'romsprobe', **kwargs) -> 'InterpolationEngine':
        """Build and initialise an engine straight from a ROMS netCDF file."""
        from romsprobe.io.roms_reader import read_roms_dataset

        engine = cls(name=name, **kwargs)
        try:
            dataset = read_roms_dataset(path, variable, vector_variables=vector_variables,
                                        origin=origin, names=names)
        except InitializationError:
            engine.state = EngineState.LOAD_FAILED
            logger.error('%s: error reading ROMS file %s, engine disabled', name, path)
            raise
        return engine.initialise(dataset)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def update(self, x: float, y: float, depth: float, time: float) -> bool:
        """Recompute the result for a new probe position.

        Returns False on a recoverable failure (outside the grid, under the
        land mask, NaN value); the previous result is then kept but flagged
        stale. Raises `EngineStateError` if the engine holds no dataset.
        """
        try:
            result = self.query(x, y, depth, time)
        except OutOfGridError as e:
            logger.warning('%s: no value found at current location (%.1f, %.1f): %s', self.name, x, y, e)
        except AllLandError:
            logger.warning('%s: all local values are bad (probably under the land mask), '
                           'refusing to publish new values', self.name)
        except BadValueError as e:
            logger.warning('%s: %s', self.name, e)
        except EngineStateError:
            raise
        except Exception as e:
            safe_log_exception(f'{self.name}: unexpected error during update', e, x=x, y=y, depth=depth, time=time)
            raise
        else:
            self._result = result
            self.state = EngineState.QUERIED
            return True

        if self._result is not None:
            self._result = dataclasses.replace(self._result, valid=False)
        self.state = EngineState.FAILED
        return False

    def query(self, x: float, y: float, depth: float, time: float) -> ProbeResult:
        """Run the interpolation pipeline and return a fresh `ProbeResult`.

        Raises `OutOfGridError`, `AllLandError` or `BadValueError`.
        """
        ds = self._require_dataset()

        tb = resolve_time(time, ds.time)
        if not tb.has_next and time > ds.time[-1]:
            self._post_time_notice(time)

        rho_nb = self._indexers['rho'].find_nearest4(x, y)
        vec_nb = {}
        if ds.has_vectors:
            for fv in (ds.east, ds.north):
                vec_nb[fv.grid] = self._indexers[fv.grid].find_nearest4(x, y)

        floor_depth = self._floor_depth(rho_nb)
        altitude = floor_depth - depth
        vb = resolve_level(floor_depth, depth, ds.sigma)
        logger.debug('%s: rho distances %s, level %d (dz %.3f, %.3f), step %d',
                     self.name, np.round(rho_nb.distances, 3).tolist(), vb.level,
                     vb.dist_to_level, vb.dist_to_next, tb.step)

        value = self._field_value(ds.scalar, rho_nb, vb, tb)
        east = north = BAD_VALUE
        if ds.has_vectors:
            east = self._field_value(ds.east, vec_nb[ds.east.grid], vb, tb)
            north = self._field_value(ds.north, vec_nb[ds.north.grid], vb, tb)
            if self.rotate_vectors and ds.angle is not None:
                east, north = self._rotate(east, north, rho_nb)

        if math.isnan(value):
            if not ds.rho.mask[rho_nb.rows, rho_nb.cols].any():
                raise AllLandError(f'all corners around ({x}, {y}) are land-masked')
            raise BadValueError(f"value of '{ds.scalar.name}' is NaN at ({x}, {y}, {depth}, t={time})")

        return ProbeResult(value=value, east=east, north=north, altitude=altitude, floor_depth=floor_depth)

    # ------------------------------------------------------------------
    # accessors (valid only after the most recent update returned True)
    # ------------------------------------------------------------------

    @property
    def result(self) -> Optional[ProbeResult]:
        return self._result

    def is_valid(self) -> bool:
        return self._result is not None and self._result.valid

    def get_value(self) -> float:
        return self._result.value if self._result is not None else BAD_VALUE

    def get_east_value(self) -> float:
        return self._result.east if self._result is not None else BAD_VALUE

    def get_north_value(self) -> float:
        return self._result.north if self._result is not None else BAD_VALUE

    def get_altitude(self) -> float:
        return self._result.altitude if self._result is not None else BAD_VALUE

    def get_floor_depth(self) -> float:
        return self._result.floor_depth if self._result is not None else BAD_VALUE

    # ------------------------------------------------------------------
    # pipeline stages
    # ------------------------------------------------------------------

    def _require_dataset(self) -> ModelDataset:
        if self.state in (EngineState.UNINITIALIZED, EngineState.LOAD_FAILED) or self.dataset is None:
            raise EngineStateError(f'{self.name}: engine has no usable dataset (state={self.state.value})')
        return self.dataset

    def _post_time_notice(self, time: float) -> None:
        if self._time_notice_posted:
            return
        self._time_notice_posted = True
        last = float(self.dataset.time[-1])
        msg = (f'{self.name}: current time {time} is past the last time step ({last}), '
               f'now using data only from the last time step')
        logger.info(msg)
        warnings.warn(msg, StaleTimeWarning, stacklevel=3)

    def _floor_depth(self, nb: NeighborSet) -> float:
        # land bathymetry (zero or negative) still counts toward the depth
        depths = self.dataset.bathymetry[nb.rows, nb.cols]
        return combine(depths, nb.distances, np.ones(depths.size, dtype=bool))

    def _field_value(self, fv: FieldValues, nb: NeighborSet, vb: VerticalBracket,
                     tb: TemporalBracket) -> float:
        """Average over time brackets of the level-averaged corner values."""
        first = self._value_at_time(fv, tb.step, nb, vb)
        if not tb.has_next:
            return first
        second = self._value_at_time(fv, tb.step + 1, nb, vb)
        vals = [first, second]
        return combine(vals, [tb.time_since, tb.time_until], [not math.isnan(v) for v in vals])

    def _value_at_time(self, fv: FieldValues, t: int, nb: NeighborSet, vb: VerticalBracket) -> float:
        mask = self.dataset.grids[fv.grid].mask[nb.rows, nb.cols]
        if vb.degenerate:
            return combine(fv.corner_values(t, vb.level, nb.rows, nb.cols), nb.distances, mask)

        dz = [vb.dist_to_level, vb.dist_to_next]
        s_z = [BAD_VALUE, BAD_VALUE]
        good_z = [False, False]
        for k in range(2):
            if dz[k] == NO_LEVEL:
                continue
            s_z[k] = combine(fv.corner_values(t, vb.level + k, nb.rows, nb.cols), nb.distances, mask)
            good_z[k] = True
        value_t = combine(s_z, dz, good_z)
        if math.isnan(value_t):
            logger.debug("%s: bad value for '%s' at time step %d", self.name, fv.name, t)
        return value_t

    def _rotate(self, u: float, v: float, nb: NeighborSet):
        """Rotate grid-relative (u, v) into (east, north)."""
        angle = combine(self.dataset.angle[nb.rows, nb.cols], nb.distances, np.ones(4, dtype=bool))
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        return u * cos_a - v * sin_a, u * sin_a + v * cos_a
