"""ROMS netCDF reader for the interpolation engine.

Opens a ROMS history/average file with xarray and assembles the immutable
`ModelDataset` the engine consumes:

- rho grid coordinates and `mask_rho`
- u/v staggered grids and masks for the vector components (`mask_u`/`mask_v`
  are derived from `mask_rho` when the file lacks them)
- bathymetry `h`, sigma levels `s_rho`, time axis `ocean_time` (seconds,
  left undecoded)
- the requested scalar variable and optional (u, v) variables
- the grid `angle` when present

Spherical grids (`lat_*`/`lon_*`) are projected to local meters with
`LocalProjection`; Cartesian grids use `x_*`/`y_*` directly. Every problem
with the file surfaces as `InitializationError`.
"""

from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple
import logging

import numpy as np
import xarray as xr

from romsprobe.config import ROMS_NAMES, VECTOR_GRIDS
from romsprobe.interp.dataset import FieldValues, HorizontalGrid, ModelDataset
from romsprobe.interp.errors import InitializationError
from romsprobe.io.geometry import LocalProjection

logger = logging.getLogger(__name__)


def staggered_mask(mask_rho, flavor: str) -> np.ndarray:
    """ROMS C-grid mask for a u or v point: water only between two water cells."""
    m = np.asarray(mask_rho, dtype=float)
    m = np.where(np.isfinite(m), m, 0.0) != 0.0
    if flavor == 'u':
        return m[:, :-1] & m[:, 1:]
    if flavor == 'v':
        return m[:-1, :] & m[1:, :]
    raise ValueError(f"unknown staggered grid flavor '{flavor}'")


def field_grid(da: xr.DataArray) -> str:
    """Grid flavor of a ROMS variable, read from its horizontal dimension names."""
    for flavor in VECTOR_GRIDS:
        if f'xi_{flavor}' in da.dims or f'eta_{flavor}' in da.dims:
            return flavor
    return 'rho'


class RomsReader:
    """Pulls the arrays of one ROMS file into a `ModelDataset`.

    Parameters
    - path: netCDF file
    - names: overrides for `ROMS_NAMES` entries
    - origin: (lat, lon) of the local plane; defaults to the rho-grid centre
    - engine: xarray backend engine (None lets xarray choose)
    """

    def __init__(self, path, names: Optional[Mapping[str, str]] = None,
                 origin: Optional[Tuple[float, float]] = None, engine: Optional[str] = None):
        self.path = Path(path)
        self.names = dict(ROMS_NAMES)
        if names:
            self.names.update(names)
        self.origin = origin
        self.engine = engine
        self.projection: Optional[LocalProjection] = None

    def read(self, variable: str, vector_variables: Optional[Sequence[str]] = ('u', 'v')) -> ModelDataset:
        if not self.path.exists():
            raise InitializationError(f'ROMS file not found: {self.path}')
        try:
            ds = xr.open_dataset(self.path, decode_times=False, engine=self.engine)
        except (OSError, ValueError) as e:
            raise InitializationError(f'cannot open ROMS file {self.path}: {e}') from e

        with ds:
            return self._assemble(ds, variable, vector_variables)

    # ------------------------------------------------------------------

    def _var(self, ds: xr.Dataset, key: str, required: bool = True) -> Optional[np.ndarray]:
        name = self.names[key]
        if name not in ds.variables:
            if required:
                raise InitializationError(f"variable '{name}' not found in {self.path}")
            return None
        return np.asarray(ds[name].values)

    def _coordinates(self, ds: xr.Dataset, flavor: str) -> Tuple[np.ndarray, np.ndarray]:
        lat = self._var(ds, f'lat_{flavor}', required=False)
        lon = self._var(ds, f'lon_{flavor}', required=False)
        if lat is not None and lon is not None:
            if self.projection is None:
                lat0, lon0 = self.origin if self.origin is not None else (
                    float(np.nanmean(self._var(ds, 'lat_rho'))), float(np.nanmean(self._var(ds, 'lon_rho'))))
                self.projection = LocalProjection(lat0, lon0)
                logger.debug('%s: projecting about origin (%.5f, %.5f)', self.path.name, lat0, lon0)
            return self.projection.to_local(lat, lon)

        x = self._var(ds, f'x_{flavor}', required=False)
        y = self._var(ds, f'y_{flavor}', required=False)
        if x is not None and y is not None:
            return x.astype(float), y.astype(float)
        raise InitializationError(
            f"no coordinates for the {flavor} grid in {self.path} "
            f"(looked for {self.names[f'lat_{flavor}']}/{self.names[f'lon_{flavor}']} "
            f"and {self.names[f'x_{flavor}']}/{self.names[f'y_{flavor}']})")

    def _field(self, ds: xr.Dataset, variable: str) -> FieldValues:
        if variable not in ds.variables:
            raise InitializationError(f"variable '{variable}' not found in {self.path}")
        da = ds[variable]
        if da.ndim != 4:
            raise InitializationError(
                f"variable '{variable}' has dims {da.dims}; expected (time, s_rho, eta, xi)")
        return FieldValues(name=variable, grid=field_grid(da), data=np.asarray(da.values, dtype=float))

    def _assemble(self, ds: xr.Dataset, variable: str,
                  vector_variables: Optional[Sequence[str]]) -> ModelDataset:
        mask_rho = self._var(ds, 'mask_rho', required=False)
        if mask_rho is None:
            logger.warning("%s: no '%s' variable, treating every cell as water",
                           self.path.name, self.names['mask_rho'])
        x, y = self._coordinates(ds, 'rho')
        grids = {'rho': HorizontalGrid('rho', x, y, mask_rho)}

        scalar = self._field(ds, variable)
        east = north = None
        if vector_variables:
            if len(vector_variables) != 2:
                raise InitializationError(f'vector_variables must name two components, got {vector_variables}')
            east, north = (self._field(ds, v) for v in vector_variables)
            for fv in (east, north):
                if fv.grid in grids:
                    continue
                gx, gy = self._coordinates(ds, fv.grid)
                mask = self._var(ds, f'mask_{fv.grid}', required=False)
                if mask is None and mask_rho is not None and fv.grid in VECTOR_GRIDS:
                    mask = staggered_mask(mask_rho, fv.grid)
                grids[fv.grid] = HorizontalGrid(fv.grid, gx, gy, mask)

        h = self._var(ds, 'h').astype(float)
        if not np.isfinite(h).all():
            logger.debug('%s: %d non-finite bathymetry cells set to 0',
                         self.path.name, int((~np.isfinite(h)).sum()))
            h = np.where(np.isfinite(h), h, 0.0)

        time_name = self.names['ocean_time']
        attrs = {'source': str(self.path), 'variable': variable}
        if time_name in ds.variables:
            attrs['time_units'] = ds[time_name].attrs.get('units', '')
        if self.projection is not None:
            attrs['origin'] = (self.projection.lat_origin, self.projection.lon_origin)

        dataset = ModelDataset(
            grids=grids,
            bathymetry=h,
            sigma=self._var(ds, 's_rho').astype(float),
            time=self._var(ds, 'ocean_time').astype(float),
            scalar=scalar,
            east=east,
            north=north,
            angle=self._var(ds, 'angle', required=False),
            attrs=attrs,
        )
        logger.info('%s: read %s%s on a %s rho grid', self.path.name, variable,
                    f' and {tuple(vector_variables)}' if vector_variables else '', grids['rho'].shape)
        return dataset


def read_roms_dataset(path, variable: str, vector_variables: Optional[Sequence[str]] = ('u', 'v'),
                      origin: Optional[Tuple[float, float]] = None,
                      names: Optional[Mapping[str, str]] = None,
                      engine: Optional[str] = None) -> ModelDataset:
    """Read `variable` (and optionally the vector components) from a ROMS file.

    >>> ds = read_roms_dataset('ocean_his.nc', 'temp', origin=(38.6, -76.1))
    """
    return RomsReader(path, names=names, origin=origin, engine=engine).read(variable, vector_variables)
