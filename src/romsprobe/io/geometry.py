"""
geometry.py

Local planar coordinates for the probe and the model grid. Geographic
positions are projected onto a transverse Mercator plane centred on a fixed
origin, so (0, 0) is the origin and axes are easting/northing in meters.

Public API:
- `LocalProjection(lat_origin, lon_origin)`
    - `.to_local(lat, lon)` -> (x, y)
    - `.to_geo(x, y)` -> (lat, lon)

"""
from typing import Tuple

import numpy as np
from pyproj import CRS, Transformer


class LocalProjection:
    """Geographic <-> local planar meters about (lat_origin, lon_origin)."""

    def __init__(self, lat_origin: float, lon_origin: float):
        if not (-90.0 <= lat_origin <= 90.0):
            raise ValueError(f'lat_origin out of range: {lat_origin}')
        self.lat_origin = float(lat_origin)
        self.lon_origin = float(lon_origin)
        self.crs_local = CRS.from_proj4(
            f'+proj=tmerc +lat_0={self.lat_origin} +lon_0={self.lon_origin} '
            f'+k=1 +x_0=0 +y_0=0 +ellps=WGS84 +units=m +no_defs'
        )
        # always_xy: inputs/outputs are (lon, lat) and (x, y)
        self._ll_to_local = Transformer.from_crs('EPSG:4326', self.crs_local, always_xy=True)
        self._local_to_ll = Transformer.from_crs(self.crs_local, 'EPSG:4326', always_xy=True)

    def to_local(self, lat, lon) -> Tuple[np.ndarray, np.ndarray]:
        """Project latitude/longitude (scalars or arrays) to (x, y) meters."""
        lat_a = np.asarray(lat, dtype=float)
        lon_a = np.asarray(lon, dtype=float)
        x, y = self._ll_to_local.transform(lon_a, lat_a)
        return np.asarray(x, dtype=float), np.asarray(y, dtype=float)

    def to_geo(self, x, y) -> Tuple[np.ndarray, np.ndarray]:
        """Inverse of `to_local`: (x, y) meters back to (lat, lon)."""
        lon, lat = self._local_to_ll.transform(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
        return np.asarray(lat, dtype=float), np.asarray(lon, dtype=float)

    def __repr__(self):
        return f'LocalProjection(lat_origin={self.lat_origin}, lon_origin={self.lon_origin})'
