# -*- coding: utf-8 -*-

"""
romsprobe/config.py

This module centralizes the tunable constants used by the interpolation engine
and the ROMS reader. Keeping the search radius, sentinels and variable names in
one place keeps the engine, the reader and the scripts consistent.

Contents:
---------
1. SENTINELS:
   - `BAD_VALUE` is what an average returns when no sample is usable.
   - `NO_LEVEL` marks a vertical bracket side that does not exist.

2. SEARCH:
   - Maximum planar search radius (m) for the nearest-4 lookup. A query with
     fewer than four grid nodes inside this radius is outside the grid.
   - Whether to back the lookup with a KD-tree instead of a full linear scan.

3. ROMS_NAMES:
   - Default netCDF variable names of a ROMS history/average file. Pass a
     `names` mapping to `read_roms_dataset` to override single entries.

Usage:
------
    from romsprobe.config import SEARCH, ROMS_NAMES

    radius = SEARCH['max_radius']
    mask_var = ROMS_NAMES['mask_rho']

"""
import numpy as np

# ───────────────────────────────────────────────────────────────────────────────
# 1) SENTINELS
# ───────────────────────────────────────────────────────────────────────────────
BAD_VALUE = np.nan              # returned by an average with no valid samples
NO_LEVEL = -1.0                 # vertical distance when there is no bracket level

# ───────────────────────────────────────────────────────────────────────────────
# 2) NEAREST-NEIGHBOR SEARCH
# ───────────────────────────────────────────────────────────────────────────────
MAX_SEARCH_RADIUS = 100000.0    # meters

SEARCH = {
    'max_radius': MAX_SEARCH_RADIUS,
    # Linear scan is fine for regional grids; switch on for very large meshes
    'use_kdtree': False,
}

# ───────────────────────────────────────────────────────────────────────────────
# 3) ROMS VARIABLE NAMES
# ───────────────────────────────────────────────────────────────────────────────
ROMS_NAMES = {
    # land/sea masks (1 = water)
    'mask_rho': 'mask_rho',
    'mask_u': 'mask_u',
    'mask_v': 'mask_v',

    # geographic coordinates (spherical grids)
    'lat_rho': 'lat_rho',
    'lon_rho': 'lon_rho',
    'lat_u': 'lat_u',
    'lon_u': 'lon_u',
    'lat_v': 'lat_v',
    'lon_v': 'lon_v',

    # planar coordinates (Cartesian grids)
    'x_rho': 'x_rho',
    'y_rho': 'y_rho',
    'x_u': 'x_u',
    'y_u': 'y_u',
    'x_v': 'x_v',
    'y_v': 'y_v',

    # grid rotation (radians, xi axis relative to east)
    'angle': 'angle',

    # vertical / time / bathymetry
    's_rho': 's_rho',
    'ocean_time': 'ocean_time',
    'h': 'h',
}

# Staggered grid flavors used for vector components, in (east, north) order
VECTOR_GRIDS = ('u', 'v')
