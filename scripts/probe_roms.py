"""Headless probe: sample a ROMS file at a few points and print diagnostics.

Usage:
    python scripts/probe_roms.py ocean_his.nc --var temp --n 10 --depth 2.0 --time 3600

Points are drawn at random (fixed seed) inside the rho grid's bounding box,
or given explicitly with repeated `--point X Y` (local meters) or
`--latlon LAT LON` (spherical grids only).
"""

import argparse
import logging

import numpy as np

from romsprobe.interp import InitializationError, InterpolationEngine
from romsprobe.io.geometry import LocalProjection


def sample_points(engine, n: int, seed: int = 12345):
    grid = engine.dataset.rho
    rng = np.random.default_rng(seed=seed)
    xs = rng.uniform(np.min(grid.x), np.max(grid.x), size=n)
    ys = rng.uniform(np.min(grid.y), np.max(grid.y), size=n)
    return list(zip(xs.tolist(), ys.tolist()))


def probe(path: str, variable: str, points=None, latlon=None, n: int = 10, depth: float = 1.0,
          time=None, vectors=('u', 'v'), use_kdtree: bool = False):
    try:
        engine = InterpolationEngine.from_roms(path, variable, vector_variables=vectors,
                                               name='probe_roms', use_kdtree=use_kdtree)
    except InitializationError as e:
        print(f"[probe_roms] Failed to load {path}: {e}")
        raise

    ds = engine.dataset
    if time is None:
        time = float(ds.time[0])
    print(f"[probe_roms] {variable} on rho grid {ds.rho.shape}, {ds.sigma.size} levels, "
          f"{ds.time.size} steps ({ds.attrs.get('time_units', 'no units')})")

    pts = list(points or [])
    if latlon:
        if 'origin' not in ds.attrs:
            raise SystemExit('[probe_roms] --latlon needs a spherical grid (lat_rho/lon_rho)')
        proj = LocalProjection(*ds.attrs['origin'])
        for lat, lon in latlon:
            x, y = proj.to_local(lat, lon)
            pts.append((float(x), float(y)))
    if not pts:
        pts = sample_points(engine, n)

    print(f"[probe_roms] Sampling {len(pts)} points at depth {depth} m, t={time}")
    values, speeds = [], []
    for x, y in pts:
        if engine.update(x, y, depth, time):
            r = engine.result
            values.append(r.value)
            speeds.append(np.hypot(r.east, r.north))
            print(f"  ({x:10.1f},{y:10.1f}) -> {variable}={r.value:8.3f}  "
                  f"u,v=({r.east:6.3f},{r.north:6.3f})  h={r.floor_depth:7.2f}  alt={r.altitude:7.2f}")
        else:
            print(f"  ({x:10.1f},{y:10.1f}) -> no value ({engine.state.value})")

    if values:
        print("[probe_roms] Stats:")
        print(f"  {variable}: min={np.nanmin(values):.3f} max={np.nanmax(values):.3f} mean={np.nanmean(values):.3f}")
        if vectors:
            print(f"  speed: min={np.nanmin(speeds):.3f} max={np.nanmax(speeds):.3f} mean={np.nanmean(speeds):.3f}")
    print(f"[probe_roms] {len(values)}/{len(pts)} points valid")
    return engine


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('path')
    parser.add_argument('--var', '-v', default='temp')
    parser.add_argument('--n', '-n', type=int, default=10)
    parser.add_argument('--depth', '-d', type=float, default=1.0)
    parser.add_argument('--time', '-t', type=float, default=None)
    parser.add_argument('--point', nargs=2, type=float, action='append', metavar=('X', 'Y'))
    parser.add_argument('--latlon', nargs=2, type=float, action='append', metavar=('LAT', 'LON'))
    parser.add_argument('--no-vectors', action='store_true')
    parser.add_argument('--kdtree', action='store_true')
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    probe(args.path, args.var, points=args.point, latlon=args.latlon, n=args.n, depth=args.depth,
          time=args.time, vectors=None if args.no_vectors else ('u', 'v'), use_kdtree=args.kdtree)
