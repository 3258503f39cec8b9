import numpy as np
import xarray as xr

from romsprobe.interp.dataset import FieldValues, HorizontalGrid, ModelDataset


def make_square_dataset(values=(1.0, 2.0, 3.0, 4.0), mask=None, bathymetry=5.0,
                        sigma=(-0.5,), time=(0.0,), data=None):
    """2x2 rho grid with nodes at (0,0), (10,0), (0,10), (10,10) meters.

    `values` are assigned to the nodes in that order and repeated over every
    time step and level unless a full 4-D `data` array is given.
    """
    x = np.array([[0.0, 10.0], [0.0, 10.0]])
    y = np.array([[0.0, 0.0], [10.0, 10.0]])
    sigma = np.asarray(sigma, dtype=float)
    time = np.asarray(time, dtype=float)
    if data is None:
        data = np.broadcast_to(np.asarray(values, dtype=float).reshape(2, 2),
                               (time.size, sigma.size, 2, 2)).copy()
    return ModelDataset(
        grids={'rho': HorizontalGrid('rho', x, y, mask)},
        bathymetry=np.full((2, 2), float(bathymetry)),
        sigma=sigma,
        time=time,
        scalar=FieldValues('temp', 'rho', data),
    )


def channel_arrays(n_eta=5, n_xi=6, dx=100.0, n_time=3, dt=3600.0):
    """Raw arrays for a small C-grid basin with 4 sigma levels.

    temp varies only with time step and level: 10 + step + 0.5 * level.
    u = 0.1 * (step + 1), v = -0.2 everywhere.
    """
    cols, rows = np.meshgrid(np.arange(n_xi, dtype=float), np.arange(n_eta, dtype=float))
    sigma = np.array([-0.875, -0.625, -0.375, -0.125])
    time = np.arange(n_time, dtype=float) * dt
    steps = np.arange(n_time, dtype=float)[:, None, None, None]
    levels = np.arange(sigma.size, dtype=float)[None, :, None, None]
    temp = 10.0 + steps + 0.5 * levels + np.zeros((n_time, sigma.size, n_eta, n_xi))
    u = 0.1 * (steps + 1.0) + np.zeros((n_time, sigma.size, n_eta, n_xi - 1))
    v = -0.2 + np.zeros((n_time, sigma.size, n_eta - 1, n_xi))
    return {
        'x_rho': cols * dx, 'y_rho': rows * dx,
        'x_u': (cols[:, :-1] + 0.5) * dx, 'y_u': rows[:, :-1] * dx,
        'x_v': cols[:-1, :] * dx, 'y_v': (rows[:-1, :] + 0.5) * dx,
        'mask_rho': np.ones((n_eta, n_xi)),
        'h': np.full((n_eta, n_xi), 20.0),
        's_rho': sigma, 'ocean_time': time,
        'temp': temp, 'u': u, 'v': v,
    }


def make_channel_dataset(mask_rho=None, angle=None, **kwargs):
    a = channel_arrays(**kwargs)
    mask = a['mask_rho'] if mask_rho is None else np.asarray(mask_rho)
    grids = {
        'rho': HorizontalGrid('rho', a['x_rho'], a['y_rho'], mask),
        'u': HorizontalGrid('u', a['x_u'], a['y_u']),
        'v': HorizontalGrid('v', a['x_v'], a['y_v']),
    }
    return ModelDataset(
        grids=grids,
        bathymetry=a['h'],
        sigma=a['s_rho'],
        time=a['ocean_time'],
        scalar=FieldValues('temp', 'rho', a['temp']),
        east=FieldValues('u', 'u', a['u']),
        north=FieldValues('v', 'v', a['v']),
        angle=angle,
    )


def write_roms_file(path, spherical=False, with_angle=False, drop=(), mask_rho=None, **kwargs):
    """Write the channel arrays as a ROMS-style netCDF file at `path`."""
    a = channel_arrays(**kwargs)
    if mask_rho is not None:
        a['mask_rho'] = np.asarray(mask_rho, dtype=float)
    rho = ('eta_rho', 'xi_rho')
    u_dims = ('eta_u', 'xi_u')
    v_dims = ('eta_v', 'xi_v')
    data_vars = {
        'mask_rho': (rho, a['mask_rho']),
        'h': (rho, a['h']),
        'temp': (('ocean_time', 's_rho') + rho, a['temp']),
        'u': (('ocean_time', 's_rho') + u_dims, a['u']),
        'v': (('ocean_time', 's_rho') + v_dims, a['v']),
    }
    if spherical:
        # ~111 m per 0.001 deg of latitude
        for g, dims in (('rho', rho), ('u', u_dims), ('v', v_dims)):
            data_vars[f'lat_{g}'] = (dims, 38.0 + a[f'y_{g}'] / 100.0 * 0.001)
            data_vars[f'lon_{g}'] = (dims, -76.0 + a[f'x_{g}'] / 100.0 * 0.001)
    else:
        for g, dims in (('rho', rho), ('u', u_dims), ('v', v_dims)):
            data_vars[f'x_{g}'] = (dims, a[f'x_{g}'])
            data_vars[f'y_{g}'] = (dims, a[f'y_{g}'])
    if with_angle:
        data_vars['angle'] = (rho, np.zeros_like(a['h']))
    for name in drop:
        data_vars.pop(name, None)

    ds = xr.Dataset(
        data_vars=data_vars,
        coords={
            's_rho': ('s_rho', a['s_rho']),
            'ocean_time': ('ocean_time', a['ocean_time'], {'units': 'seconds since 2015-01-01 00:00:00'}),
        },
    )
    ds.to_netcdf(str(path))
    return str(path)
