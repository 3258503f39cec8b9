"""Shared pytest fixtures: small in-memory datasets and a ROMS file on disk."""
import pytest

from romsprobe.interp.tests.fixtures.dataset_fixture import (make_channel_dataset, make_square_dataset,
                                                             write_roms_file)


@pytest.fixture
def square_dataset():
    """2x2 grid, one level, one time step, node values 1..4, bathymetry 5 m."""
    return make_square_dataset()


@pytest.fixture
def channel_dataset():
    return make_channel_dataset()


@pytest.fixture
def roms_file(tmp_path):
    """Cartesian ROMS-style netCDF file built from the channel arrays."""
    return write_roms_file(tmp_path / 'ocean_his.nc')
