from __future__ import annotations
import logging
from collections.abc import Callable

import numpy as np
import pandas as pd
import pytest
import xarray as xr


logger = logging.getLogger("isobar")


@pytest.fixture
def forecast_times() -> pd.DatetimeIndex:
    """Three-hourly forecast steps over one day."""
    return pd.date_range("2026-03-01T00:00", periods=9, freq="3h")


@pytest.fixture
def forecast_dataset(forecast_times) -> Callable:
    """Return a forecast dataset in archive-native units."""

    def _forecast_dataset(times: pd.DatetimeIndex | None = None, seed: int = 42) -> xr.Dataset:
        if times is None:
            times = forecast_times
        rng = np.random.default_rng(seed)
        shape = (2, 3, times.size)
        coords = dict(lat=[45.0, 45.25], lon=[-73.75, -73.5, -73.25], time=times)
        dims = ["lat", "lon", "time"]

        ds = xr.Dataset(coords=coords)
        ds["temperature_2m"] = xr.DataArray(
            rng.uniform(260.0, 300.0, shape).astype(np.float32), dims=dims, attrs={"units": "K"}
        )
        ds["precipitation"] = xr.DataArray(
            rng.uniform(0.0, 0.005, shape).astype(np.float32), dims=dims, attrs={"units": "m"}
        )
        ds["relative_humidity_1000hPa"] = xr.DataArray(
            rng.uniform(20.0, 100.0, shape).astype(np.float32), dims=dims, attrs={"units": "%"}
        )
        ds["surface_pressure"] = xr.DataArray(
            rng.uniform(95000.0, 103000.0, shape).astype(np.float32), dims=dims, attrs={"units": "Pa"}
        )
        ds["orography"] = xr.DataArray(np.full((2, 3), 120.0), dims=["lat", "lon"], attrs={"units": "m"})
        ds.attrs["title"] = "Test forecast"
        return ds

    return _forecast_dataset


@pytest.fixture
def restore_logging():
    """Undo logging configuration changes made by a test."""
    root = logging.getLogger()
    isobar_logger = logging.getLogger("isobar")
    root_state = (list(root.handlers), root.level)
    isobar_state = (list(isobar_logger.handlers), isobar_logger.level, isobar_logger.propagate)

    yield

    for log, saved in ((root, root_state[0]), (isobar_logger, isobar_state[0])):
        for handler in log.handlers:
            if handler not in saved:
                handler.close()
    root.handlers, root.level = root_state[0], root_state[1]
    isobar_logger.handlers, isobar_logger.level, isobar_logger.propagate = isobar_state
