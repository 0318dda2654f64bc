"""
Temporal interpolation of forecast variables.

Accumulated quantities are redistributed over the target time steps (`backwards_sum`), all other quantities are
interpolated with a cubic Hermite spline (`hermite`), optionally clamped to physical bounds.
"""

from __future__ import annotations
import logging

import numpy as np
import pandas as pd
import xarray as xr

from isobar.ecmwf import Variable
from isobar.policies import InterpolationKind
from isobar.registry import REGISTRY


logger = logging.getLogger("isobar.treatments.interpolation")

__all__ = [
    "backwards_sum",
    "hermite",
    "interpolate",
    "resample_time",
]


def _as_seconds(times) -> np.ndarray:
    times = np.asarray(times)
    if np.issubdtype(times.dtype, np.datetime64):
        return times.astype("datetime64[s]").astype(np.int64).astype(np.float64)
    return times.astype(np.float64)


def _check_source(x: np.ndarray, values: np.ndarray) -> None:
    if x.ndim != 1 or x.size < 2:
        raise ValueError("At least two source times are required for interpolation.")
    if np.any(np.diff(x) <= 0):
        raise ValueError("Source times must be strictly increasing.")
    if values.shape[-1] != x.size:
        msg = f"The last axis of the values ({values.shape[-1]}) does not match the source times ({x.size})."
        raise ValueError(msg)


def _check_target(t: np.ndarray) -> None:
    if t.ndim != 1:
        raise ValueError("Target times must be one-dimensional.")
    if np.any(np.diff(t) < 0):
        raise ValueError("Target times must be increasing.")


def _regular_step(t: np.ndarray) -> float:
    if t.size < 2:
        raise ValueError("At least two target times are required to redistribute sums.")
    steps = np.diff(t)
    if not np.allclose(steps, steps[0], rtol=1e-9, atol=0) or steps[0] <= 0:
        raise ValueError("Target times must be regularly spaced.")
    return float(steps[0])


def backwards_sum(source_times, values, target_times) -> np.ndarray:
    """
    Redistribute accumulated values over a regular target time axis.

    A source value at time `x[i]` is the sum over the interval `(x[i-1], x[i]]`, and a target value at time `t` is
    the sum over `(t - dt, t]`, where `dt` is the target time step. Every source interval overlapping a target
    interval contributes the fraction of its sum covered by the overlap, so that sums are preserved whether the
    target step is finer or coarser than the source step.

    Parameters
    ----------
    source_times : array-like
        Strictly increasing source times, as datetime64 or numbers.
    values : array-like
        Source values, with time along the last axis.
    target_times : array-like
        Regularly spaced target times, in the same representation as `source_times`.

    Returns
    -------
    np.ndarray
        Float32 values with time along the last axis. Targets whose interval is not covered by the source range
        are NaN, as are targets overlapping a missing source value.
    """
    x = _as_seconds(source_times)
    t = _as_seconds(target_times)
    y = np.asarray(values, dtype=np.float32)
    _check_source(x, y)
    _check_target(t)
    dt = _regular_step(t)

    lower, upper = t - dt, t
    start, end = x[:-1], x[1:]
    # Shape (targets, source intervals)
    overlap = np.minimum(upper[:, None], end) - np.maximum(lower[:, None], start)
    weights = np.clip(overlap, 0.0, None) / (end - start)

    sums = y[..., 1:]
    missing = np.isnan(sums)
    out = np.nan_to_num(sums) @ weights.T
    out = np.where(missing.astype(np.float64) @ (weights > 0).T > 0, np.nan, out)

    covered = (lower >= x[0]) & (upper <= x[-1])
    out = np.where(covered, out, np.nan)
    # The first source sample has no preceding interval
    out = np.where(t == x[0], y[..., 0:1], out)
    return out.astype(np.float32)


def hermite(source_times, values, target_times, bounds: tuple[float, float] | None = None) -> np.ndarray:
    """
    Interpolate values with a cubic Hermite spline.

    Tangents are finite differences of the neighbouring samples, so evenly spaced samples give a Catmull-Rom spline.
    At the edges, the end sample is repeated one interval outward.

    Parameters
    ----------
    source_times : array-like
        Strictly increasing source times, as datetime64 or numbers.
    values : array-like
        Source values, with time along the last axis.
    target_times : array-like
        Increasing target times, in the same representation as `source_times`.
    bounds : tuple of float, optional
        Lower and upper bounds the results are clamped to.

    Returns
    -------
    np.ndarray
        Float32 values with time along the last axis. Targets outside the source range are NaN.
    """
    x = _as_seconds(source_times)
    t = _as_seconds(target_times)
    y = np.asarray(values, dtype=np.float32)
    _check_source(x, y)
    _check_target(t)

    n = x.size
    i = np.clip(np.searchsorted(x, t, side="right") - 1, 0, n - 2)
    h = x[i + 1] - x[i]
    frac = (t - x[i]) / h

    has_prev = i > 0
    has_next = i + 2 <= n - 1
    prev = np.where(has_prev, i - 1, i)
    nxt = np.where(has_next, i + 2, i + 1)
    span_prev = np.where(has_prev, x[i + 1] - x[prev], 2 * h)
    span_next = np.where(has_next, x[nxt] - x[i], 2 * h)

    a, b, c, d = y[..., prev], y[..., i], y[..., i + 1], y[..., nxt]
    m0 = (c - a) * (h / span_prev)
    m1 = (d - b) * (h / span_next)

    f2 = frac * frac
    f3 = f2 * frac
    out = (
        (2 * f3 - 3 * f2 + 1) * b
        + (f3 - 2 * f2 + frac) * m0
        + (-2 * f3 + 3 * f2) * c
        + (f3 - f2) * m1
    )
    if bounds is not None:
        out = np.clip(out, bounds[0], bounds[1])

    outside = (t < x[0]) | (t > x[-1])
    out = np.where(outside, np.nan, out)
    return out.astype(np.float32)


def interpolate(variable: str | Variable, source_times, values, target_times) -> np.ndarray:
    """
    Interpolate a variable in time following its registry policy.

    Parameters
    ----------
    variable : str or Variable
    source_times : array-like
        Strictly increasing source times, as datetime64 or numbers.
    values : array-like
        Source values, with time along the last axis.
    target_times : array-like
        Target times, in the same representation as `source_times`.

    Returns
    -------
    np.ndarray

    See Also
    --------
    backwards_sum, hermite
    """
    policy = REGISTRY.interpolation_of(variable)
    if policy.kind is InterpolationKind.backwards_sum:
        return backwards_sum(source_times, values, target_times)
    return hermite(source_times, values, target_times, bounds=policy.bounds)


def resample_time(d: xr.Dataset, freq: str, dim: str = "time") -> xr.Dataset:
    """
    Interpolate the registry variables of a dataset to a regular time axis.

    Parameters
    ----------
    d : xr.Dataset
        Dataset with variables named after :py:class:`~isobar.ecmwf.Variable` members.
    freq : str
        Pandas frequency string of the target time axis, e.g. "1h".
    dim : str
        Name of the time dimension.

    Returns
    -------
    xr.Dataset
        Variables without the time dimension are copied. Other variables outside the registry are dropped.
    """
    source = d[dim].values
    target = pd.date_range(start=source[0], end=source[-1], freq=freq)

    d_out = xr.Dataset(coords={k: v for k, v in d.coords.items() if dim not in v.dims}, attrs=d.attrs)
    d_out = d_out.assign_coords({dim: target})
    for vv in d.data_vars:
        da = d[vv]
        if dim not in da.dims:
            d_out[vv] = da
            continue
        if vv not in REGISTRY:
            msg = f"Variable `{vv}` is not a registry variable and has no interpolation policy. Dropping it."
            logger.warning(msg)
            continue

        da = da.transpose(..., dim)
        values = interpolate(vv, source, da.values, target.values)
        out = xr.DataArray(
            values,
            dims=da.dims,
            coords={k: v for k, v in da.coords.items() if dim not in v.dims} | {dim: target},
            attrs=da.attrs,
            name=vv,
        )
        d_out[vv] = out.transpose(*d[vv].dims)

        msg = f"Interpolated `{vv}` to `{freq}` with `{REGISTRY.interpolation_of(vv).kind.value}`."
        logger.info(msg)

    prev_history = d_out.attrs.get("history", "")
    history = f"Resampled time axis to frequency `{freq}`. {prev_history}"
    d_out.attrs.update(dict(history=history.strip()))
    return d_out
