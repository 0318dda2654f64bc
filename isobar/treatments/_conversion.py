from __future__ import annotations
import logging

import numpy as np
import xarray as xr
from xclim.core import units

from isobar.ecmwf import Variable
from isobar.registry import REGISTRY


logger = logging.getLogger("isobar.treatments.conversion")

__all__ = [
    "convert_to_canonical",
    "from_canonical",
    "to_canonical",
]


def _as_float32(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float32)


def _unwrap(values: np.ndarray, like) -> np.ndarray | np.float32:
    """Return a numpy scalar when the input was a scalar."""
    if np.ndim(like) == 0:
        return values[()]
    return values


def to_canonical(variable: str | Variable, raw: float | np.ndarray) -> np.ndarray | np.float32:
    """
    Convert values decoded from the archive to the canonical unit of `variable`.

    Parameters
    ----------
    variable : str or Variable
    raw : float or np.ndarray
        Values in archive-native units.

    Returns
    -------
    np.ndarray or np.float32
        Values in canonical units, as float32.
    """
    affine = REGISTRY.affine_of(variable)
    values = _as_float32(raw)
    if affine is not None:
        values = values * np.float32(affine.multiply) + np.float32(affine.add)
    return _unwrap(values, raw)


def from_canonical(variable: str | Variable, value: float | np.ndarray) -> np.ndarray | np.float32:
    """
    Convert values in the canonical unit of `variable` back to archive-native units.

    Parameters
    ----------
    variable : str or Variable
    value : float or np.ndarray
        Values in canonical units.

    Returns
    -------
    np.ndarray or np.float32
        Values in archive-native units, as float32.
    """
    affine = REGISTRY.affine_of(variable)
    values = _as_float32(value)
    if affine is not None:
        values = (values - np.float32(affine.add)) / np.float32(affine.multiply)
    return _unwrap(values, value)


def convert_to_canonical(d: xr.Dataset) -> xr.Dataset:
    """
    Convert registry variables of a dataset to their canonical units.

    Variables whose `units` attribute matches the archive-native units (or that have no `units`) are converted with
    the registry affine conversion. Variables in any other units are converted with xclim.

    Parameters
    ----------
    d : xr.Dataset
        Dataset with variables named after :py:class:`~isobar.ecmwf.Variable` members.

    Returns
    -------
    xr.Dataset
    """
    d_out = xr.Dataset(coords=d.coords, attrs=d.attrs)
    converted = []
    for vv in d.data_vars:
        if vv not in REGISTRY:
            continue
        meta = REGISTRY[vv]
        current = d[vv].attrs.get("units")
        if current == meta.unit.value:
            msg = f"Variable `{vv}` is already in canonical units (`{current}`)."
            logger.info(msg)
            continue

        if current is None or current == meta.native_units:
            out = d[vv].copy(data=to_canonical(meta.variable, d[vv].values))
        else:
            msg = f"Variable `{vv}` is in unexpected units (`{current}`). Converting with xclim."
            logger.warning(msg)
            with xr.set_options(keep_attrs=True):
                out = units.convert_units_to(d[vv], meta.unit.value).astype(np.float32)
        out.attrs["units"] = meta.unit.value
        d_out[vv] = out
        converted.append(vv)

        prev_history = d_out.attrs.get("history", "")
        history = f"Converted variable `{vv}` to canonical units (`{meta.unit.value}`). {prev_history}"
        d_out.attrs.update(dict(history=history.strip()))

    # Copy unconverted variables
    for vv in d.data_vars:
        if vv not in converted:
            d_out[vv] = d[vv]
    return d_out
