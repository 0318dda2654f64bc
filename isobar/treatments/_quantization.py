"""
Quantization of variables to scaled integers.

Values are converted to canonical units, multiplied by the variable scale factor and rounded to the storage integer
type. All arithmetic is performed in float32 so that the same inputs always produce the same integers.
"""

from __future__ import annotations
import logging

import numpy as np
import xarray as xr

from isobar import config
from isobar.ecmwf import Variable
from isobar.registry import REGISTRY

from ._conversion import from_canonical, to_canonical


logger = logging.getLogger("isobar.treatments.quantization")

__all__ = [
    "decode",
    "dequantize",
    "encode",
    "fill_value",
    "pack_dataset",
    "quantize",
    "storage_attrs",
    "unpack_dataset",
]

_PACKING_ATTRS = ["scale_factor", "isobar_scale_factor", "_FillValue"]


def _storage_dtype(dtype: str | np.dtype | None = None) -> np.dtype:
    if dtype is None:
        dtype = config.STORAGE_DTYPE
    dtype = np.dtype(dtype)
    if dtype.name not in config.VALID_STORAGE_DTYPES:
        msg = f"Storage type must be one of {config.VALID_STORAGE_DTYPES}, got `{dtype.name}`."
        raise ValueError(msg)
    return dtype


def fill_value(dtype: str | np.dtype | None = None) -> int:
    """
    Integer marking missing values in quantized arrays.

    Parameters
    ----------
    dtype : str or np.dtype, optional
        Storage type. Default: :py:data:`isobar.config.STORAGE_DTYPE`.

    Returns
    -------
    int
        The smallest value of the storage type.
    """
    return int(np.iinfo(_storage_dtype(dtype)).min)


def encode(variable: str | Variable, value: float | np.ndarray, dtype: str | np.dtype | None = None) -> np.ndarray:
    """
    Scale and round canonical values to the storage integer type.

    Parameters
    ----------
    variable : str or Variable
    value : float or np.ndarray
        Values in canonical units.
    dtype : str or np.dtype, optional
        Storage type. Default: :py:data:`isobar.config.STORAGE_DTYPE`.

    Returns
    -------
    np.ndarray
        Quantized values. NaN and infinite inputs are set to :py:func:`fill_value`.
        Finite values outside the range of the storage type saturate, even if their scaled product overflows.
    """
    dtype = _storage_dtype(dtype)
    info = np.iinfo(dtype)
    scale = np.float32(REGISTRY.scale_factor_of(variable))

    value = np.asarray(value)
    # Finite inputs whose product overflows to inf still saturate
    finite = np.isfinite(value)
    with np.errstate(over="ignore"):
        scaled = value.astype(np.float32) * scale
    # Bounds are exact in float64 for both storage types
    rounded = np.rint(scaled.astype(np.float64))
    lower, upper = float(info.min + 1), float(info.max)
    saturated = finite & ((rounded < lower) | (rounded > upper))
    if np.any(saturated):
        msg = (
            f"{int(np.count_nonzero(saturated))} value(s) of `{REGISTRY[variable].variable.value}` "
            f"exceed the range of {dtype.name} and were saturated."
        )
        logger.warning(msg)

    out = np.where(finite, np.clip(rounded, lower, upper), info.min)
    return out.astype(dtype)


def decode(variable: str | Variable, stored: int | np.ndarray, dtype: str | np.dtype | None = None) -> np.ndarray:
    """
    Convert quantized integers back to canonical values.

    Parameters
    ----------
    variable : str or Variable
    stored : int or np.ndarray
        Quantized values.
    dtype : str or np.dtype, optional
        Storage type, used to identify missing values. Default: the type of `stored` if it is a valid storage type,
        otherwise :py:data:`isobar.config.STORAGE_DTYPE`.

    Returns
    -------
    np.ndarray
        Float32 values in canonical units. Missing values are NaN.
    """
    stored = np.asarray(stored)
    if dtype is None and stored.dtype.name in config.VALID_STORAGE_DTYPES:
        dtype = stored.dtype
    missing = stored == fill_value(dtype)

    scale = np.float32(REGISTRY.scale_factor_of(variable))
    out = stored.astype(np.float32) / scale
    return np.where(missing, np.float32(np.nan), out).astype(np.float32)


def quantize(variable: str | Variable, raw: float | np.ndarray, dtype: str | np.dtype | None = None) -> np.ndarray:
    """Convert archive-native values to canonical units and encode them."""
    return encode(variable, to_canonical(variable, raw), dtype=dtype)


def dequantize(
    variable: str | Variable,
    stored: int | np.ndarray,
    native: bool = True,
    dtype: str | np.dtype | None = None,
) -> np.ndarray:
    """
    Decode quantized integers.

    Parameters
    ----------
    variable : str or Variable
    stored : int or np.ndarray
        Quantized values.
    native : bool
        If True, convert the decoded values back to archive-native units. Otherwise return canonical values.
    dtype : str or np.dtype, optional
        Storage type.

    Returns
    -------
    np.ndarray
    """
    values = decode(variable, stored, dtype=dtype)
    if native:
        return np.asarray(from_canonical(variable, values))
    return values


def storage_attrs(variable: str | Variable, dtype: str | np.dtype | None = None) -> dict[str, str | int | float]:
    """
    CF attributes describing a quantized variable.

    The `scale_factor` attribute is the inverse of the registry scale factor, so that CF-aware readers unpack the
    stored integers into canonical values.

    Parameters
    ----------
    variable : str or Variable
    dtype : str or np.dtype, optional
        Storage type.

    Returns
    -------
    dict
    """
    meta = REGISTRY[variable]
    attrs = dict(meta.attrs)
    attrs.update(
        {
            "units": meta.unit.value,
            "scale_factor": 1.0 / meta.scale_factor,
            "isobar_scale_factor": meta.scale_factor,
            "_FillValue": fill_value(dtype),
        }
    )
    return attrs


def pack_dataset(d: xr.Dataset, dtype: str | np.dtype | None = None) -> xr.Dataset:
    """
    Quantize the registry variables of a dataset.

    Parameters
    ----------
    d : xr.Dataset
        Dataset with variables in canonical units, see :py:func:`~isobar.treatments.convert_to_canonical`.
    dtype : str or np.dtype, optional
        Storage type. Default: :py:data:`isobar.config.STORAGE_DTYPE`.

    Returns
    -------
    xr.Dataset
    """
    dtype = _storage_dtype(dtype)
    d_out = d.copy()
    for vv in d.data_vars:
        if vv not in REGISTRY:
            msg = f"Variable `{vv}` is not a registry variable. Leaving it unpacked."
            logger.info(msg)
            continue
        meta = REGISTRY[vv]
        current = d[vv].attrs.get("units", meta.unit.value)
        if current != meta.unit.value:
            msg = f"Variable `{vv}` must be in canonical units (`{meta.unit.value}`) to be packed, got `{current}`."
            raise ValueError(msg)

        packed = d[vv].copy(data=encode(meta.variable, d[vv].values, dtype=dtype))
        packed.attrs.update(storage_attrs(meta.variable, dtype=dtype))
        packed.encoding = dict()
        d_out[vv] = packed

        prev_history = d_out.attrs.get("history", "")
        history = f"Quantized variable `{vv}` to {dtype.name} with scale factor {meta.scale_factor}. {prev_history}"
        d_out.attrs.update(dict(history=history.strip()))
    return d_out


def unpack_dataset(d: xr.Dataset, native: bool = False) -> xr.Dataset:
    """
    Decode the quantized registry variables of a dataset.

    This is the inverse of :py:func:`pack_dataset`, which only accepts canonical values, so canonical values are
    returned by default. :py:func:`dequantize` defaults to archive-native units instead, as it is the inverse of
    :py:func:`quantize`, which takes archive-native values.

    Parameters
    ----------
    d : xr.Dataset
        Dataset produced by :py:func:`pack_dataset`.
    native : bool
        If True, return values in archive-native units. Otherwise return canonical values.

    Returns
    -------
    xr.Dataset
    """
    d_out = d.copy()
    for vv in d.data_vars:
        if vv not in REGISTRY or not np.issubdtype(d[vv].dtype, np.integer):
            continue
        meta = REGISTRY[vv]
        stored_factor = d[vv].attrs.get("isobar_scale_factor", meta.scale_factor)
        if stored_factor != meta.scale_factor:
            msg = (
                f"Variable `{vv}` was packed with scale factor {stored_factor}, "
                f"but the registry defines {meta.scale_factor}."
            )
            raise ValueError(msg)

        values = dequantize(meta.variable, d[vv].values, native=native, dtype=d[vv].dtype)
        unpacked = d[vv].copy(data=values)
        for attr in _PACKING_ATTRS:
            unpacked.attrs.pop(attr, None)
        unpacked.attrs["units"] = meta.native_units if native else meta.unit.value
        d_out[vv] = unpacked

        prev_history = d_out.attrs.get("history", "")
        history = f"Decoded variable `{vv}` to `{unpacked.attrs['units']}`. {prev_history}"
        d_out.attrs.update(dict(history=history.strip()))
    return d_out
