from __future__ import annotations
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from isobar.ecmwf import SOURCE_CODES, Variable
from isobar.registry import REGISTRY, parse_variable


logger = logging.getLogger("isobar.decode")

__all__ = [
    "SOURCE_INDEX",
    "match_source_fields",
    "open_data_request",
    "variable_from_source",
]


def _build_source_index() -> dict[tuple[str, int | None], Variable]:
    index = dict()
    for variable, code in SOURCE_CODES.items():
        if code is None:
            continue
        key = (code, REGISTRY.level_of(variable))
        if key in index:
            msg = f"Source field {key} is mapped to both `{index[key].value}` and `{variable.value}`."
            raise ValueError(msg)
        index[key] = variable
    return index


SOURCE_INDEX = _build_source_index()
"""Primary variable of every `(grib short name, level)` pair found in the source files."""


def variable_from_source(code: str, level: int | None = None) -> Variable | None:
    """
    Find the primary variable of a source field.

    Parameters
    ----------
    code : str
        Grib short name, e.g. "2t" or "gh".
    level : int, optional
        Pressure level in hPa or height in metres. Fields without a level use None.

    Returns
    -------
    Variable or None
        None if the field is not a registry variable.
    """
    if level is not None:
        level = int(level)
    return SOURCE_INDEX.get((code, level))


def match_source_fields(fields: Mapping[tuple[str, int | None], Any]) -> dict[Variable, Any]:
    """
    Key decoded source fields by their primary variable.

    Parameters
    ----------
    fields : Mapping
        Decoded data keyed by `(grib short name, level)`.

    Returns
    -------
    dict
        Data keyed by :py:class:`~isobar.ecmwf.Variable`. Unknown fields are logged and skipped.
    """
    matched = dict()
    for (code, level), data in fields.items():
        variable = variable_from_source(code, level)
        if variable is None:
            msg = f"Source field `{code}` at level `{level}` does not match any variable. Skipping."
            logger.warning(msg)
            continue
        matched[variable] = data
    return matched


def open_data_request(variables: Iterable[str | Variable]) -> dict[str, dict[str, list]]:
    """
    Group the source fields needed to fetch variables from the open-data archive.

    Parameters
    ----------
    variables : iterable of str or Variable
        Primary variables.

    Returns
    -------
    dict
        Grib short names of single-level fields under `sfc` and of pressure-level fields under `pl`,
        along with the required pressure levels (hPa). Variables without a source code are skipped.

    Examples
    --------
    >>> open_data_request(["temperature_2m", "temperature_850hPa", "temperature_500hPa"])
    {'sfc': {'param': ['2t']}, 'pl': {'param': ['t'], 'levelist': [850, 500]}}
    """
    sfc_params, pl_params, levels = list(), list(), list()
    for name in variables:
        variable = parse_variable(name)
        code = REGISTRY.source_code_of(variable)
        if code is None:
            msg = f"Variable `{variable.value}` is not present in the source files. Skipping."
            logger.info(msg)
            continue
        if variable.is_pressure_level:
            if code not in pl_params:
                pl_params.append(code)
            if variable.pressure_level not in levels:
                levels.append(variable.pressure_level)
        elif code not in sfc_params:
            sfc_params.append(code)

    request = dict()
    if sfc_params:
        request["sfc"] = {"param": sfc_params}
    if pl_params:
        request["pl"] = {"param": pl_params, "levelist": sorted(levels, reverse=True)}
    return request
