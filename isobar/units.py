"""Physical units submodule."""

from __future__ import annotations
import logging
from enum import Enum

import numpy as np
from xclim.core import units as xc_units


logger = logging.getLogger("isobar.units")

__all__ = [
    "Unit",
    "convert_value",
]


class Unit(str, Enum):
    """Canonical physical units of stored variables, as CF/pint unit strings."""

    celsius = "degC"
    gram_per_kilogram = "g kg-1"
    hectopascal = "hPa"
    kilogram_per_square_metre = "kg m-2"
    metre = "m"
    metre_per_second = "m s-1"
    millimetre = "mm"
    percentage = "%"
    per_second = "s-1"

    def __str__(self) -> str:
        return self.value

    def to_pint(self):
        """Return the unit as a :py:class:`pint.Unit` of xclim's registry."""
        return xc_units.units2pint(self.value)


def convert_value(value: float | np.ndarray, source: str, target: str | Unit) -> float | np.ndarray:
    """
    Convert a magnitude between two units using xclim's pint registry.

    Parameters
    ----------
    value : float or np.ndarray
        The magnitude, expressed in `source` units.
    source : str
        The units of `value`.
    target : str or Unit
        The units to convert to.

    Returns
    -------
    float or np.ndarray
        The magnitude expressed in `target` units.
    """
    q = xc_units.units.Quantity(value, xc_units.units2pint(str(source)))
    return q.to(xc_units.units2pint(str(target))).magnitude
