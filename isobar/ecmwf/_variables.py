"""ECMWF IFS open-data variables."""

from __future__ import annotations
import re
from enum import Enum


__all__ = [
    "PRESSURE_LEVELS",
    "PRESSURE_LEVEL_FAMILIES",
    "Variable",
]

PRESSURE_LEVELS = (1000, 925, 850, 700, 500, 300, 250, 200, 50)
"""Standard pressure levels (hPa) of the open-data feed."""

PRESSURE_LEVEL_FAMILIES = (
    "geopotential_height",
    "wind_v_component",
    "wind_u_component",
    "temperature",
    "relative_humidity",
    "specific_humidity",
    "relative_vorticity",
    "divergence_of_wind",
)
"""Quantities sampled at every standard pressure level."""

_PRESSURE_LEVEL_REGEX = re.compile(r"^(?P<family>\w+?)_(?P<level>\d+)hPa$")


class Variable(str, Enum):
    """Primary variables as available in the ECMWF IFS grib2 files."""

    precipitation = "precipitation"
    runoff = "runoff"
    soil_temperature_0_to_7cm = "soil_temperature_0_to_7cm"
    surface_temperature = "surface_temperature"
    geopotential_height_1000hPa = "geopotential_height_1000hPa"
    geopotential_height_925hPa = "geopotential_height_925hPa"
    geopotential_height_850hPa = "geopotential_height_850hPa"
    geopotential_height_700hPa = "geopotential_height_700hPa"
    geopotential_height_500hPa = "geopotential_height_500hPa"
    geopotential_height_300hPa = "geopotential_height_300hPa"
    geopotential_height_250hPa = "geopotential_height_250hPa"
    geopotential_height_200hPa = "geopotential_height_200hPa"
    geopotential_height_50hPa = "geopotential_height_50hPa"
    wind_v_component_1000hPa = "wind_v_component_1000hPa"
    wind_v_component_925hPa = "wind_v_component_925hPa"
    wind_v_component_850hPa = "wind_v_component_850hPa"
    wind_v_component_700hPa = "wind_v_component_700hPa"
    wind_v_component_500hPa = "wind_v_component_500hPa"
    wind_v_component_300hPa = "wind_v_component_300hPa"
    wind_v_component_250hPa = "wind_v_component_250hPa"
    wind_v_component_200hPa = "wind_v_component_200hPa"
    wind_v_component_50hPa = "wind_v_component_50hPa"
    wind_u_component_1000hPa = "wind_u_component_1000hPa"
    wind_u_component_925hPa = "wind_u_component_925hPa"
    wind_u_component_850hPa = "wind_u_component_850hPa"
    wind_u_component_700hPa = "wind_u_component_700hPa"
    wind_u_component_500hPa = "wind_u_component_500hPa"
    wind_u_component_300hPa = "wind_u_component_300hPa"
    wind_u_component_250hPa = "wind_u_component_250hPa"
    wind_u_component_200hPa = "wind_u_component_200hPa"
    wind_u_component_50hPa = "wind_u_component_50hPa"
    temperature_1000hPa = "temperature_1000hPa"
    temperature_925hPa = "temperature_925hPa"
    temperature_850hPa = "temperature_850hPa"
    temperature_700hPa = "temperature_700hPa"
    temperature_500hPa = "temperature_500hPa"
    temperature_300hPa = "temperature_300hPa"
    temperature_250hPa = "temperature_250hPa"
    temperature_200hPa = "temperature_200hPa"
    temperature_50hPa = "temperature_50hPa"
    relative_humidity_1000hPa = "relative_humidity_1000hPa"
    relative_humidity_925hPa = "relative_humidity_925hPa"
    relative_humidity_850hPa = "relative_humidity_850hPa"
    relative_humidity_700hPa = "relative_humidity_700hPa"
    relative_humidity_500hPa = "relative_humidity_500hPa"
    relative_humidity_300hPa = "relative_humidity_300hPa"
    relative_humidity_250hPa = "relative_humidity_250hPa"
    relative_humidity_200hPa = "relative_humidity_200hPa"
    relative_humidity_50hPa = "relative_humidity_50hPa"
    surface_pressure = "surface_pressure"
    pressure_msl = "pressure_msl"
    total_column_integrated_water_vapour = "total_column_integrated_water_vapour"
    wind_v_component_10m = "wind_v_component_10m"
    wind_u_component_10m = "wind_u_component_10m"
    specific_humidity_1000hPa = "specific_humidity_1000hPa"
    specific_humidity_925hPa = "specific_humidity_925hPa"
    specific_humidity_850hPa = "specific_humidity_850hPa"
    specific_humidity_700hPa = "specific_humidity_700hPa"
    specific_humidity_500hPa = "specific_humidity_500hPa"
    specific_humidity_300hPa = "specific_humidity_300hPa"
    specific_humidity_250hPa = "specific_humidity_250hPa"
    specific_humidity_200hPa = "specific_humidity_200hPa"
    specific_humidity_50hPa = "specific_humidity_50hPa"
    temperature_2m = "temperature_2m"
    relative_vorticity_1000hPa = "relative_vorticity_1000hPa"
    relative_vorticity_925hPa = "relative_vorticity_925hPa"
    relative_vorticity_850hPa = "relative_vorticity_850hPa"
    relative_vorticity_700hPa = "relative_vorticity_700hPa"
    relative_vorticity_500hPa = "relative_vorticity_500hPa"
    relative_vorticity_300hPa = "relative_vorticity_300hPa"
    relative_vorticity_250hPa = "relative_vorticity_250hPa"
    relative_vorticity_200hPa = "relative_vorticity_200hPa"
    relative_vorticity_50hPa = "relative_vorticity_50hPa"
    divergence_of_wind_1000hPa = "divergence_of_wind_1000hPa"
    divergence_of_wind_925hPa = "divergence_of_wind_925hPa"
    divergence_of_wind_850hPa = "divergence_of_wind_850hPa"
    divergence_of_wind_700hPa = "divergence_of_wind_700hPa"
    divergence_of_wind_500hPa = "divergence_of_wind_500hPa"
    divergence_of_wind_300hPa = "divergence_of_wind_300hPa"
    divergence_of_wind_250hPa = "divergence_of_wind_250hPa"
    divergence_of_wind_200hPa = "divergence_of_wind_200hPa"
    divergence_of_wind_50hPa = "divergence_of_wind_50hPa"

    # Cloud cover is computed from relative humidity while downloading
    cloud_cover = "cloud_cover"
    cloud_cover_low = "cloud_cover_low"
    cloud_cover_mid = "cloud_cover_mid"
    cloud_cover_high = "cloud_cover_high"

    def __str__(self) -> str:
        return self.value

    @property
    def family(self) -> str:
        """Quantity name without the pressure-level suffix."""
        match = _PRESSURE_LEVEL_REGEX.match(self.value)
        if match:
            return match.group("family")
        return self.value

    @property
    def pressure_level(self) -> int | None:
        """Pressure level in hPa, or None for variables without one."""
        match = _PRESSURE_LEVEL_REGEX.match(self.value)
        if match:
            return int(match.group("level"))
        return None

    @property
    def is_pressure_level(self) -> bool:
        return self.pressure_level is not None

    @classmethod
    def at_level(cls, family: str, level: int) -> Variable:
        """Return the member of a pressure-level `family` at `level` hPa."""
        return cls(f"{family}_{level}hPa")

    @classmethod
    def of_family(cls, family: str) -> list[Variable]:
        """All members of a pressure-level `family`, in declaration order."""
        return [v for v in cls if v.is_pressure_level and v.family == family]
