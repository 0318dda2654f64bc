"""
Derived variables of the ECMWF IFS open-data feed.

Derived variables are computed downstream from one or more primary variables. Several external names designate the
same computation (`windspeed_10m` and `wind_speed_10m`), so every name is resolved through :py:data:`DERIVED_ALIASES`
to a single :py:class:`DerivedKind`. Some kinds are only another name for a primary variable and are read directly
(`passthrough`).
"""

from __future__ import annotations
import logging
from collections.abc import Iterable
from enum import Enum

from isobar.exceptions import UnknownVariable

from ._variables import PRESSURE_LEVELS, Variable


logger = logging.getLogger("isobar.ecmwf.derived")

__all__ = [
    "DERIVED_ALIASES",
    "DERIVED_DEPENDENCIES",
    "PASSTHROUGH",
    "DerivedKind",
    "aliases_of",
    "canonicalize",
    "dependencies_of",
    "passthrough_of",
    "required_variables",
    "resolve",
]


class DerivedKind(str, Enum):
    """Canonical identity of each derived computation."""

    relative_humidity_2m = "relative_humidity_2m"
    dew_point_2m = "dew_point_2m"
    apparent_temperature = "apparent_temperature"
    vapour_pressure_deficit = "vapour_pressure_deficit"
    wind_speed_10m = "wind_speed_10m"
    wind_speed_1000hPa = "wind_speed_1000hPa"
    wind_speed_925hPa = "wind_speed_925hPa"
    wind_speed_850hPa = "wind_speed_850hPa"
    wind_speed_700hPa = "wind_speed_700hPa"
    wind_speed_500hPa = "wind_speed_500hPa"
    wind_speed_300hPa = "wind_speed_300hPa"
    wind_speed_250hPa = "wind_speed_250hPa"
    wind_speed_200hPa = "wind_speed_200hPa"
    wind_speed_50hPa = "wind_speed_50hPa"
    wind_direction_10m = "wind_direction_10m"
    wind_direction_1000hPa = "wind_direction_1000hPa"
    wind_direction_925hPa = "wind_direction_925hPa"
    wind_direction_850hPa = "wind_direction_850hPa"
    wind_direction_700hPa = "wind_direction_700hPa"
    wind_direction_500hPa = "wind_direction_500hPa"
    wind_direction_300hPa = "wind_direction_300hPa"
    wind_direction_250hPa = "wind_direction_250hPa"
    wind_direction_200hPa = "wind_direction_200hPa"
    wind_direction_50hPa = "wind_direction_50hPa"
    cloud_cover_1000hPa = "cloud_cover_1000hPa"
    cloud_cover_925hPa = "cloud_cover_925hPa"
    cloud_cover_850hPa = "cloud_cover_850hPa"
    cloud_cover_700hPa = "cloud_cover_700hPa"
    cloud_cover_500hPa = "cloud_cover_500hPa"
    cloud_cover_300hPa = "cloud_cover_300hPa"
    cloud_cover_250hPa = "cloud_cover_250hPa"
    cloud_cover_200hPa = "cloud_cover_200hPa"
    cloud_cover_50hPa = "cloud_cover_50hPa"
    relative_humidity_1000hPa = "relative_humidity_1000hPa"
    relative_humidity_925hPa = "relative_humidity_925hPa"
    relative_humidity_850hPa = "relative_humidity_850hPa"
    relative_humidity_700hPa = "relative_humidity_700hPa"
    relative_humidity_500hPa = "relative_humidity_500hPa"
    relative_humidity_300hPa = "relative_humidity_300hPa"
    relative_humidity_250hPa = "relative_humidity_250hPa"
    relative_humidity_200hPa = "relative_humidity_200hPa"
    relative_humidity_50hPa = "relative_humidity_50hPa"
    dew_point_1000hPa = "dew_point_1000hPa"
    dew_point_925hPa = "dew_point_925hPa"
    dew_point_850hPa = "dew_point_850hPa"
    dew_point_700hPa = "dew_point_700hPa"
    dew_point_500hPa = "dew_point_500hPa"
    dew_point_300hPa = "dew_point_300hPa"
    dew_point_250hPa = "dew_point_250hPa"
    dew_point_200hPa = "dew_point_200hPa"
    dew_point_50hPa = "dew_point_50hPa"
    soil_temperature_0_to_10cm = "soil_temperature_0_to_10cm"
    weather_code = "weather_code"
    snowfall = "snowfall"
    rain = "rain"
    is_day = "is_day"
    surface_air_pressure = "surface_air_pressure"
    skin_temperature = "skin_temperature"
    wet_bulb_temperature_2m = "wet_bulb_temperature_2m"
    cloud_cover = "cloud_cover"
    cloud_cover_low = "cloud_cover_low"
    cloud_cover_mid = "cloud_cover_mid"
    cloud_cover_high = "cloud_cover_high"

    def __str__(self) -> str:
        return self.value


def _levelled(kind: str, *aliases: str) -> dict[str, DerivedKind]:
    """Map every `alias` at every pressure level to the `kind` at the same level."""
    return {f"{alias}_{level}hPa": DerivedKind(f"{kind}_{level}hPa") for alias in aliases for level in PRESSURE_LEVELS}


DERIVED_ALIASES: dict[str, DerivedKind] = {
    "relativehumidity_2m": DerivedKind.relative_humidity_2m,
    "relative_humidity_2m": DerivedKind.relative_humidity_2m,
    "dewpoint_2m": DerivedKind.dew_point_2m,
    "dew_point_2m": DerivedKind.dew_point_2m,
    "apparent_temperature": DerivedKind.apparent_temperature,
    "vapor_pressure_deficit": DerivedKind.vapour_pressure_deficit,
    "vapour_pressure_deficit": DerivedKind.vapour_pressure_deficit,
    "windspeed_10m": DerivedKind.wind_speed_10m,
    "wind_speed_10m": DerivedKind.wind_speed_10m,
    **_levelled("wind_speed", "windspeed", "wind_speed"),
    "winddirection_10m": DerivedKind.wind_direction_10m,
    "wind_direction_10m": DerivedKind.wind_direction_10m,
    **_levelled("wind_direction", "winddirection", "wind_direction"),
    **_levelled("cloud_cover", "cloudcover", "cloud_cover"),
    **_levelled("relative_humidity", "relativehumidity"),
    **_levelled("dew_point", "dewpoint", "dew_point"),
    "soil_temperature_0_7cm": DerivedKind.soil_temperature_0_to_10cm,
    "soil_temperature_0_10cm": DerivedKind.soil_temperature_0_to_10cm,
    "soil_temperature_0_to_10cm": DerivedKind.soil_temperature_0_to_10cm,
    "weathercode": DerivedKind.weather_code,
    "weather_code": DerivedKind.weather_code,
    "snowfall": DerivedKind.snowfall,
    "rain": DerivedKind.rain,
    "is_day": DerivedKind.is_day,
    "surface_air_pressure": DerivedKind.surface_air_pressure,
    "skin_temperature": DerivedKind.skin_temperature,
    "soil_temperature_0cm": DerivedKind.skin_temperature,
    "wet_bulb_temperature_2m": DerivedKind.wet_bulb_temperature_2m,
    "cloudcover": DerivedKind.cloud_cover,
    "cloudcover_low": DerivedKind.cloud_cover_low,
    "cloudcover_mid": DerivedKind.cloud_cover_mid,
    "cloudcover_high": DerivedKind.cloud_cover_high,
}
"""External names of derived variables, grouped by computation."""


def _wind(level: int) -> tuple[Variable, Variable]:
    return Variable.at_level("wind_u_component", level), Variable.at_level("wind_v_component", level)


_NEAR_SURFACE_MOISTURE = (Variable.temperature_2m, Variable.relative_humidity_1000hPa)
_WIND_10M = (Variable.wind_u_component_10m, Variable.wind_v_component_10m)

DERIVED_DEPENDENCIES: dict[DerivedKind, tuple[Variable, ...]] = {
    # The open-data feed has no 2 m humidity, the 1000 hPa level stands in for it
    DerivedKind.relative_humidity_2m: (Variable.relative_humidity_1000hPa,),
    DerivedKind.dew_point_2m: _NEAR_SURFACE_MOISTURE,
    DerivedKind.apparent_temperature: (*_NEAR_SURFACE_MOISTURE, *_WIND_10M),
    DerivedKind.vapour_pressure_deficit: _NEAR_SURFACE_MOISTURE,
    DerivedKind.wind_speed_10m: _WIND_10M,
    **{DerivedKind(f"wind_speed_{level}hPa"): _wind(level) for level in PRESSURE_LEVELS},
    DerivedKind.wind_direction_10m: _WIND_10M,
    **{DerivedKind(f"wind_direction_{level}hPa"): _wind(level) for level in PRESSURE_LEVELS},
    **{
        DerivedKind(f"cloud_cover_{level}hPa"): (Variable.at_level("relative_humidity", level),)
        for level in PRESSURE_LEVELS
    },
    **{
        DerivedKind(f"relative_humidity_{level}hPa"): (Variable.at_level("relative_humidity", level),)
        for level in PRESSURE_LEVELS
    },
    **{
        DerivedKind(f"dew_point_{level}hPa"): (
            Variable.at_level("temperature", level),
            Variable.at_level("relative_humidity", level),
        )
        for level in PRESSURE_LEVELS
    },
    DerivedKind.soil_temperature_0_to_10cm: (Variable.soil_temperature_0_to_7cm,),
    DerivedKind.weather_code: (Variable.cloud_cover, Variable.precipitation, Variable.temperature_2m),
    DerivedKind.snowfall: (Variable.precipitation, Variable.temperature_2m),
    DerivedKind.rain: (Variable.precipitation, Variable.temperature_2m),
    # Computed from time and coordinates only
    DerivedKind.is_day: (),
    DerivedKind.surface_air_pressure: (Variable.surface_pressure,),
    DerivedKind.skin_temperature: (Variable.surface_temperature,),
    DerivedKind.wet_bulb_temperature_2m: _NEAR_SURFACE_MOISTURE,
    DerivedKind.cloud_cover: (Variable.cloud_cover,),
    DerivedKind.cloud_cover_low: (Variable.cloud_cover_low,),
    DerivedKind.cloud_cover_mid: (Variable.cloud_cover_mid,),
    DerivedKind.cloud_cover_high: (Variable.cloud_cover_high,),
}
"""Primary variables each derived computation reads."""

PASSTHROUGH: dict[DerivedKind, Variable] = {
    DerivedKind.relative_humidity_2m: Variable.relative_humidity_1000hPa,
    **{
        DerivedKind(f"relative_humidity_{level}hPa"): Variable.at_level("relative_humidity", level)
        for level in PRESSURE_LEVELS
    },
    DerivedKind.soil_temperature_0_to_10cm: Variable.soil_temperature_0_to_7cm,
    DerivedKind.surface_air_pressure: Variable.surface_pressure,
    DerivedKind.skin_temperature: Variable.surface_temperature,
    DerivedKind.cloud_cover: Variable.cloud_cover,
    DerivedKind.cloud_cover_low: Variable.cloud_cover_low,
    DerivedKind.cloud_cover_mid: Variable.cloud_cover_mid,
    DerivedKind.cloud_cover_high: Variable.cloud_cover_high,
}
"""Derived kinds that read a single primary variable without computation."""


def canonicalize(name: str | DerivedKind) -> DerivedKind:
    """
    Resolve a derived variable name to its canonical computation.

    Parameters
    ----------
    name : str or DerivedKind
        An external derived variable name, or an already canonical kind.

    Returns
    -------
    DerivedKind

    Raises
    ------
    UnknownVariable
        If `name` is not a derived variable alias.
    """
    if isinstance(name, DerivedKind):
        return name
    try:
        return DERIVED_ALIASES[name]
    except KeyError:
        hint = None
        if name in Variable.__members__:
            hint = "It is a primary variable, not a derived one."
        raise UnknownVariable(name, hint) from None


def aliases_of(kind: str | DerivedKind) -> list[str]:
    """External names that resolve to `kind`, in declaration order."""
    kind = canonicalize(kind)
    return [alias for alias, k in DERIVED_ALIASES.items() if k is kind]


def dependencies_of(kind: str | DerivedKind) -> tuple[Variable, ...]:
    """Primary variables required to compute `kind`."""
    return DERIVED_DEPENDENCIES[canonicalize(kind)]


def passthrough_of(kind: str | DerivedKind) -> Variable | None:
    """The primary variable read directly for `kind`, or None if `kind` requires a computation."""
    return PASSTHROUGH.get(canonicalize(kind))


def resolve(name: str | Variable | DerivedKind) -> Variable | DerivedKind:
    """
    Parse an external variable name.

    Primary variable names take precedence over derived aliases.

    Parameters
    ----------
    name : str or Variable or DerivedKind

    Returns
    -------
    Variable or DerivedKind

    Raises
    ------
    UnknownVariable
        If `name` is neither a primary variable nor a derived alias.
    """
    if isinstance(name, (Variable, DerivedKind)):
        return name
    if name in Variable.__members__:
        return Variable[name]
    if name in DERIVED_ALIASES:
        return DERIVED_ALIASES[name]
    raise UnknownVariable(name)


def required_variables(names: Iterable[str | Variable | DerivedKind]) -> list[Variable]:
    """
    Collect the primary variables needed to serve a request.

    Parameters
    ----------
    names : iterable of str, Variable or DerivedKind
        Primary and derived variable names, in any mix.

    Returns
    -------
    list of Variable
        The primary variables, without duplicates, in first-requested order.
    """
    required = dict()
    for name in names:
        resolved = resolve(name)
        if isinstance(resolved, Variable):
            required.setdefault(resolved, None)
        else:
            for dependency in DERIVED_DEPENDENCIES[resolved]:
                required.setdefault(dependency, None)
    msg = f"Resolved {len(required)} primary variable(s) for request."
    logger.debug(msg)
    return list(required)
