"""
Per-variable policy tables for the ECMWF IFS open-data feed.

Every table is keyed by :py:class:`~isobar.ecmwf.Variable` and must hold an entry for every member, including
explicit `None` entries. There is no fallback value: a missing key is a registry defect reported by
:py:func:`isobar.validate.check_registry_tables` when the registry is built.
"""

from __future__ import annotations
from typing import Any

from isobar.policies import BACKWARDS_SUM, HERMITE, HERMITE_PERCENTAGE, Affine, Eligibility, Interpolation
from isobar.units import Unit

from ._variables import PRESSURE_LEVELS, Variable


__all__ = [
    "AFFINE",
    "ELEVATION_CORRECTABLE",
    "ENSEMBLE",
    "INTERPOLATION",
    "LEVELS",
    "NATIVE_UNITS",
    "POLICY_TABLES",
    "PREVIOUS_FORECAST",
    "SCALE_FACTORS",
    "SOURCE_CODES",
    "UNITS",
]


def _per_level(family: str, value: Any) -> dict[Variable, Any]:
    """Assign the same `value` to a pressure-level `family` at every standard level."""
    return {Variable.at_level(family, level): value for level in PRESSURE_LEVELS}


def _pressure_level_of(family: str) -> dict[Variable, int]:
    return {Variable.at_level(family, level): level for level in PRESSURE_LEVELS}


_KELVIN_TO_CELSIUS = Affine(1.0, -273.15)
_PASCAL_TO_HECTOPASCAL = Affine(1 / 100, 0.0)
_METRE_TO_MILLIMETRE = Affine(1000.0, 0.0)
_KG_TO_G_PER_KG = Affine(1000.0, 0.0)


UNITS: dict[Variable, Unit] = {
    Variable.precipitation: Unit.millimetre,
    Variable.runoff: Unit.millimetre,
    Variable.soil_temperature_0_to_7cm: Unit.celsius,
    Variable.surface_temperature: Unit.celsius,
    **_per_level("geopotential_height", Unit.metre),
    **_per_level("wind_v_component", Unit.metre_per_second),
    **_per_level("wind_u_component", Unit.metre_per_second),
    **_per_level("temperature", Unit.celsius),
    **_per_level("relative_humidity", Unit.percentage),
    Variable.surface_pressure: Unit.hectopascal,
    Variable.pressure_msl: Unit.hectopascal,
    Variable.total_column_integrated_water_vapour: Unit.kilogram_per_square_metre,
    Variable.wind_v_component_10m: Unit.metre_per_second,
    Variable.wind_u_component_10m: Unit.metre_per_second,
    **_per_level("specific_humidity", Unit.gram_per_kilogram),
    Variable.temperature_2m: Unit.celsius,
    **_per_level("relative_vorticity", Unit.per_second),
    **_per_level("divergence_of_wind", Unit.per_second),
    Variable.cloud_cover: Unit.percentage,
    Variable.cloud_cover_low: Unit.percentage,
    Variable.cloud_cover_mid: Unit.percentage,
    Variable.cloud_cover_high: Unit.percentage,
}
"""Canonical unit each variable is stored in."""

NATIVE_UNITS: dict[Variable, str] = {
    Variable.precipitation: "m",
    Variable.runoff: "m",
    Variable.soil_temperature_0_to_7cm: "K",
    Variable.surface_temperature: "K",
    **_per_level("geopotential_height", "m"),
    **_per_level("wind_v_component", "m s-1"),
    **_per_level("wind_u_component", "m s-1"),
    **_per_level("temperature", "K"),
    **_per_level("relative_humidity", "%"),
    Variable.surface_pressure: "Pa",
    Variable.pressure_msl: "Pa",
    Variable.total_column_integrated_water_vapour: "kg m-2",
    Variable.wind_v_component_10m: "m s-1",
    Variable.wind_u_component_10m: "m s-1",
    **_per_level("specific_humidity", "kg kg-1"),
    Variable.temperature_2m: "K",
    **_per_level("relative_vorticity", "s-1"),
    **_per_level("divergence_of_wind", "s-1"),
    Variable.cloud_cover: "%",
    Variable.cloud_cover_low: "%",
    Variable.cloud_cover_mid: "%",
    Variable.cloud_cover_high: "%",
}
"""Units of the values as they are decoded from the archive."""

SCALE_FACTORS: dict[Variable, float] = {
    Variable.precipitation: 10,
    Variable.runoff: 10,
    Variable.soil_temperature_0_to_7cm: 20,
    Variable.surface_temperature: 20,
    **_per_level("geopotential_height", 1),
    **_per_level("wind_v_component", 10),
    **_per_level("wind_u_component", 10),
    **_per_level("temperature", 20),
    **_per_level("relative_humidity", 1),
    Variable.surface_pressure: 10,
    Variable.pressure_msl: 10,
    Variable.total_column_integrated_water_vapour: 10,
    Variable.wind_v_component_10m: 10,
    Variable.wind_u_component_10m: 10,
    **_per_level("specific_humidity", 100),
    Variable.temperature_2m: 20,
    **_per_level("relative_vorticity", 100),
    **_per_level("divergence_of_wind", 100),
    Variable.cloud_cover: 1,
    Variable.cloud_cover_low: 1,
    Variable.cloud_cover_mid: 1,
    Variable.cloud_cover_high: 1,
}
"""Multiplier applied to canonical values before rounding to integers."""

AFFINE: dict[Variable, Affine | None] = {
    Variable.precipitation: _METRE_TO_MILLIMETRE,
    Variable.runoff: _METRE_TO_MILLIMETRE,
    Variable.soil_temperature_0_to_7cm: _KELVIN_TO_CELSIUS,
    Variable.surface_temperature: _KELVIN_TO_CELSIUS,
    **_per_level("geopotential_height", None),
    **_per_level("wind_v_component", None),
    **_per_level("wind_u_component", None),
    **_per_level("temperature", _KELVIN_TO_CELSIUS),
    **_per_level("relative_humidity", None),
    Variable.surface_pressure: _PASCAL_TO_HECTOPASCAL,
    Variable.pressure_msl: _PASCAL_TO_HECTOPASCAL,
    Variable.total_column_integrated_water_vapour: None,
    Variable.wind_v_component_10m: None,
    Variable.wind_u_component_10m: None,
    **_per_level("specific_humidity", _KG_TO_G_PER_KG),
    Variable.temperature_2m: _KELVIN_TO_CELSIUS,
    **_per_level("relative_vorticity", None),
    **_per_level("divergence_of_wind", None),
    Variable.cloud_cover: None,
    Variable.cloud_cover_low: None,
    Variable.cloud_cover_mid: None,
    Variable.cloud_cover_high: None,
}
"""Conversion from native to canonical units, applied before scaling."""

INTERPOLATION: dict[Variable, Interpolation] = {
    Variable.precipitation: BACKWARDS_SUM,
    Variable.runoff: BACKWARDS_SUM,
    Variable.soil_temperature_0_to_7cm: HERMITE,
    Variable.surface_temperature: HERMITE,
    **_per_level("geopotential_height", HERMITE),
    **_per_level("wind_v_component", HERMITE),
    **_per_level("wind_u_component", HERMITE),
    **_per_level("temperature", HERMITE),
    **_per_level("relative_humidity", HERMITE_PERCENTAGE),
    Variable.surface_pressure: HERMITE,
    Variable.pressure_msl: HERMITE,
    Variable.total_column_integrated_water_vapour: HERMITE,
    Variable.wind_v_component_10m: HERMITE,
    Variable.wind_u_component_10m: HERMITE,
    **_per_level("specific_humidity", HERMITE),
    Variable.temperature_2m: HERMITE,
    **_per_level("relative_vorticity", HERMITE),
    **_per_level("divergence_of_wind", HERMITE),
    Variable.cloud_cover: HERMITE_PERCENTAGE,
    Variable.cloud_cover_low: HERMITE_PERCENTAGE,
    Variable.cloud_cover_mid: HERMITE_PERCENTAGE,
    Variable.cloud_cover_high: HERMITE_PERCENTAGE,
}
"""Temporal interpolation used when resampling forecast steps."""

SOURCE_CODES: dict[Variable, str | None] = {
    Variable.precipitation: "tp",
    Variable.runoff: "ro",
    Variable.soil_temperature_0_to_7cm: "st",
    Variable.surface_temperature: "skt",
    **_per_level("geopotential_height", "gh"),
    **_per_level("wind_v_component", "v"),
    **_per_level("wind_u_component", "u"),
    **_per_level("temperature", "t"),
    **_per_level("relative_humidity", "r"),
    Variable.surface_pressure: "sp",
    Variable.pressure_msl: "msl",
    Variable.total_column_integrated_water_vapour: "tcwv",
    Variable.wind_v_component_10m: "10v",
    Variable.wind_u_component_10m: "10u",
    **_per_level("specific_humidity", "q"),
    Variable.temperature_2m: "2t",
    **_per_level("relative_vorticity", "vo"),
    **_per_level("divergence_of_wind", "d"),
    # Not present in the grib files
    Variable.cloud_cover: None,
    Variable.cloud_cover_low: None,
    Variable.cloud_cover_mid: None,
    Variable.cloud_cover_high: None,
}
"""Grib short name of each variable."""

LEVELS: dict[Variable, int | None] = {
    Variable.precipitation: None,
    Variable.runoff: None,
    Variable.soil_temperature_0_to_7cm: 0,
    Variable.surface_temperature: None,
    **_pressure_level_of("geopotential_height"),
    **_pressure_level_of("wind_v_component"),
    **_pressure_level_of("wind_u_component"),
    **_pressure_level_of("temperature"),
    **_pressure_level_of("relative_humidity"),
    Variable.surface_pressure: None,
    Variable.pressure_msl: None,
    Variable.total_column_integrated_water_vapour: None,
    Variable.wind_v_component_10m: 10,
    Variable.wind_u_component_10m: 10,
    **_pressure_level_of("specific_humidity"),
    Variable.temperature_2m: 2,
    **_pressure_level_of("relative_vorticity"),
    **_pressure_level_of("divergence_of_wind"),
    Variable.cloud_cover: None,
    Variable.cloud_cover_low: None,
    Variable.cloud_cover_mid: None,
    Variable.cloud_cover_high: None,
}
"""Pressure level in hPa, or height in metres, in the grib files."""

ENSEMBLE: dict[Variable, Eligibility | None] = {
    Variable.precipitation: Eligibility.download_and_store,
    Variable.runoff: Eligibility.download_and_store,
    Variable.soil_temperature_0_to_7cm: Eligibility.download_and_store,
    Variable.surface_temperature: Eligibility.download_and_store,
    **_per_level("geopotential_height", None),
    Variable.geopotential_height_850hPa: Eligibility.download_and_store,
    Variable.geopotential_height_500hPa: Eligibility.download_and_store,
    **_per_level("wind_v_component", None),
    **_per_level("wind_u_component", None),
    **_per_level("temperature", None),
    Variable.temperature_850hPa: Eligibility.download_and_store,
    Variable.temperature_500hPa: Eligibility.download_and_store,
    # Only needed to compute ensemble cloud cover
    **_per_level("relative_humidity", Eligibility.download_only),
    Variable.relative_humidity_1000hPa: Eligibility.download_and_store,
    Variable.surface_pressure: Eligibility.download_and_store,
    Variable.pressure_msl: Eligibility.download_and_store,
    Variable.total_column_integrated_water_vapour: None,
    Variable.wind_v_component_10m: Eligibility.download_and_store,
    Variable.wind_u_component_10m: Eligibility.download_and_store,
    **_per_level("specific_humidity", None),
    Variable.temperature_2m: Eligibility.download_and_store,
    **_per_level("relative_vorticity", None),
    **_per_level("divergence_of_wind", None),
    Variable.cloud_cover: Eligibility.download_and_store,
    Variable.cloud_cover_low: None,
    Variable.cloud_cover_mid: None,
    Variable.cloud_cover_high: None,
}
"""Ensemble processing classification. `None` excludes the variable from ensembles."""

PREVIOUS_FORECAST = frozenset(
    {
        Variable.temperature_2m,
        Variable.relative_humidity_1000hPa,
        Variable.precipitation,
        Variable.pressure_msl,
        Variable.cloud_cover,
        Variable.wind_v_component_10m,
        Variable.wind_u_component_10m,
    }
)
"""Variables whose previous model run is kept to blend across forecast cycles."""

ELEVATION_CORRECTABLE = frozenset(
    {
        Variable.temperature_2m,
        Variable.surface_temperature,
        Variable.soil_temperature_0_to_7cm,
    }
)
"""Near-surface temperatures that the elevation-correction stage may adjust."""

POLICY_TABLES: dict[str, dict[Variable, Any]] = {
    "units": UNITS,
    "native_units": NATIVE_UNITS,
    "scale_factors": SCALE_FACTORS,
    "affine": AFFINE,
    "interpolation": INTERPOLATION,
    "source_codes": SOURCE_CODES,
    "levels": LEVELS,
    "ensemble": ENSEMBLE,
}
"""Tables that must hold an explicit entry for every variable."""
