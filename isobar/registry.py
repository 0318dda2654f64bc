"""
Variable registry.

The registry composes the per-variable policy tables into one immutable mapping from
:py:class:`~isobar.ecmwf.Variable` to :py:class:`VariableMetadata`. It is built and validated once, when this
module is imported, and is safe to share between threads.

Functions:
 * :py:func:`build_registry` - compose and validate the policy tables.
 * :py:func:`parse_variable` - parse an external name into a primary variable.
 * Lookups: :py:func:`unit_of`, :py:func:`native_units_of`, :py:func:`scale_factor_of`, :py:func:`affine_of`,
   :py:func:`interpolation_of`, :py:func:`source_code_of`, :py:func:`level_of`, :py:func:`ensemble_eligibility`,
   :py:func:`requires_previous_forecast_blend`, :py:func:`is_elevation_correctable`.
"""

from __future__ import annotations
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from isobar import config
from isobar.ecmwf import (
    AFFINE,
    CF_ATTRS_FILE,
    DERIVED_ALIASES,
    ELEVATION_CORRECTABLE,
    ENSEMBLE,
    INTERPOLATION,
    LEVELS,
    NATIVE_UNITS,
    PREVIOUS_FORECAST,
    SCALE_FACTORS,
    SOURCE_CODES,
    UNITS,
    DerivedKind,
    Variable,
)
from isobar.exceptions import IncompleteRegistryError, UnknownVariable
from isobar.policies import Affine, Eligibility, Interpolation
from isobar.units import Unit
from isobar.validate import (
    check_affine_units,
    check_derived_tables,
    check_pressure_level_coverage,
    check_registry_tables,
    registry_entry_schema,
    validate_json,
)


logger = logging.getLogger("isobar.registry")

__all__ = [
    "REGISTRY",
    "VariableMetadata",
    "VariableRegistry",
    "affine_of",
    "build_registry",
    "elevation_correctable_variables",
    "ensemble_eligibility",
    "ensemble_variables",
    "interpolation_of",
    "is_elevation_correctable",
    "level_of",
    "native_units_of",
    "parse_variable",
    "previous_forecast_variables",
    "requires_previous_forecast_blend",
    "scale_factor_of",
    "source_code_of",
    "unit_of",
]


@dataclass(frozen=True)
class VariableMetadata:
    """All policies of a primary variable."""

    variable: Variable
    unit: Unit
    native_units: str
    scale_factor: float
    affine: Affine | None
    interpolation: Interpolation
    source_code: str | None
    """Grib short name, or None if the variable is not present in the source files."""
    level: int | None
    """Pressure level in hPa, height in metres, 0 for the shallow soil layer, or None."""
    ensemble: Eligibility | None
    store_previous_forecast: bool
    elevation_correctable: bool
    attrs: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    """Descriptive CF attributes (`standard_name`, `long_name`, ...)."""


def parse_variable(name: str | Variable) -> Variable:
    """
    Parse an external name into a primary variable.

    Parameters
    ----------
    name : str or Variable

    Returns
    -------
    Variable

    Raises
    ------
    UnknownVariable
        If `name` is not a primary variable. Derived aliases must be resolved to their primary
        variables with :py:func:`isobar.ecmwf.dependencies_of` first.
    """
    if isinstance(name, Variable):
        return name
    if isinstance(name, DerivedKind):
        raise UnknownVariable(name.value, "It is a derived variable, resolve it to its primary variables first.")
    if isinstance(name, str) and name in Variable.__members__:
        return Variable[name]
    if isinstance(name, str) and name in DERIVED_ALIASES:
        raise UnknownVariable(name, "It is a derived variable, resolve it to its primary variables first.")
    raise UnknownVariable(str(name))


class VariableRegistry(Mapping):
    """Immutable mapping of every primary variable to its :py:class:`VariableMetadata`."""

    def __init__(self, entries: Mapping[Variable, VariableMetadata]):
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, key: str | Variable) -> VariableMetadata:
        return self._entries[parse_variable(key)]

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        try:
            return parse_variable(key) in self._entries
        except UnknownVariable:
            return False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {len(self)} variables>"

    def unit_of(self, variable: str | Variable) -> Unit:
        return self[variable].unit

    def native_units_of(self, variable: str | Variable) -> str:
        return self[variable].native_units

    def scale_factor_of(self, variable: str | Variable) -> float:
        return self[variable].scale_factor

    def affine_of(self, variable: str | Variable) -> Affine | None:
        return self[variable].affine

    def interpolation_of(self, variable: str | Variable) -> Interpolation:
        return self[variable].interpolation

    def source_code_of(self, variable: str | Variable) -> str | None:
        return self[variable].source_code

    def level_of(self, variable: str | Variable) -> int | None:
        return self[variable].level

    def ensemble_eligibility(self, variable: str | Variable) -> Eligibility | None:
        return self[variable].ensemble

    def requires_previous_forecast_blend(self, variable: str | Variable) -> bool:
        return self[variable].store_previous_forecast

    def is_elevation_correctable(self, variable: str | Variable) -> bool:
        return self[variable].elevation_correctable

    def ensemble_variables(self, eligibility: Eligibility | None = None) -> list[Variable]:
        """
        List the variables processed for ensembles.

        Parameters
        ----------
        eligibility : Eligibility, optional
            Restrict to one classification. Default: every variable included in ensembles.

        Returns
        -------
        list of Variable
        """
        return [
            v
            for v, meta in self._entries.items()
            if meta.ensemble is not None and (eligibility is None or meta.ensemble is eligibility)
        ]

    def previous_forecast_variables(self) -> list[Variable]:
        return [v for v, meta in self._entries.items() if meta.store_previous_forecast]

    def elevation_correctable_variables(self) -> list[Variable]:
        return [v for v, meta in self._entries.items() if meta.elevation_correctable]


def _load_cf_attrs() -> dict[Variable, Mapping[str, str]]:
    definitions = validate_json(CF_ATTRS_FILE)
    attrs = dict()
    for name, variable_attrs in definitions["variables"].items():
        try:
            variable = Variable[name]
        except KeyError:
            msg = f"Attributes defined for unknown variable `{name}` in {CF_ATTRS_FILE.name}."
            raise IncompleteRegistryError(msg) from None
        attrs[variable] = MappingProxyType(dict(variable_attrs))
    return attrs


def build_registry(validate_units: bool | None = None) -> VariableRegistry:
    """
    Compose the policy tables into a validated registry.

    Parameters
    ----------
    validate_units : bool, optional
        Verify the affine conversions against pint. Default: :py:data:`isobar.config.VALIDATE_UNITS`.

    Returns
    -------
    VariableRegistry

    Raises
    ------
    RegistryError
        If a policy table is incomplete, a pressure-level quantity misses a level, or a conversion is inconsistent.
    SchemaError
        If a registry entry or the CF attributes file is malformed.
    """
    check_pressure_level_coverage()
    check_registry_tables()
    check_derived_tables()
    if validate_units is None:
        validate_units = config.VALIDATE_UNITS
    if validate_units:
        check_affine_units()

    cf_attrs = _load_cf_attrs()
    check_registry_tables({"cf_attrs": cf_attrs})

    entries = dict()
    for variable in Variable:
        policies = registry_entry_schema.validate(
            {
                "unit": UNITS[variable],
                "native_units": NATIVE_UNITS[variable],
                "scale_factor": SCALE_FACTORS[variable],
                "affine": AFFINE[variable],
                "interpolation": INTERPOLATION[variable],
                "source_code": SOURCE_CODES[variable],
                "level": LEVELS[variable],
                "ensemble": ENSEMBLE[variable],
            }
        )
        entries[variable] = VariableMetadata(
            variable=variable,
            store_previous_forecast=variable in PREVIOUS_FORECAST,
            elevation_correctable=variable in ELEVATION_CORRECTABLE,
            attrs=cf_attrs[variable],
            **policies,
        )

    msg = f"Built variable registry with {len(entries)} variables."
    logger.debug(msg)
    return VariableRegistry(entries)


REGISTRY = build_registry()
"""The registry of ECMWF IFS open-data variables."""


def unit_of(variable: str | Variable) -> Unit:
    """Canonical unit of `variable`."""
    return REGISTRY.unit_of(variable)


def native_units_of(variable: str | Variable) -> str:
    """Units of `variable` as decoded from the archive."""
    return REGISTRY.native_units_of(variable)


def scale_factor_of(variable: str | Variable) -> float:
    """Strictly positive multiplier applied before rounding to integers."""
    return REGISTRY.scale_factor_of(variable)


def affine_of(variable: str | Variable) -> Affine | None:
    """Conversion `(multiply, add)` from native to canonical units, or None."""
    return REGISTRY.affine_of(variable)


def interpolation_of(variable: str | Variable) -> Interpolation:
    """Temporal interpolation policy of `variable`."""
    return REGISTRY.interpolation_of(variable)


def source_code_of(variable: str | Variable) -> str | None:
    """Grib short name of `variable`, or None if the variable is not present in the source files."""
    return REGISTRY.source_code_of(variable)


def level_of(variable: str | Variable) -> int | None:
    """Pressure level (hPa) or height (m) of `variable` in the source files."""
    return REGISTRY.level_of(variable)


def ensemble_eligibility(variable: str | Variable) -> Eligibility | None:
    """Ensemble classification of `variable`, or None if it is excluded from ensembles."""
    return REGISTRY.ensemble_eligibility(variable)


def requires_previous_forecast_blend(variable: str | Variable) -> bool:
    """Whether the previous model run of `variable` must be kept to blend across forecast cycles."""
    return REGISTRY.requires_previous_forecast_blend(variable)


def is_elevation_correctable(variable: str | Variable) -> bool:
    """Whether the elevation-correction stage applies to `variable`."""
    return REGISTRY.is_elevation_correctable(variable)


def ensemble_variables(eligibility: Eligibility | None = None) -> list[Variable]:
    """Variables included in ensemble processing, optionally restricted to one classification."""
    return REGISTRY.ensemble_variables(eligibility)


def previous_forecast_variables() -> list[Variable]:
    return REGISTRY.previous_forecast_variables()


def elevation_correctable_variables() -> list[Variable]:
    return REGISTRY.elevation_correctable_variables()

