"""Structural checks run when the variable registry is built."""

from __future__ import annotations
import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from isobar.ecmwf import (
    AFFINE,
    DERIVED_ALIASES,
    DERIVED_DEPENDENCIES,
    NATIVE_UNITS,
    PASSTHROUGH,
    POLICY_TABLES,
    PRESSURE_LEVEL_FAMILIES,
    PRESSURE_LEVELS,
    UNITS,
    DerivedKind,
    Variable,
)
from isobar.exceptions import (
    IncompletePressureLevelCoverage,
    IncompleteRegistryError,
    InconsistentUnitsError,
)
from isobar.policies import Affine
from isobar.units import Unit, convert_value


logger = logging.getLogger("isobar.validate.registry")

__all__ = [
    "check_affine_units",
    "check_derived_tables",
    "check_pressure_level_coverage",
    "check_registry_tables",
]


def check_registry_tables(
    tables: Mapping[str, Mapping[Any, Any]] | None = None,
    variables: Iterable[Variable] | None = None,
) -> None:
    """
    Ensure that every policy table holds exactly one entry per variable.

    Parameters
    ----------
    tables : Mapping[str, Mapping], optional
        Policy tables, by name. Default: the ECMWF policy tables.
    variables : iterable of Variable, optional
        The closed set of variables. Default: all members of :py:class:`~isobar.ecmwf.Variable`.

    Raises
    ------
    IncompleteRegistryError
        If a table misses a variable or holds a key that is not a variable.
    """
    if tables is None:
        tables = POLICY_TABLES
    expected = set(Variable if variables is None else variables)

    for name, table in tables.items():
        missing = [v for v in expected if v not in table]
        extra = [k for k in table if k not in expected]
        if missing or extra:
            msg = (
                f"Policy table `{name}` is incomplete. "
                f"Missing: {sorted(str(v) for v in missing)}. Unexpected: {sorted(str(k) for k in extra)}."
            )
            raise IncompleteRegistryError(msg)
        msg = f"Policy table `{name}` covers all {len(expected)} variables."
        logger.debug(msg)


def check_pressure_level_coverage(
    variables: Iterable[Variable | str] | None = None,
    families: Iterable[str] = PRESSURE_LEVEL_FAMILIES,
    levels: Iterable[int] = PRESSURE_LEVELS,
) -> None:
    """
    Ensure that every pressure-level quantity is defined at every standard level.

    Parameters
    ----------
    variables : iterable of Variable or str, optional
        Variable names to inspect. Default: all members of :py:class:`~isobar.ecmwf.Variable`.
    families : iterable of str
        Pressure-level quantities.
    levels : iterable of int
        Standard pressure levels, in hPa.

    Raises
    ------
    IncompletePressureLevelCoverage
        If a quantity misses one of the levels.
    """
    names = {str(v) for v in (Variable if variables is None else variables)}
    for family in families:
        missing = [level for level in levels if f"{family}_{level}hPa" not in names]
        if missing:
            raise IncompletePressureLevelCoverage(family, missing)


def check_affine_units(
    affine: Mapping[Variable, Affine | None] | None = None,
    native_units: Mapping[Variable, str] | None = None,
    units: Mapping[Variable, Unit] | None = None,
    rel_tol: float = 1e-6,
) -> None:
    """
    Compare every affine conversion with pint's conversion from native to canonical units.

    Variables without an affine conversion must have identical native and canonical units.

    Parameters
    ----------
    affine : Mapping[Variable, Affine or None], optional
    native_units : Mapping[Variable, str], optional
    units : Mapping[Variable, Unit], optional
    rel_tol : float
        Relative tolerance of the comparison.

    Raises
    ------
    InconsistentUnitsError
        If an affine conversion disagrees with pint.
    """
    affine = AFFINE if affine is None else affine
    native_units = NATIVE_UNITS if native_units is None else native_units
    units = UNITS if units is None else units

    for variable, conversion in affine.items():
        if conversion is None:
            conversion = Affine(1.0, 0.0)
        for sample in (0.0, 1.0, 300.0):
            expected = convert_value(sample, native_units[variable], units[variable])
            actual = sample * conversion.multiply + conversion.add
            if not math.isclose(actual, expected, rel_tol=rel_tol, abs_tol=rel_tol):
                msg = (
                    f"Conversion of `{variable}` from `{native_units[variable]}` to `{units[variable]}` "
                    f"gives {actual} for {sample}, pint expects {expected}."
                )
                raise InconsistentUnitsError(msg)
    msg = f"Verified unit conversions of {len(affine)} variables."
    logger.debug(msg)


def check_derived_tables(
    aliases: Mapping[str, DerivedKind] | None = None,
    dependencies: Mapping[DerivedKind, tuple[Variable, ...]] | None = None,
    passthrough: Mapping[DerivedKind, Variable] | None = None,
) -> None:
    """
    Ensure that the derived variable tables are consistent.

    Every kind needs at least one alias and a dependency entry, no alias may shadow a primary variable name,
    and a passthrough kind must depend on exactly the variable it reads.

    Raises
    ------
    IncompleteRegistryError
        If any of these conditions is violated.
    """
    aliases = DERIVED_ALIASES if aliases is None else aliases
    dependencies = DERIVED_DEPENDENCIES if dependencies is None else dependencies
    passthrough = PASSTHROUGH if passthrough is None else passthrough

    shadowing = [alias for alias in aliases if alias in Variable.__members__]
    if shadowing:
        msg = f"Derived aliases shadow primary variables: {shadowing}."
        raise IncompleteRegistryError(msg)

    kinds = set(DerivedKind)
    unaliased = kinds - set(aliases.values())
    if unaliased:
        msg = f"Derived kinds without any alias: {sorted(str(k) for k in unaliased)}."
        raise IncompleteRegistryError(msg)

    if set(dependencies) != kinds:
        missing = sorted(str(k) for k in kinds - set(dependencies))
        msg = f"Derived kinds without dependencies: {missing}."
        raise IncompleteRegistryError(msg)

    for kind, variable in passthrough.items():
        if dependencies[kind] != (variable,):
            msg = f"Passthrough kind `{kind}` must depend on `{variable}` only, found {dependencies[kind]}."
            raise IncompleteRegistryError(msg)
