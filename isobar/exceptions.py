"""
Exceptions raised by isobar.

Classes:
 * IsobarError - root of all isobar exceptions.
 * UnknownVariable - a name outside the closed set of variables.
 * RegistryError - structural defect found while building the registry.
"""

from __future__ import annotations


__all__ = [
    "IncompletePressureLevelCoverage",
    "IncompleteRegistryError",
    "InconsistentUnitsError",
    "IsobarError",
    "RegistryError",
    "UnknownVariable",
]


class IsobarError(Exception):
    """Base class for isobar exceptions."""

    pass


class UnknownVariable(IsobarError, ValueError):
    """Raised when an external name cannot be parsed into a known variable."""

    def __init__(self, name: str, hint: str | None = None):
        self.name = name
        msg = f"Unknown variable: `{name}`."
        if hint:
            msg = f"{msg} {hint}"
        super().__init__(msg)


class RegistryError(IsobarError):
    """Raised when the variable registry is structurally defective."""

    pass


class IncompleteRegistryError(RegistryError):
    """A policy table is missing variables, or holds keys that are not variables."""

    pass


class IncompletePressureLevelCoverage(RegistryError):
    """A pressure-level quantity does not define all standard levels."""

    def __init__(self, family: str, missing: list[int]):
        self.family = family
        self.missing = missing
        levels = ", ".join(str(level) for level in missing)
        super().__init__(f"Pressure-level quantity `{family}` is missing level(s): {levels} hPa.")


class InconsistentUnitsError(RegistryError):
    """An affine conversion disagrees with the pint conversion between the declared units."""

    pass
