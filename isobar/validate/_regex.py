"""Validation utilities and definitions."""

__all__ = [
    "CELL_METHODS_REGEX",
    "CF_CONVENTIONS_REGEX",
    "GRIB_SHORT_NAME_REGEX",
    "STANDARD_NAME_REGEX",
]

CELL_METHODS_REGEX = r"^\w+:\s*\w+"
CF_CONVENTIONS_REGEX = r"CF-\d\.\d+"
GRIB_SHORT_NAME_REGEX = r"^[0-9a-z]+$"
STANDARD_NAME_REGEX = r"^\w+(?:_\w+)*$"
