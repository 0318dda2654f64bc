"""Validate variable metadata against CF-like schemas."""

from __future__ import annotations
import json
import logging
from numbers import Real
from pathlib import Path

from schema import And, Optional, Or, Regex, Schema, SchemaError

from isobar.policies import Affine, Eligibility, Interpolation
from isobar.units import Unit

from ._regex import CELL_METHODS_REGEX, CF_CONVENTIONS_REGEX, GRIB_SHORT_NAME_REGEX, STANDARD_NAME_REGEX


logger = logging.getLogger("isobar.validate")

__all__ = [
    "cf_attrs_schema",
    "cf_header_schema",
    "cf_variables_schema",
    "registry_entry_schema",
    "validate_json",
]


cf_header_schema = Schema(
    {
        "Conventions": Regex(CF_CONVENTIONS_REGEX),
        "institution": str,
        "source": str,
        "type": Or("forecast", "reanalysis"),
        Optional("license"): str,
        "table_id": str,
        Optional(Regex(r"^_")): Or(str, bool),
    },
    name="header_schema",
)

cf_variables_schema = Schema(
    {
        str: {
            "standard_name": Regex(STANDARD_NAME_REGEX),
            "long_name": str,
            Optional("cell_methods"): Regex(CELL_METHODS_REGEX),
            Optional("comment"): str,
        }
    },
    name="variables_schema",
)

cf_attrs_schema = Schema(
    {
        "Header": cf_header_schema,
        "variables": cf_variables_schema,
    },
    ignore_extra_keys=False,  # Extra entries will raise a SchemaError
    name="cf_attrs_schema",
)

registry_entry_schema = Schema(
    {
        "unit": Unit,
        "native_units": And(str, len),
        "scale_factor": And(Real, lambda x: x > 0, error="Scale factor must be strictly positive"),
        "affine": Or(None, And(Affine, lambda a: a.multiply != 0, error="Affine multiplier cannot be zero")),
        "interpolation": Interpolation,
        "source_code": Or(None, Regex(GRIB_SHORT_NAME_REGEX)),
        "level": Or(None, And(int, lambda x: x >= 0)),
        "ensemble": Or(None, Eligibility),
    },
    ignore_extra_keys=False,
    name="registry_entry_schema",
)
"""Schema of the policies collected for one variable before it enters the registry."""


def validate_json(json_file: str | Path, schema: Schema | None = None) -> dict:
    """
    Load and validate a JSON file against a schema.

    Parameters
    ----------
    json_file : str or pathlib.Path
        The path to the JSON file.
    schema : Schema, optional
        The schema to validate against. Default: :py:data:`cf_attrs_schema`.

    Returns
    -------
    dict
        The validated JSON data.

    Raises
    ------
    ValueError
        If the JSON file does not exist, or if `schema` is not a Schema.
    OSError
        If there is an error reading the JSON file.
    json.JSONDecodeError
        If the JSON file is not valid JSON.
    SchemaError
        If the JSON data does not conform to the schema.
    """
    if not Path(json_file).is_file():
        msg = f"{json_file} is not a file."
        raise ValueError(msg)

    if schema is None:
        schema = cf_attrs_schema
    elif not isinstance(schema, Schema):
        raise ValueError("'schema' must be a Schema instance.")

    try:
        with Path(json_file).open(encoding="utf-8") as f:
            data = json.load(f)
        return schema.validate(data)
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Error validating JSON file {json_file}: {e}"
        logger.error(msg)
        raise
    except SchemaError as e:
        msg = f"Schema validation error in {json_file}: {e}"
        logger.error(msg)
        raise
