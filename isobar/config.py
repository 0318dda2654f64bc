"""Runtime configuration module."""

from __future__ import annotations
import os


__all__ = [
    "STORAGE_DTYPE",
    "VALID_STORAGE_DTYPES",
    "VALIDATE_UNITS",
]

VALID_STORAGE_DTYPES = ("int16", "int32")

STORAGE_DTYPE = str(os.getenv("ISOBAR_STORAGE_DTYPE", "int16")).lower()
"""
Integer type used for quantized values.

Notes
-----
Either `int16` or `int32`. This can be set for both `pytest` and scripts by exporting the variable:

.. code-block:: console

    $ export ISOBAR_STORAGE_DTYPE="int32"

"""

VALIDATE_UNITS = str(os.getenv("ISOBAR_VALIDATE_UNITS", "true")).lower() in ["1", "true", "yes"]
"""
Whether to verify every affine conversion against pint when the registry is built.

Notes
-----
The check imports xclim's units registry. It can be disabled with:

.. code-block:: console

    $ export ISOBAR_VALIDATE_UNITS="false"

"""

if STORAGE_DTYPE not in VALID_STORAGE_DTYPES:
    msg = f"ISOBAR_STORAGE_DTYPE must be one of {VALID_STORAGE_DTYPES}, got `{STORAGE_DTYPE}`."
    raise ValueError(msg)
