"""ECMWF IFS open-data variable definitions."""

from __future__ import annotations
from pathlib import Path

from ._derived import *
from ._tables import *
from ._variables import *


CF_ATTRS_FILE = Path(__file__).resolve().parent / "data" / "ecmwf_ifs_cf_attrs.json"
"""Descriptive CF attributes of every primary variable."""
