"""Treatments module."""

from __future__ import annotations

from isobar.treatments._conversion import *
from isobar.treatments._interpolation import *
from isobar.treatments._quantization import *
