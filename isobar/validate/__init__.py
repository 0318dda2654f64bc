"""Registry and metadata validation module."""

from __future__ import annotations

from ._registry import *
from .schema import *
