"""Decoding module."""

from __future__ import annotations

from ._decoder import *
