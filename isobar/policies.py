"""Policy types attached to every registry variable."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


__all__ = [
    "BACKWARDS_SUM",
    "HERMITE",
    "HERMITE_PERCENTAGE",
    "Affine",
    "Eligibility",
    "Interpolation",
    "InterpolationKind",
]


class Affine(NamedTuple):
    """Conversion from archive-native units to canonical units: ``value * multiply + add``."""

    multiply: float
    add: float


class InterpolationKind(str, Enum):
    """Temporal interpolation strategies."""

    backwards_sum = "backwards_sum"
    hermite = "hermite"


@dataclass(frozen=True)
class Interpolation:
    """
    Temporal interpolation policy.

    Attributes
    ----------
    kind : InterpolationKind
        Strategy used when resampling onto a regular time axis.
    bounds : tuple of float, optional
        Physical range that hermite results are clamped to.
    """

    kind: InterpolationKind
    bounds: tuple[float, float] | None = None

    def __post_init__(self):
        if self.bounds is not None:
            if self.kind is not InterpolationKind.hermite:
                raise ValueError("Only hermite interpolation accepts bounds.")
            low, high = self.bounds
            if low >= high:
                msg = f"Invalid interpolation bounds: {self.bounds}."
                raise ValueError(msg)


BACKWARDS_SUM = Interpolation(InterpolationKind.backwards_sum)
HERMITE = Interpolation(InterpolationKind.hermite)
HERMITE_PERCENTAGE = Interpolation(InterpolationKind.hermite, bounds=(0.0, 100.0))


class Eligibility(str, Enum):
    """Ensemble processing classification. Variables excluded from ensembles have none."""

    download_only = "download_only"
    """Fetched as an input for ensemble aggregation, never stored."""

    download_and_store = "download_and_store"
    """Fetched and written to the time-series store."""
