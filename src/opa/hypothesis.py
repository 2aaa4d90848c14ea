"""Hypothesised ordering of conditions."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import InvalidHypothesis
from .ordinal import as_pairing_type, n_pairs, ordering
from .types import PairingType


@dataclass(frozen=True, slots=True)
class Hypothesis:
    """Relative magnitudes expected for each condition, e.g. ``(1, 2, 2, 3)``.

    Only the order of the values matters: ``(1, 2, 3)`` and ``(10, 20, 30)``
    describe the same hypothesis. Equal values predict no difference.
    """

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        try:
            values = tuple(float(value) for value in self.values)
        except (TypeError, ValueError):
            raise InvalidHypothesis("hypothesis must contain only numbers") from None
        if len(values) < 2:
            raise InvalidHypothesis("hypothesis must contain at least 2 values")
        if not all(math.isfinite(value) for value in values):
            raise InvalidHypothesis("hypothesis values must be finite numbers")
        object.__setattr__(self, "values", values)

    @classmethod
    def coerce(cls, value: "Hypothesis | Sequence[float] | np.ndarray") -> "Hypothesis":
        if isinstance(value, Hypothesis):
            return value
        return cls(tuple(np.asarray(value, dtype=float).ravel().tolist()))

    @property
    def n_conditions(self) -> int:
        return len(self.values)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.values, dtype=float)

    def ordering(self, pairing_type: PairingType | str = PairingType.PAIRWISE) -> np.ndarray:
        return ordering(self.values, pairing_type, 0.0)

    def n_pairs(self, pairing_type: PairingType | str = PairingType.PAIRWISE) -> int:
        return n_pairs(self.n_conditions, pairing_type)

    def summary(self, pairing_type: PairingType | str = PairingType.PAIRWISE) -> str:
        codes = " ".join(str(int(code)) for code in self.ordering(pairing_type))
        lines = [
            "********** Ordinal Hypothesis **********",
            f"Raw hypothesis: {' '.join(_format_number(v) for v in self.values)}",
            f"Ordinal relations ({as_pairing_type(pairing_type).value}): {codes}",
            f"N conditions: {self.n_conditions}",
            f"N hypothesised ordinal relations: {self.n_pairs(pairing_type)}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {"values": list(self.values)}


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else f"{value:g}"
