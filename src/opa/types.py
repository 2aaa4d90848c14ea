from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np


class PairingType(Enum):
    PAIRWISE = "pairwise"
    ADJACENT = "adjacent"


@dataclass(slots=True)
class PccRecord:
    n_pairs: int
    correct_pairs: int
    pcc: float

    @property
    def incorrect_pairs(self) -> int:
        return self.n_pairs - self.correct_pairs


@dataclass(slots=True)
class GroupResult:
    """Observed PCCs for one matrix of rows scored against one hypothesis.

    ``individual_pccs`` holds ``None`` for rows that had fewer than two observed
    values; those rows are listed in ``excluded_rows`` and are left out of the
    pair totals. The data, hypothesis and scoring settings travel with the
    result because the randomization engine rescores shuffled copies of them.
    """

    group_pcc: float
    individual_pccs: list[float | None]
    total_pairs: int
    correct_pairs: int
    data: np.ndarray
    hypothesis: np.ndarray
    pairing_type: PairingType
    diff_threshold: float
    excluded_rows: list[int] = field(default_factory=list)

    @property
    def n_individuals(self) -> int:
        return int(self.data.shape[0])

    @property
    def n_conditions(self) -> int:
        return int(self.data.shape[1])

    @property
    def incorrect_pairs(self) -> int:
        return self.total_pairs - self.correct_pairs

    @property
    def included_rows(self) -> list[int]:
        return [idx for idx, pcc in enumerate(self.individual_pccs) if pcc is not None]


@dataclass(slots=True)
class CvalResult:
    """Empirical chance values for a GroupResult.

    ``nreps`` is the number of completed Monte-Carlo repetitions (``None`` for
    exhaustive permutation). When a run is cancelled, ``cancelled`` is set and
    the c-values are computed from the repetitions completed so far; they are
    ``None`` if no repetition completed.
    """

    method: str
    group_cval: float | None
    individual_cvals: list[float | None]
    rand_pccs: list[float]
    individual_rand_pccs: list[list[float]]
    n_permutations: int
    pccs_geq_observed: int
    observed_group_pcc: float
    nreps: int | None = None
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "group_cval": self.group_cval,
            "individual_cvals": list(self.individual_cvals),
            "rand_pccs": [None if math.isnan(value) else value for value in self.rand_pccs],
            "n_permutations": self.n_permutations,
            "pccs_geq_observed": self.pccs_geq_observed,
            "observed_group_pcc": self.observed_group_pcc,
            "nreps": self.nreps,
            "cancelled": self.cancelled,
        }
