"""OPA: ordinal pattern analysis of repeated-measures data."""

from .comparison import compare_conditions, compare_groups, compare_hypotheses
from .config import OpaConfig
from .errors import (
    EmptyPairSet,
    IncompatibleFits,
    InvalidData,
    InvalidDimension,
    InvalidHypothesis,
    InvalidRepCount,
    InvalidThreshold,
    OpaError,
    PermutationSpaceTooLarge,
)
from .fit import OpaFit, fit_opa
from .hypothesis import Hypothesis
from .randomization import cvalues, monte_carlo_cvalues, permutation_cvalues
from .scoring import group_pcc, row_pcc
from .types import CvalResult, GroupResult, PairingType, PccRecord

__all__ = [
    "CvalResult",
    "EmptyPairSet",
    "GroupResult",
    "Hypothesis",
    "IncompatibleFits",
    "InvalidData",
    "InvalidDimension",
    "InvalidHypothesis",
    "InvalidRepCount",
    "InvalidThreshold",
    "OpaConfig",
    "OpaError",
    "OpaFit",
    "PairingType",
    "PccRecord",
    "PermutationSpaceTooLarge",
    "compare_conditions",
    "compare_groups",
    "compare_hypotheses",
    "cvalues",
    "fit_opa",
    "group_pcc",
    "monte_carlo_cvalues",
    "permutation_cvalues",
    "row_pcc",
]
