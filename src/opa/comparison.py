"""Comparisons between conditions, hypotheses and groups of a fitted model."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np
import pandas as pd

from .errors import IncompatibleFits
from .fit import OpaFit, fit_opa
from .randomization import validate_nreps

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ConditionComparison:
    """Lower-triangle matrices of PCCs and c-values, one cell per pair of conditions."""

    pccs: pd.DataFrame
    cvals: pd.DataFrame
    nreps: int


@dataclass(slots=True)
class HypothesisComparison:
    h1: tuple[float, ...]
    h2: tuple[float, ...]
    h1_pcc: float
    h2_pcc: float
    pcc_diff: float
    cval: float
    pcc_diff_dist: list[float]


@dataclass(slots=True)
class GroupComparison:
    group1: str
    group2: str
    group1_pcc: float
    group2_pcc: float
    pcc_diff: float
    cval: float
    pcc_diff_dist: list[float]


def _difference_cval(
    rand1: list[float], rand2: list[float], pcc_diff: float
) -> tuple[float, list[float]]:
    if len(rand1) != len(rand2) or not rand1:
        raise IncompatibleFits("random PCC series must be non-empty and of equal length")
    diffs = np.asarray(rand1, dtype=float) - np.asarray(rand2, dtype=float)
    # Repetitions where either fit scored no row carry NaN and are left out.
    diffs = diffs[~np.isnan(diffs)]
    if diffs.size == 0:
        raise IncompatibleFits("no repetition produced a random PCC in both fits")
    n_geq = int(np.count_nonzero(np.abs(diffs) >= pcc_diff))
    return n_geq / diffs.size, diffs.tolist()


def compare_conditions(
    fit: OpaFit,
    nreps: int = 1000,
    rng: np.random.Generator | None = None,
) -> ConditionComparison:
    """Refit the model on every pair of conditions.

    For conditions ``i < j`` only rows with both values present are used. The
    PCC and c-value of each pair land in cell ``[j, i]``; the other cells are
    left missing.
    """
    nreps = validate_nreps(nreps)
    n = fit.data.shape[1]
    generator = rng if rng is not None else np.random.default_rng(fit.config.seed)
    pair_config = replace(
        fit.config, pairing_type="pairwise", cval_method="stochastic", nreps=nreps
    )
    pcc_mat = np.full((n, n), np.nan)
    cval_mat = np.full((n, n), np.nan)
    hyp = fit.hypothesis.values

    for i in range(n - 1):
        for j in range(i + 1, n):
            subset = fit.data[:, [i, j]]
            subset = subset[~np.isnan(subset).any(axis=1)]
            if subset.shape[0] == 0:
                LOGGER.warning(
                    "conditions %d and %d share no complete rows; skipped", i + 1, j + 1
                )
                continue
            pair_fit = fit_opa(subset, (hyp[i], hyp[j]), config=pair_config, rng=generator)
            pcc_mat[j, i] = pair_fit.group_pcc
            cval_mat[j, i] = pair_fit.group_cval

    labels = list(fit.columns)
    return ConditionComparison(
        pccs=pd.DataFrame(pcc_mat, index=labels, columns=labels),
        cvals=pd.DataFrame(cval_mat, index=labels, columns=labels),
        nreps=nreps,
    )


def compare_hypotheses(fit1: OpaFit, fit2: OpaFit) -> HypothesisComparison:
    """C-value of the difference between the group PCCs of two hypotheses.

    Both fits must be ungrouped stochastic fits of the same data with the same
    number of repetitions; repetition ``k`` of one is paired with repetition
    ``k`` of the other.
    """
    if fit1.grouped or fit2.grouped:
        raise IncompatibleFits("multigroup fits cannot be compared using compare_hypotheses()")
    if fit1.config.cval_method != "stochastic" or fit2.config.cval_method != "stochastic":
        raise IncompatibleFits("hypothesis comparison requires stochastic c-values")
    if fit1.nreps != fit2.nreps:
        raise IncompatibleFits("models have different numbers of random orderings")
    if fit1.data.shape != fit2.data.shape:
        raise IncompatibleFits("models were fitted to data of different shapes")

    pcc_diff = abs(fit1.group_pcc - fit2.group_pcc)
    cval, diffs = _difference_cval(fit1.rand_pccs, fit2.rand_pccs, pcc_diff)
    return HypothesisComparison(
        h1=fit1.hypothesis.values,
        h2=fit2.hypothesis.values,
        h1_pcc=fit1.group_pcc,
        h2_pcc=fit2.group_pcc,
        pcc_diff=pcc_diff,
        cval=cval,
        pcc_diff_dist=diffs,
    )


def compare_groups(fit: OpaFit, group1: str, group2: str) -> GroupComparison:
    """C-value of the difference between the PCCs of two levels of a grouped fit."""
    if not fit.grouped or len(fit.groups) < 2:
        raise IncompatibleFits("the fit must have been fitted with at least 2 groups")
    if fit.config.cval_method != "stochastic":
        raise IncompatibleFits("group comparison requires stochastic c-values")
    first = fit.group(group1)
    second = fit.group(group2)

    pcc_diff = abs(first.pccs.group_pcc - second.pccs.group_pcc)
    cval, diffs = _difference_cval(first.cvals.rand_pccs, second.cvals.rand_pccs, pcc_diff)
    return GroupComparison(
        group1=group1,
        group2=group2,
        group1_pcc=first.pccs.group_pcc,
        group2_pcc=second.pccs.group_pcc,
        pcc_diff=pcc_diff,
        cval=cval,
        pcc_diff_dist=diffs,
    )
