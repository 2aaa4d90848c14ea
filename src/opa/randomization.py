"""Chance values for observed PCCs.

Two null distributions are available. ``permutation_cvalues`` scores every
ordering of every row. ``monte_carlo_cvalues`` scores ``nreps`` random
reorderings, optionally after shuffling every condition column across
individuals first. A c-value is the share of null PCCs that are at least as
large as the observed PCC.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Callable, Iterator
from fractions import Fraction

import numpy as np

from .errors import EmptyPairSet, InvalidRepCount, PermutationSpaceTooLarge
from .scoring import count_matches, hypothesis_ordering
from .types import CvalResult, GroupResult

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_EXACT_CONDITIONS = 10

# Permutations scored per vectorised call in exhaustive mode.
PERMUTATION_BATCH_SIZE = 50_000

CancelCheck = Callable[[], bool]


def validate_nreps(nreps: int) -> int:
    if isinstance(nreps, bool) or int(nreps) != nreps or nreps < 1:
        raise InvalidRepCount(f"nreps must be a positive integer, got {nreps!r}")
    return int(nreps)


def _observed_values(row: np.ndarray) -> np.ndarray:
    return row[~np.isnan(row)]


def _permutation_batches(values: np.ndarray, batch_size: int) -> Iterator[np.ndarray]:
    """Yield every permutation of ``values`` as stacked rows, ``batch_size`` at a time."""
    perms = itertools.permutations(values.tolist())
    while batch := list(itertools.islice(perms, batch_size)):
        yield np.array(batch, dtype=float)


def permutation_cvalues(
    pccs: GroupResult,
    max_conditions: int = DEFAULT_MAX_EXACT_CONDITIONS,
    batch_size: int = PERMUTATION_BATCH_SIZE,
) -> CvalResult:
    """Exact c-values from every permutation of every scored row.

    A row with repeated values yields repeated permutations; they are all kept
    so each distinct ordering is weighted by its multiplicity. Rows with more
    than ``max_conditions`` observed values are rejected before any work starts.
    Permutations are generated and scored ``batch_size`` at a time.
    """
    included = pccs.included_rows
    for idx in included:
        n_values = int(np.count_nonzero(~np.isnan(pccs.data[idx])))
        if n_values > max_conditions:
            raise PermutationSpaceTooLarge(
                f"row {idx} has {n_values} observed values ({math.factorial(n_values)} "
                f"permutations); exact c-values are limited to {max_conditions} values, "
                "use the stochastic method instead"
            )

    LOGGER.info("computing exact c-values for %d rows", len(included))
    individual_cvals: list[float | None] = [None] * pccs.n_individuals
    individual_rand_pccs: list[list[float]] = [[] for _ in range(pccs.n_individuals)]
    rand_pccs: list[float] = []
    total_perms = 0
    total_geq = 0
    for idx in included:
        row = pccs.data[idx]
        observed_pcc = pccs.individual_pccs[idx]
        h_ordering = hypothesis_ordering(row, pccs.hypothesis, pccs.pairing_type)
        n_perms = 0
        n_geq = 0
        for batch in _permutation_batches(_observed_values(row), batch_size):
            correct = count_matches(batch, h_ordering, pccs.pairing_type, pccs.diff_threshold)
            perm_pccs = 100.0 * correct / h_ordering.size
            n_geq += int(np.count_nonzero(perm_pccs >= observed_pcc))
            n_perms += int(perm_pccs.size)
            individual_rand_pccs[idx].extend(perm_pccs.tolist())

        individual_cvals[idx] = n_geq / n_perms
        rand_pccs.extend(individual_rand_pccs[idx])
        total_perms += n_perms
        total_geq += n_geq
        LOGGER.debug("row %d: %d of %d permutations >= observed", idx, n_geq, n_perms)

    return CvalResult(
        method="exact",
        group_cval=total_geq / total_perms,
        individual_cvals=individual_cvals,
        rand_pccs=rand_pccs,
        individual_rand_pccs=individual_rand_pccs,
        n_permutations=total_perms,
        pccs_geq_observed=total_geq,
        observed_group_pcc=pccs.group_pcc,
    )


def _shuffle_observed(row: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Permute the observed values of ``row`` among its observed positions."""
    out = row.copy()
    mask = ~np.isnan(row)
    out[mask] = rng.permutation(row[mask])
    return out


class _RowScorer:
    """Scores shuffled rows, caching hypothesis orderings by missing-value pattern."""

    def __init__(self, pccs: GroupResult) -> None:
        self._pccs = pccs
        self._orderings: dict[bytes, np.ndarray] = {}

    def __call__(self, row: np.ndarray) -> tuple[int, int]:
        """Return ``(correct_pairs, n_pairs)`` for one shuffled row."""
        mask = ~np.isnan(row)
        if np.count_nonzero(mask) < 2:
            raise EmptyPairSet("shuffled row has fewer than 2 observed values")
        key = mask.tobytes()
        h_ordering = self._orderings.get(key)
        if h_ordering is None:
            h_ordering = hypothesis_ordering(row, self._pccs.hypothesis, self._pccs.pairing_type)
            self._orderings[key] = h_ordering
        correct = count_matches(
            row[mask], h_ordering, self._pccs.pairing_type, self._pccs.diff_threshold
        )
        return int(correct), int(h_ordering.size)


def estimate_cvalues(
    pccs: GroupResult,
    exceedances: np.ndarray,
    group_exceedances: int,
    rand_pccs: list[float],
    individual_rand_pccs: list[list[float]],
    completed_reps: int,
    cancelled: bool = False,
) -> CvalResult:
    """Turn Monte-Carlo exceedance counts into individual and group c-values."""
    included = set(pccs.included_rows)
    if completed_reps == 0:
        individual_cvals: list[float | None] = [None] * pccs.n_individuals
        group_cval = None
    else:
        individual_cvals = [
            float(exceedances[idx]) / completed_reps if idx in included else None
            for idx in range(pccs.n_individuals)
        ]
        group_cval = group_exceedances / completed_reps
    return CvalResult(
        method="stochastic",
        group_cval=group_cval,
        individual_cvals=individual_cvals,
        rand_pccs=rand_pccs,
        individual_rand_pccs=individual_rand_pccs,
        n_permutations=sum(len(values) for values in individual_rand_pccs),
        pccs_geq_observed=int(exceedances.sum()),
        observed_group_pcc=pccs.group_pcc,
        nreps=completed_reps,
        cancelled=cancelled,
    )


def monte_carlo_cvalues(
    pccs: GroupResult,
    nreps: int = 1000,
    shuffle_across_individuals: bool = False,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    cancel: CancelCheck | None = None,
) -> CvalResult:
    """Stochastic c-values from ``nreps`` random reorderings of the data.

    Each repetition shuffles every row's observed values independently. With
    ``shuffle_across_individuals`` every column is first shuffled across rows,
    so a row may receive another individual's values (and missing positions).
    A row counts an exceedance when its random PCC is >= its observed PCC; the
    repetition's group PCC is the mean of its row PCCs, compared with the
    observed group PCC as an exact fraction of pairs.

    ``cancel`` is polled before each repetition. When it returns True the loop
    stops and the result is marked ``cancelled`` with ``nreps`` equal to the
    number of repetitions that completed.
    """
    nreps = validate_nreps(nreps)
    generator = rng if rng is not None else np.random.default_rng(seed)
    scorer = _RowScorer(pccs)
    included = pccs.included_rows
    exceedances = np.zeros(pccs.n_individuals, dtype=np.int64)
    individual_rand_pccs: list[list[float]] = [[] for _ in range(pccs.n_individuals)]
    rand_pccs: list[float] = []
    observed_share = Fraction(pccs.correct_pairs, pccs.total_pairs)
    group_exceedances = 0
    completed = 0
    cancelled = False

    LOGGER.info(
        "computing stochastic c-values: %d reps, %d rows, shuffle_across_individuals=%s",
        nreps,
        len(included),
        shuffle_across_individuals,
    )
    for rep in range(nreps):
        if cancel is not None and cancel():
            cancelled = True
            LOGGER.warning("c-value computation cancelled after %d of %d reps", rep, nreps)
            break
        data = pccs.data
        if shuffle_across_individuals:
            data = generator.permuted(data, axis=0)
        rep_shares: list[Fraction] = []
        for idx in included:
            shuffled = _shuffle_observed(data[idx], generator)
            try:
                correct, n_pairs = scorer(shuffled)
            except EmptyPairSet:
                continue
            rand_pcc = 100.0 * correct / n_pairs
            if rand_pcc >= pccs.individual_pccs[idx]:
                exceedances[idx] += 1
            individual_rand_pccs[idx].append(rand_pcc)
            rep_shares.append(Fraction(correct, n_pairs))
        # A repetition with no scorable row never counts towards the group c-value.
        if rep_shares:
            rep_share = sum(rep_shares) / len(rep_shares)
            if rep_share >= observed_share:
                group_exceedances += 1
            rand_pccs.append(float(100 * rep_share))
        else:
            rand_pccs.append(math.nan)
        completed += 1

    LOGGER.debug("completed %d reps; %d row exceedances", completed, int(exceedances.sum()))
    return estimate_cvalues(
        pccs,
        exceedances=exceedances,
        group_exceedances=group_exceedances,
        rand_pccs=rand_pccs,
        individual_rand_pccs=individual_rand_pccs,
        completed_reps=completed,
        cancelled=cancelled,
    )


def cvalues(
    pccs: GroupResult,
    nreps: int = 1000,
    shuffle_across_individuals: bool = False,
    method: str = "stochastic",
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    cancel: CancelCheck | None = None,
    max_exact_conditions: int = DEFAULT_MAX_EXACT_CONDITIONS,
) -> CvalResult:
    if method == "exact":
        return permutation_cvalues(pccs, max_conditions=max_exact_conditions)
    if method == "stochastic":
        return monte_carlo_cvalues(
            pccs,
            nreps=nreps,
            shuffle_across_individuals=shuffle_across_individuals,
            rng=rng,
            seed=seed,
            cancel=cancel,
        )
    raise ValueError("method must be 'stochastic' or 'exact'")
