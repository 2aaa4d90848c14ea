import logging
from collections.abc import Sequence

import numpy as np

from .errors import EmptyPairSet, InvalidData, InvalidDimension, InvalidHypothesis
from .ordinal import as_pairing_type, conform, encode, ordering, pairs, validate_threshold
from .types import GroupResult, PairingType, PccRecord

LOGGER = logging.getLogger(__name__)


def _as_hypothesis_array(hypothesis: Sequence[float] | np.ndarray) -> np.ndarray:
    hyp = np.asarray(getattr(hypothesis, "values", hypothesis), dtype=float)
    if hyp.ndim != 1:
        raise InvalidDimension(f"hypothesis must be a vector, got shape {hyp.shape}")
    if not np.all(np.isfinite(hyp)):
        raise InvalidHypothesis("hypothesis values must be finite numbers")
    return hyp


def hypothesis_ordering(
    row: np.ndarray,
    hypothesis: np.ndarray,
    pairing_type: PairingType | str,
) -> np.ndarray:
    """Ordering of the hypothesis restricted to the observed positions of ``row``.

    The hypothesis is a theoretical ranking, so it is always coded with a zero
    threshold.
    """
    if np.isnan(row).any():
        return ordering(conform(row, hypothesis), pairing_type, 0.0)
    return ordering(hypothesis, pairing_type, 0.0)


def count_matches(
    candidates: np.ndarray,
    hyp_ordering: np.ndarray,
    pairing_type: PairingType | str,
    diff_threshold: float,
) -> np.ndarray:
    """Number of relations in each row of ``candidates`` that agree with ``hyp_ordering``."""
    if hyp_ordering.size == 0:
        raise EmptyPairSet("at least 2 observed values are required to form a pair")
    codes = ordering(candidates, pairing_type, diff_threshold)
    return np.count_nonzero(codes == hyp_ordering, axis=-1)


def row_pcc(
    row: Sequence[float] | np.ndarray,
    hypothesis: Sequence[float] | np.ndarray,
    pairing_type: PairingType | str = PairingType.PAIRWISE,
    diff_threshold: float = 0.0,
) -> PccRecord:
    """Score one row of observations against a hypothesis.

    Missing (NaN) observations are dropped together with the hypothesis values
    at the same positions. A row left with fewer than two observed values has
    no pairs to classify and raises ``EmptyPairSet``.
    """
    policy = as_pairing_type(pairing_type)
    threshold = validate_threshold(diff_threshold)
    row_arr = np.asarray(row, dtype=float)
    hyp = _as_hypothesis_array(hypothesis)
    if row_arr.shape != hyp.shape:
        raise InvalidDimension(
            f"row has {row_arr.size} values but hypothesis has {hyp.size}"
        )
    observed = row_arr[~np.isnan(row_arr)]
    if observed.size < 2:
        raise EmptyPairSet(
            f"row has {observed.size} observed value(s); at least 2 are required"
        )

    hyp_ordering = hypothesis_ordering(row_arr, hyp, policy)
    row_ordering = ordering(observed, policy, threshold)
    match = row_ordering == hyp_ordering

    n_pairs = int(match.size)
    correct_pairs = int(np.count_nonzero(match))
    return PccRecord(
        n_pairs=n_pairs,
        correct_pairs=correct_pairs,
        pcc=100.0 * correct_pairs / n_pairs,
    )


def as_data_matrix(data) -> np.ndarray:
    try:
        values = data.to_numpy(dtype=float) if hasattr(data, "to_numpy") else data
        matrix = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidData(f"data must be numeric: {exc}") from exc
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    if matrix.ndim != 2:
        raise InvalidDimension(f"data must be a 2-D matrix, got shape {matrix.shape}")
    if matrix.shape[0] == 0:
        raise InvalidDimension("data must contain at least one row")
    return matrix


def group_pcc(
    data,
    hypothesis: Sequence[float] | np.ndarray,
    pairing_type: PairingType | str = PairingType.PAIRWISE,
    diff_threshold: float = 0.0,
) -> GroupResult:
    """Score every row of ``data`` and pool the pair counts into a group PCC."""
    policy = as_pairing_type(pairing_type)
    threshold = validate_threshold(diff_threshold)
    matrix = as_data_matrix(data)
    hyp = _as_hypothesis_array(hypothesis)
    if matrix.shape[1] != hyp.size:
        raise InvalidDimension(
            f"data has {matrix.shape[1]} columns but hypothesis has {hyp.size} values"
        )

    individual_pccs: list[float | None] = []
    excluded_rows: list[int] = []
    total_pairs = 0
    correct_pairs = 0
    for idx, row in enumerate(matrix):
        try:
            record = row_pcc(row, hyp, policy, threshold)
        except EmptyPairSet:
            LOGGER.warning("row %d has fewer than 2 observed values; excluded from PCCs", idx)
            individual_pccs.append(None)
            excluded_rows.append(idx)
            continue
        individual_pccs.append(record.pcc)
        total_pairs += record.n_pairs
        correct_pairs += record.correct_pairs

    if total_pairs == 0:
        raise EmptyPairSet("no row has at least 2 observed values")

    LOGGER.debug(
        "group PCC %d/%d pairs over %d rows (%d excluded)",
        correct_pairs,
        total_pairs,
        matrix.shape[0],
        len(excluded_rows),
    )
    return GroupResult(
        group_pcc=100.0 * correct_pairs / total_pairs,
        individual_pccs=individual_pccs,
        total_pairs=total_pairs,
        correct_pairs=correct_pairs,
        data=matrix,
        hypothesis=hyp,
        pairing_type=policy,
        diff_threshold=threshold,
        excluded_rows=excluded_rows,
    )


def condition_pair_pccs(pccs: GroupResult) -> np.ndarray:
    """PCC of every pair of conditions, pooled over individuals.

    Cell ``[j, i]`` (``i < j``) holds the percentage of individuals with both
    values present whose ``(i, j)`` relation matches the hypothesis. The
    diagonal, the upper triangle and pairs nobody observed are NaN.
    """
    n = pccs.n_conditions
    out = np.full((n, n), np.nan)
    for i, j in pairs(n, PairingType.PAIRWISE):
        diffs = pccs.data[:, j] - pccs.data[:, i]
        observed = ~np.isnan(diffs)
        if not observed.any():
            continue
        codes = encode(diffs[observed], pccs.diff_threshold)
        expected = encode([pccs.hypothesis[j] - pccs.hypothesis[i]], 0.0)[0]
        out[j, i] = 100.0 * np.count_nonzero(codes == expected) / codes.size
    return out
