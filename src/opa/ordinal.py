"""Ordinal relation codes for numeric vectors.

A vector is reduced to the signs of the differences between its elements,
taken either between every pair of elements or between neighbours only. Pair
order is fixed: ``(0, 1), (0, 2), ..., (0, n-1), (1, 2), ...`` for pairwise
comparison and ``(0, 1), (1, 2), ...`` for adjacent comparison.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from functools import lru_cache

import numpy as np

from .errors import InvalidDimension, InvalidThreshold
from .types import PairingType

# Code assigned to a difference involving an undefined value.
MISSING = math.nan


def as_pairing_type(value: PairingType | str) -> PairingType:
    if isinstance(value, PairingType):
        return value
    try:
        return PairingType(str(value).lower())
    except ValueError:
        raise ValueError("pairing_type must be 'pairwise' or 'adjacent'") from None


def validate_threshold(threshold: float) -> float:
    value = float(threshold)
    if math.isnan(value) or value < 0.0:
        raise InvalidThreshold(f"diff_threshold must be >= 0.0, got {threshold!r}")
    return value


def encode(values: Sequence[float] | np.ndarray, threshold: float = 0.0) -> np.ndarray:
    """Return +1, -1 or 0 for each value depending on which side of +/-threshold it falls.

    Values strictly greater than ``threshold`` map to 1, values strictly less
    than ``-threshold`` map to -1 and everything in between maps to 0. NaN
    inputs map to ``MISSING``. With ``threshold=0`` this is ``numpy.sign``.
    Works element-wise on arrays of any shape.
    """
    limit = validate_threshold(threshold)
    arr = np.asarray(values, dtype=float)
    codes = np.zeros(arr.shape, dtype=float)
    codes[arr > limit] = 1.0
    codes[arr < -limit] = -1.0
    codes[np.isnan(arr)] = MISSING
    return codes


@lru_cache(maxsize=64)
def _pair_index(n: int, policy: PairingType) -> tuple[np.ndarray, np.ndarray]:
    if policy is PairingType.ADJACENT:
        left = np.arange(n - 1, dtype=np.intp)
        return left, left + 1
    left, right = np.triu_indices(n, k=1)
    return left.astype(np.intp), right.astype(np.intp)


def _pair_index_checked(n: int, pairing_type: PairingType | str) -> tuple[np.ndarray, np.ndarray]:
    policy = as_pairing_type(pairing_type)
    if int(n) != n or n < 1:
        raise InvalidDimension(f"at least 1 value is required to form pairs, got {n}")
    return _pair_index(int(n), policy)


def n_pairs(n: int, pairing_type: PairingType | str) -> int:
    left, _ = _pair_index_checked(n, pairing_type)
    return int(left.size)


def pair_index(n: int, pairing_type: PairingType | str) -> tuple[np.ndarray, np.ndarray]:
    """Return the (first, second) element indices of every compared pair."""
    left, right = _pair_index_checked(n, pairing_type)
    return left.copy(), right.copy()


def pairs(n: int, pairing_type: PairingType | str = PairingType.PAIRWISE) -> list[tuple[int, int]]:
    left, right = pair_index(n, pairing_type)
    return [(int(i), int(j)) for i, j in zip(left, right, strict=True)]


def adjacent(n: int) -> list[tuple[int, int]]:
    return pairs(n, PairingType.ADJACENT)


def differences(
    values: Sequence[float] | np.ndarray,
    pairing_type: PairingType | str = PairingType.PAIRWISE,
) -> np.ndarray:
    """Return ``values[j] - values[i]`` for every pair ``(i, j)``.

    A 2-D input is treated as a stack of vectors along the last axis.
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        raise InvalidDimension("values must be a vector, got a scalar")
    left, right = _pair_index_checked(arr.shape[-1], pairing_type)
    return arr[..., right] - arr[..., left]


def ordering(
    values: Sequence[float] | np.ndarray,
    pairing_type: PairingType | str = PairingType.PAIRWISE,
    threshold: float = 0.0,
) -> np.ndarray:
    return encode(differences(values, pairing_type), threshold)


def conform(
    row: Sequence[float] | np.ndarray,
    hypothesis: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Drop the hypothesis values that sit at the positions of missing row values."""
    row_arr = np.asarray(row, dtype=float)
    hyp_arr = np.asarray(hypothesis, dtype=float)
    if row_arr.shape != hyp_arr.shape or row_arr.ndim != 1:
        raise InvalidDimension(
            f"row and hypothesis must be vectors of equal length, "
            f"got {row_arr.shape} and {hyp_arr.shape}"
        )
    return hyp_arr[~np.isnan(row_arr)]
