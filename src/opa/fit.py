"""Fit an ordinal pattern analysis model to a data matrix."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from .config import OpaConfig
from .errors import InvalidDimension
from .hypothesis import Hypothesis
from .randomization import CancelCheck, cvalues
from .scoring import as_data_matrix, condition_pair_pccs, group_pcc
from .types import CvalResult, GroupResult

LOGGER = logging.getLogger(__name__)

POOLED = "pooled"


@dataclass(slots=True)
class GroupFit:
    label: str
    row_index: list[int]
    pccs: GroupResult
    cvals: CvalResult
    condition_pccs: np.ndarray


@dataclass(slots=True)
class OpaFit:
    """Result of ``fit_opa``.

    Ungrouped fits hold a single ``GroupFit`` labelled ``"pooled"``. Grouped
    fits hold one ``GroupFit`` per level; individual-level sequences are
    concatenated level by level, with ``individual_idx`` mapping each entry
    back to its row in the input data.
    """

    hypothesis: Hypothesis
    config: OpaConfig
    data: np.ndarray
    columns: list[str]
    groups: list[GroupFit]
    grouped: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def group(self, label: str) -> GroupFit:
        for group_fit in self.groups:
            if group_fit.label == label:
                return group_fit
        raise KeyError(f"unknown group: {label}")

    @property
    def correct_pairs(self) -> int:
        return sum(group_fit.pccs.correct_pairs for group_fit in self.groups)

    @property
    def total_pairs(self) -> int:
        return sum(group_fit.pccs.total_pairs for group_fit in self.groups)

    @property
    def incorrect_pairs(self) -> int:
        return self.total_pairs - self.correct_pairs

    @property
    def group_pcc(self) -> float:
        """PCC pooled over every scored pair in the data."""
        return 100.0 * self.correct_pairs / self.total_pairs

    @property
    def group_pccs(self) -> dict[str, float]:
        return {group_fit.label: group_fit.pccs.group_pcc for group_fit in self.groups}

    @property
    def group_cval(self) -> float | None:
        """C-value of an ungrouped fit; grouped fits report per level in ``group_cvals``."""
        if self.grouped:
            return None
        return self.groups[0].cvals.group_cval

    @property
    def group_cvals(self) -> dict[str, float | None]:
        return {group_fit.label: group_fit.cvals.group_cval for group_fit in self.groups}

    @property
    def individual_pccs(self) -> list[float | None]:
        return [pcc for group_fit in self.groups for pcc in group_fit.pccs.individual_pccs]

    @property
    def individual_cvals(self) -> list[float | None]:
        return [cval for group_fit in self.groups for cval in group_fit.cvals.individual_cvals]

    @property
    def individual_idx(self) -> list[int]:
        return [idx for group_fit in self.groups for idx in group_fit.row_index]

    @property
    def group_labels(self) -> list[str]:
        return [group_fit.label for group_fit in self.groups for _ in group_fit.row_index]

    @property
    def rand_pccs(self) -> list[float]:
        if self.grouped:
            raise ValueError("grouped fits have one random PCC series per group")
        return self.groups[0].cvals.rand_pccs

    @property
    def group_rand_pccs(self) -> dict[str, list[float]]:
        return {group_fit.label: group_fit.cvals.rand_pccs for group_fit in self.groups}

    @property
    def n_permutations(self) -> int:
        return sum(group_fit.cvals.n_permutations for group_fit in self.groups)

    @property
    def pccs_geq_observed(self) -> int:
        return sum(group_fit.cvals.pccs_geq_observed for group_fit in self.groups)

    @property
    def nreps(self) -> int | None:
        return self.groups[0].cvals.nreps

    @property
    def cancelled(self) -> bool:
        return any(group_fit.cvals.cancelled for group_fit in self.groups)

    @property
    def condition_pccs(self) -> np.ndarray | dict[str, np.ndarray]:
        if self.grouped:
            return {group_fit.label: group_fit.condition_pccs for group_fit in self.groups}
        return self.groups[0].condition_pccs

    def to_dict(self) -> dict[str, Any]:
        return {
            "hypothesis": self.hypothesis.to_dict(),
            "config": self.config.to_dict(),
            "columns": list(self.columns),
            "grouped": self.grouped,
            "group_pcc": self.group_pcc,
            "correct_pairs": self.correct_pairs,
            "total_pairs": self.total_pairs,
            "cancelled": self.cancelled,
            "groups": [
                {
                    "label": group_fit.label,
                    "row_index": list(group_fit.row_index),
                    "group_pcc": group_fit.pccs.group_pcc,
                    "individual_pccs": list(group_fit.pccs.individual_pccs),
                    "excluded_rows": [group_fit.row_index[i] for i in group_fit.pccs.excluded_rows],
                    "cvals": group_fit.cvals.to_dict(),
                }
                for group_fit in self.groups
            ],
            "metadata": dict(self.metadata),
        }


def _group_levels(group: Sequence[Any], n_rows: int) -> list[tuple[str, list[int]]]:
    if len(group) != n_rows:
        raise InvalidDimension(f"group has {len(group)} labels but data has {n_rows} rows")
    if isinstance(group, (pd.Series, pd.Categorical)) and isinstance(
        getattr(group, "dtype", None), pd.CategoricalDtype
    ):
        levels = [str(level) for level in group.dtype.categories]
    else:
        levels = list(dict.fromkeys(str(label) for label in group))
    labels = [str(label) for label in group]
    out: list[tuple[str, list[int]]] = []
    for level in levels:
        rows = [idx for idx, label in enumerate(labels) if label == level]
        if rows:
            out.append((level, rows))
    return out


def _fit_rows(
    label: str,
    rows: list[int],
    matrix: np.ndarray,
    hypothesis: Hypothesis,
    config: OpaConfig,
    rng: np.random.Generator,
    cancel: CancelCheck | None,
) -> GroupFit:
    pccs = group_pcc(
        matrix[rows],
        hypothesis.as_array(),
        pairing_type=config.pairing_type,
        diff_threshold=config.diff_threshold,
    )
    cvals = cvalues(
        pccs,
        nreps=config.nreps,
        shuffle_across_individuals=config.shuffle_across_individuals,
        method=config.cval_method,
        rng=rng,
        cancel=cancel,
        max_exact_conditions=config.max_exact_conditions,
    )
    return GroupFit(
        label=label,
        row_index=list(rows),
        pccs=pccs,
        cvals=cvals,
        condition_pccs=condition_pair_pccs(pccs),
    )


def fit_opa(
    data,
    hypothesis: Hypothesis | Sequence[float] | np.ndarray,
    group: Sequence[Any] | None = None,
    config: OpaConfig | None = None,
    rng: np.random.Generator | None = None,
    cancel: CancelCheck | None = None,
) -> OpaFit:
    """Fit an ordinal pattern analysis model.

    ``data`` is in wide format: one row per individual, one column per
    condition. ``group`` optionally assigns each row to a level; every level is
    fitted separately against the same hypothesis. The random generator is
    shared across levels in level order, so a fixed ``config.seed`` (or a
    seeded ``rng``) reproduces the whole fit.
    """
    cfg = config if config is not None else OpaConfig()
    hyp = Hypothesis.coerce(hypothesis)
    matrix = as_data_matrix(data)
    if matrix.shape[1] != hyp.n_conditions:
        raise InvalidDimension(
            f"data has {matrix.shape[1]} columns but hypothesis has {hyp.n_conditions} values"
        )
    columns = (
        [str(col) for col in data.columns]
        if isinstance(data, pd.DataFrame)
        else [str(idx + 1) for idx in range(matrix.shape[1])]
    )
    generator = rng if rng is not None else np.random.default_rng(cfg.seed)

    if group is None:
        levels = [(POOLED, list(range(matrix.shape[0])))]
    else:
        levels = _group_levels(group, matrix.shape[0])

    LOGGER.info(
        "fitting %d individuals x %d conditions in %d group(s), cval_method=%s",
        matrix.shape[0],
        matrix.shape[1],
        len(levels),
        cfg.cval_method,
    )
    fits: list[GroupFit] = []
    for idx, (label, rows) in enumerate(levels, start=1):
        LOGGER.debug("fitting group %d of %d (%s)", idx, len(levels), label)
        fits.append(_fit_rows(label, rows, matrix, hyp, cfg, generator, cancel))

    return OpaFit(
        hypothesis=hyp,
        config=cfg,
        data=matrix,
        columns=columns,
        groups=fits,
        grouped=group is not None,
    )
