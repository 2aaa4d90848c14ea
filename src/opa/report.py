"""Tabular and text summaries of fitted models."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from .comparison import ConditionComparison, GroupComparison, HypothesisComparison
from .fit import OpaFit


def _column(values: list[float | None]) -> pd.Series:
    return pd.Series([np.nan if value is None else value for value in values], dtype=float)


def group_results(fit: OpaFit, digits: int = 2) -> pd.DataFrame:
    """Group-level PCC and c-value, one row per group (``pooled`` when ungrouped)."""
    labels = [group_fit.label for group_fit in fit.groups]
    out = pd.DataFrame(
        {
            "PCC": _column([group_fit.pccs.group_pcc for group_fit in fit.groups]).to_numpy(),
            "cval": _column([group_fit.cvals.group_cval for group_fit in fit.groups]).to_numpy(),
        },
        index=labels,
    )
    return out.round(digits)


def individual_results(fit: OpaFit, digits: int = 2) -> pd.DataFrame:
    """Individual-level PCCs and c-values.

    Ungrouped fits are indexed 1..n in data order. Grouped fits are indexed by
    group label, ordered by level, with the 1-based data row in ``Individual``.
    """
    pccs = _column(fit.individual_pccs).to_numpy()
    cvals = _column(fit.individual_cvals).to_numpy()
    if not fit.grouped:
        out = pd.DataFrame(
            {"PCC": pccs, "cval": cvals},
            index=pd.RangeIndex(1, len(pccs) + 1),
        )
    else:
        out = pd.DataFrame(
            {
                "Individual": [idx + 1 for idx in fit.individual_idx],
                "PCC": pccs,
                "cval": cvals,
            },
            index=fit.group_labels,
        )
    return out.round(digits)


def condition_results(fit: OpaFit, digits: int = 2) -> dict[str, pd.DataFrame]:
    return {
        group_fit.label: pd.DataFrame(
            group_fit.condition_pccs, index=fit.columns, columns=fit.columns
        ).round(digits)
        for group_fit in fit.groups
    }


def summary(fit: OpaFit, digits: int = 2) -> str:
    n_individuals, n_conditions = fit.data.shape
    n_groups = len(fit.groups)
    lines = [
        f"Ordinal Pattern Analysis of {n_conditions} observations for {n_individuals} "
        f"individuals in {n_groups} group{'s' if n_groups != 1 else ''}",
        "",
        "Between subjects results:",
        group_results(fit, digits).to_string(),
        "",
        "Within subjects results:",
        individual_results(fit, digits).to_string(),
        "",
        f"PCCs were calculated for {fit.config.pairing_type} ordinal relationships "
        f"using a difference threshold of {fit.config.diff_threshold:g}.",
    ]
    if fit.config.cval_method == "stochastic":
        lines.append(
            f"Chance-values were calculated from {fit.nreps} random orderings"
            + (" (cancelled before completion)." if fit.cancelled else ".")
        )
    else:
        lines.append(
            f"Chance-values were calculated from {fit.n_permutations} exact permutations."
        )
    return "\n".join(lines)


def summarize_hypothesis_comparison(result: HypothesisComparison) -> str:
    return "\n".join(
        [
            "********* Hypothesis Comparison **********",
            f"H1: {' '.join(f'{value:g}' for value in result.h1)}",
            f"H2: {' '.join(f'{value:g}' for value in result.h2)}",
            f"H1 PCC: {result.h1_pcc:g}",
            f"H2 PCC: {result.h2_pcc:g}",
            f"PCC difference: {result.pcc_diff:g}",
            f"cval: {result.cval:g}",
        ]
    )


def summarize_group_comparison(result: GroupComparison) -> str:
    return "\n".join(
        [
            "********* Group Comparison **********",
            f"Group 1: {result.group1}",
            f"Group 2: {result.group2}",
            f"Group 1 PCC: {result.group1_pcc:g}",
            f"Group 2 PCC: {result.group2_pcc:g}",
            f"PCC difference: {result.pcc_diff:g}",
            f"cval: {result.cval:g}",
        ]
    )


def format_condition_comparison(result: ConditionComparison, digits: int = 3) -> str:
    """Render both matrices; c-values of zero are shown as ``<1/nreps``."""
    floor = f"<{1 / result.nreps:g}"
    cvals = result.cvals.round(digits).astype(object)
    cvals = cvals.where(result.cvals.notna(), "-")
    cvals = cvals.mask(result.cvals == 0.0, floor)
    pccs = result.pccs.round(digits).astype(object).where(result.pccs.notna(), "-")
    return "\n".join(["Pairwise PCCs:", pccs.to_string(), "", "Pairwise cvals:", cvals.to_string()])


def write_report(fit: OpaFit, path: str | Path, digits: int = 2) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    lines = ["# Ordinal Pattern Analysis Report", "", "## Run Summary", ""]
    lines.append(f"- Hypothesis: {' '.join(f'{value:g}' for value in fit.hypothesis.values)}")
    lines.append(f"- Pairing type: {fit.config.pairing_type}")
    lines.append(f"- Difference threshold: {fit.config.diff_threshold:g}")
    lines.append(f"- C-value method: {fit.config.cval_method}")
    lines.append(f"- Group PCC: {fit.group_pcc:.{digits}f}")
    lines.append(f"- Correct pairs: {fit.correct_pairs} of {fit.total_pairs}")
    if fit.cancelled:
        lines.append(f"- Cancelled after {fit.nreps} repetitions")

    lines.extend(["", "## Group Results", "", "```", group_results(fit, digits).to_string(), "```"])
    lines.extend(
        ["", "## Individual Results", "", "```", individual_results(fit, digits).to_string(), "```"]
    )
    target.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return target
