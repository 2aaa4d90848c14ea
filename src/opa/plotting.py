"""Figures for fitted models and hypotheses."""

from __future__ import annotations

from collections.abc import Sequence

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

from .fit import OpaFit
from .hypothesis import Hypothesis


def _values(values: list[float | None]) -> np.ndarray:
    return np.array([np.nan if value is None else value for value in values], dtype=float)


def _lollipop(ax, positions: np.ndarray, values: np.ndarray, colors) -> None:
    observed = ~np.isnan(values)
    ax.hlines(positions[observed], 0.0, values[observed], color="black", linewidth=0.6)
    ax.scatter(
        values[observed],
        positions[observed],
        s=40,
        c=np.asarray(colors, dtype=object)[observed].tolist(),
        edgecolors="black",
        zorder=3,
    )


def _row_colors(fit: OpaFit, default: str = "royalblue") -> tuple[list[str], dict[str, str]]:
    if not fit.grouped:
        return [default] * len(fit.individual_idx), {}
    palette = sns.color_palette(n_colors=len(fit.groups)).as_hex()
    legend = {group_fit.label: palette[idx] for idx, group_fit in enumerate(fit.groups)}
    return [legend[label] for label in fit.group_labels], legend


def _add_group_legend(ax, legend: dict[str, str]) -> None:
    if not legend:
        return
    handles = [
        Line2D([], [], marker="o", linestyle="", markerfacecolor=color, markeredgecolor="black")
        for color in legend.values()
    ]
    ax.legend(handles, list(legend.keys()), title="group", loc="lower center", ncol=len(legend))


def pcc_threshold_plot(fit: OpaFit, pcc_threshold: float | None = None) -> Figure:
    """Individual PCCs against a reference PCC (dashed red line)."""
    threshold = fit.config.pcc_threshold if pcc_threshold is None else float(pcc_threshold)
    pccs = _values(fit.individual_pccs)
    positions = np.arange(1, pccs.size + 1)
    colors, legend = _row_colors(fit)
    with sns.axes_style("whitegrid"):
        fig, ax = plt.subplots(figsize=(6, max(2.5, 0.3 * pccs.size)))
        ax.axvline(threshold, linestyle="--", color="red")
        _lollipop(ax, positions, pccs, colors)
        ax.set_yticks(positions)
        ax.set_yticklabels([str(idx + 1) for idx in fit.individual_idx])
        ax.set_xlim(0, 105)
        ax.set_xlabel("PCC")
        ax.set_ylabel("Individual")
        ax.invert_yaxis()
        _add_group_legend(ax, legend)
    return fig


def plot_fit(fit: OpaFit) -> Figure:
    """Individual PCCs and c-values side by side."""
    pccs = _values(fit.individual_pccs)
    cvals = _values(fit.individual_cvals)
    positions = np.arange(1, pccs.size + 1)
    colors, legend = _row_colors(fit)
    with sns.axes_style("whitegrid"):
        fig, (ax_pcc, ax_cval) = plt.subplots(
            1, 2, figsize=(9, max(2.5, 0.3 * pccs.size)), sharey=True
        )
        _lollipop(ax_pcc, positions, pccs, colors)
        _lollipop(ax_cval, positions, cvals, colors)
        ax_pcc.set_title("PCCs")
        ax_cval.set_title("c-values")
        ax_pcc.set_yticks(positions)
        ax_pcc.set_yticklabels([str(idx + 1) for idx in fit.individual_idx])
        ax_pcc.set_ylabel("Individual")
        ax_pcc.invert_yaxis()
        _add_group_legend(ax_cval, legend)
    return fig


def plot_hypothesis(
    hypothesis: Hypothesis | Sequence[float],
    xlabels: Sequence[str] | None = None,
    point_size: float = 80.0,
    fill_color: str = "#CCCCCC",
) -> Figure:
    hyp = Hypothesis.coerce(hypothesis)
    labels = [str(idx) for idx in range(1, hyp.n_conditions + 1)] if xlabels is None else xlabels
    if len(labels) != hyp.n_conditions:
        raise ValueError("xlabels must be same length as the hypothesis")
    values = hyp.as_array()
    positions = np.arange(1, hyp.n_conditions + 1)
    fig, ax = plt.subplots(figsize=(max(3.0, 0.8 * hyp.n_conditions), 3))
    ax.scatter(positions, values, s=point_size, c=fill_color, edgecolors="black", zorder=3)
    ax.set_xticks(positions)
    ax.set_xticklabels([str(label) for label in labels])
    ax.set_xlim(0.7, hyp.n_conditions + 0.3)
    ax.set_ylim(values.min() - 0.3, values.max() + 0.3)
    ax.set_yticks([values.min(), values.max()])
    ax.set_yticklabels(["Lower", "Higher"])
    ax.set_ylabel("Relative Value")
    return fig
