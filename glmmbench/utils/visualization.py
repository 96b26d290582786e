"""
Visualization utilities for GLMMBench.

This module provides plotting functions for simulated trials and for the
model comparison.
"""

from typing import Optional

import numpy as np
import pandas as pd

__all__ = []


def _import_pyplot():
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib required for plotting: pip install matplotlib") from None
    return plt


def _create_coefficient_plot(
    comparison: pd.DataFrame,
    title: str = "Fixed-effect estimates by model",
    z_crit: float = 1.96,
    show: bool = False,
):
    """Estimates with Wald intervals per model, against the true values.

    Draws two panels (intercepts and slopes). Within each panel treatments
    run along the x-axis; models are dodged horizontally; true values are
    black crosses.

    Args:
        comparison: Output of ``ResultsProcessor.compare_to_truth``.
        title: Figure title.
        z_crit: Interval half-width in standard errors.
        show: Call ``plt.show()`` after drawing.

    Returns:
        The matplotlib figure.

    Raises:
        ImportError: If ``matplotlib`` is not installed.
    """
    plt = _import_pyplot()

    models = list(pd.unique(comparison["model"]))
    fig, axes = plt.subplots(2, 1, figsize=(14, 9), sharex=True)
    colors = plt.get_cmap("Set1")(np.linspace(0, 1, max(len(models), 1)))
    width = 0.8 / max(len(models), 1)

    for ax, kind in zip(axes, ("intercept", "slope")):
        part = comparison[comparison["kind"] == kind]
        treatments = list(pd.unique(part["treatment"]))
        positions = {t: i for i, t in enumerate(treatments)}

        for i, model in enumerate(models):
            rows = part[part["model"] == model]
            if rows.empty:
                continue
            x = np.array([positions[t] for t in rows["treatment"]]) - 0.4 + width * (i + 0.5)
            ax.errorbar(
                x,
                rows["estimate"],
                yerr=z_crit * rows["std_error"].fillna(0.0),
                fmt="o",
                color=colors[i],
                label=model,
                markersize=3,
                linewidth=1,
            )

        truth = part.drop_duplicates("treatment")
        ax.plot(
            [positions[t] for t in truth["treatment"]],
            truth["truth"],
            "x",
            color="black",
            markersize=7,
            label="truth",
        )
        ax.set_ylabel("Slope" if kind == "slope" else "Intercept", fontsize=12)
        ax.set_xticks(range(len(treatments)))
        ax.set_xticklabels(treatments)
        ax.grid(True, alpha=0.3)

    axes[0].set_title(title, fontsize=14, fontweight="bold")
    axes[-1].set_xlabel("Treatment", fontsize=12)
    axes[0].legend(bbox_to_anchor=(1.01, 1), loc="upper left")
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def _create_runtime_plot(runtimes: pd.DataFrame, title: str = "Fitting time", show: bool = False):
    """Horizontal bar chart of elapsed seconds per fit; failed fits hatched."""
    plt = _import_pyplot()

    fig, ax = plt.subplots(figsize=(9, 0.5 * len(runtimes) + 2))
    ordered = runtimes.sort_values("elapsed", kind="stable")
    bars = ax.barh(ordered["model"], ordered["elapsed"], color="#4477aa")
    for bar, succeeded in zip(bars, ordered["succeeded"]):
        if not succeeded:
            bar.set_hatch("//")
            bar.set_facecolor("#cccccc")

    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.set_xlabel("Seconds", fontsize=12)
    ax.grid(True, axis="x", alpha=0.3)
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def _create_trial_plot(
    data: pd.DataFrame,
    trial_size: int,
    critical_doses: Optional[dict] = None,
    max_panels: int = 24,
    show: bool = False,
):
    """Observed mortality against dose, one panel per treatment.

    Each replicate is one line; the true critical dose is a dashed vertical
    line when *critical_doses* is given and falls inside the dose range.
    """
    plt = _import_pyplot()

    treatments = list(pd.unique(data["Treatment"].astype(str)))[:max_panels]
    n_cols = min(6, len(treatments))
    n_rows = int(np.ceil(len(treatments) / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(2.5 * n_cols, 2.2 * n_rows), sharex=True, sharey=True, squeeze=False)
    x_max = data["x"].max()

    for ax, treatment in zip(axes.flat, treatments):
        rows = data[data["Treatment"].astype(str) == treatment]
        for _, replicate in rows.groupby("Replicate"):
            ax.plot(replicate["x"], replicate["Dead"] / trial_size, "-", color="#4477aa", alpha=0.7, linewidth=1)
        if critical_doses is not None and treatment in critical_doses and critical_doses[treatment] <= x_max:
            ax.axvline(critical_doses[treatment], color="red", linestyle="--", linewidth=1)
        ax.set_title(treatment, fontsize=9)
        ax.set_ylim(-0.05, 1.05)

    for ax in list(axes.flat)[len(treatments):]:
        ax.set_visible(False)

    fig.supxlabel("Dose (x)")
    fig.supylabel("Proportion dead")
    plt.tight_layout()
    if show:
        plt.show()
    return fig
