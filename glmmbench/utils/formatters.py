"""
Text formatting of comparison results for console output.
"""

from typing import List

import numpy as np
import pandas as pd

__all__ = []


def _fmt(value, spec: str = ".3f") -> str:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return "-"
    if isinstance(value, (bool, np.bool_)):
        return "yes" if value else "no"
    return format(value, spec)


def _format_trial_summary(data: pd.DataFrame, n_replicates: int, trial_size: int, seed) -> str:
    """One-paragraph description of a generated trial."""
    mortality = data["Dead"].sum() / (len(data) * trial_size)
    return "\n".join(
        [
            "=== Simulated trial ===",
            f"Rows: {len(data)}  Treatments: {data['Treatment'].nunique()}  Replicates: {n_replicates}",
            f"Trial size: {trial_size}  Overall mortality: {mortality:.1%}  Seed: {seed}",
        ]
    )


def _format_summary_table(summary: pd.DataFrame) -> str:
    """Fixed-width table of the per-model summary."""
    header = f"{'Model':<16} {'Engine':<9} {'Time(s)':>8} {'Conv':>5} {'Sing':>5} {'RMSE b0':>8} {'RMSE b1':>8} {'Cov b0':>7} {'Cov b1':>7}"
    lines: List[str] = [header, "-" * len(header)]
    for row in summary.itertuples(index=False):
        lines.append(
            f"{str(row.model):<16.16} {str(row.engine):<9.9} {_fmt(row.elapsed, '.2f'):>8} "
            f"{_fmt(row.converged):>5} {_fmt(row.singular):>5} "
            f"{_fmt(row.rmse_intercept):>8} {_fmt(row.rmse_slope):>8} "
            f"{_fmt(row.coverage_intercept, '.0%'):>7} {_fmt(row.coverage_slope, '.0%'):>7}"
        )
    return "\n".join(lines)


def _format_fit_problems(summary: pd.DataFrame, messages: dict) -> str:
    """List failures and diagnostic messages per model (empty if none)."""
    lines: List[str] = []
    for row in summary.itertuples(index=False):
        if isinstance(row.failure_reason, str) and row.failure_reason:
            lines.append(f"{row.model}: FAILED - {row.failure_reason}")
        for message in messages.get(row.model, []):
            lines.append(f"{row.model}: {message}")
    if not lines:
        return ""
    return "\n".join(["=== Fit problems ==="] + lines)


def _format_report(trial_text: str, summary: pd.DataFrame, messages: dict) -> str:
    """Assemble the full console report."""
    parts = [trial_text, "", "=== Model comparison ===", _format_summary_table(summary)]
    problems = _format_fit_problems(summary, messages)
    if problems:
        parts.extend(["", problems])
    return "\n".join(parts)
