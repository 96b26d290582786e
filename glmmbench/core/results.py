"""
Results processing for GLMMBench.

Turns fit results (and external coefficient tables) into tidy
``(model, term, estimate, std_error)`` tables and compares them with the
known simulation truth.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ..stats.data_generation import CRITICAL_PROBABILITY, critical_dose, intercept_term, slope_term
from ..stats.distributions import wald_multiplier
from ..stats.fit import FitResult
from ..utils.validators import _validate_confidence_level

TIDY_COLUMNS = ["model", "term", "estimate", "std_error"]


def tidy_coefficients(fits: List[FitResult], external: Optional[List[pd.DataFrame]] = None) -> pd.DataFrame:
    """Stack coefficient tables of successful fits into one tidy table.

    Args:
        fits: Fit results; failed fits contribute no rows.
        external: Additional tidy tables (already carrying ``model``).
    """
    frames = []
    for fit in fits:
        if not fit.succeeded:
            continue
        frame = fit.coefficients.copy()
        frame.insert(0, "model", fit.name)
        frames.append(frame[TIDY_COLUMNS])
    for table in external or []:
        frames.append(table[TIDY_COLUMNS])
    if not frames:
        return pd.DataFrame(columns=TIDY_COLUMNS)
    return pd.concat(frames, ignore_index=True)


class ResultsProcessor:
    """Compares estimates with the truth and summarises each model.

    Attributes:
        level: Confidence level of the Wald intervals used for coverage.
    """

    def __init__(self, level: float = 0.95):
        """Initialise the results processor.

        Args:
            level: Confidence level in (0, 1).
        """
        _validate_confidence_level(level).raise_if_invalid()
        self.level = level

    def compare_to_truth(self, tidy: pd.DataFrame, truth: pd.DataFrame) -> pd.DataFrame:
        """Join estimates with the true coefficients.

        Args:
            tidy: ``(model, term, estimate, std_error)`` table.
            truth: ``(term, kind, treatment, truth)`` table.

        Returns:
            *tidy* rows that have a true value, extended with ``kind``,
            ``treatment``, ``truth``, ``bias``, ``z``, ``lower``, ``upper``
            and ``covered``.
        """
        z_crit = wald_multiplier(self.level)
        merged = tidy.merge(truth, on="term", how="inner")
        merged["bias"] = merged["estimate"] - merged["truth"]
        with np.errstate(divide="ignore", invalid="ignore"):
            merged["z"] = merged["bias"] / merged["std_error"]
        merged["lower"] = merged["estimate"] - z_crit * merged["std_error"]
        merged["upper"] = merged["estimate"] + z_crit * merged["std_error"]
        merged["covered"] = (merged["lower"] <= merged["truth"]) & (merged["truth"] <= merged["upper"])
        return merged

    def summarize(self, comparison: pd.DataFrame, fits: List[FitResult]) -> pd.DataFrame:
        """One row per model: accuracy, coverage, runtime and diagnostics.

        Models present only in *comparison* (external tables) get ``NaN``
        runtime and diagnostics.
        """
        rows: Dict[str, Dict] = {}
        for fit in fits:
            rows[fit.name] = {
                "model": fit.name,
                "engine": fit.engine,
                "elapsed": fit.elapsed,
                "converged": fit.converged,
                "singular": fit.singular,
                "n_messages": len(fit.messages),
                "n_warnings": len(fit.warnings),
                "failure_reason": fit.failure_reason,
            }

        for model, group in comparison.groupby("model", sort=False):
            row = rows.setdefault(
                model,
                {
                    "model": model,
                    "engine": "external",
                    "elapsed": np.nan,
                    "converged": None,
                    "singular": None,
                    "n_messages": 0,
                    "n_warnings": 0,
                    "failure_reason": None,
                },
            )
            for kind in ("intercept", "slope"):
                part = group[group["kind"] == kind]
                row[f"rmse_{kind}"] = float(np.sqrt(np.mean(part["bias"] ** 2))) if len(part) else np.nan
                row[f"coverage_{kind}"] = float(part["covered"].mean()) if len(part) else np.nan

        summary = pd.DataFrame(list(rows.values()))
        for column in ("rmse_intercept", "coverage_intercept", "rmse_slope", "coverage_slope"):
            if column not in summary.columns:
                summary[column] = np.nan
        return summary

    def runtime_table(self, fits: List[FitResult]) -> pd.DataFrame:
        """Elapsed seconds per fit, slowest first."""
        table = pd.DataFrame(
            {
                "model": [f.name for f in fits],
                "engine": [f.engine for f in fits],
                "elapsed": [f.elapsed for f in fits],
                "succeeded": [f.succeeded for f in fits],
            }
        )
        return table.sort_values("elapsed", ascending=False, kind="stable").reset_index(drop=True)


def estimated_critical_doses(
    tidy: pd.DataFrame,
    true_doses: Optional[Dict[str, float]] = None,
    q: float = CRITICAL_PROBABILITY,
) -> pd.DataFrame:
    """Critical dose implied by each model's intercept and slope estimates.

    Returns a ``(model, treatment, estimate[, truth, error])`` table; treatments
    lacking either coefficient in a model are skipped.
    """
    rows = []
    for model, group in tidy.groupby("model", sort=False):
        estimates = dict(zip(group["term"], group["estimate"]))
        treatments = [
            term[len("Treatment") :] for term in group["term"] if term.startswith("Treatment") and not term.endswith(":x")
        ]
        for treatment in treatments:
            b0 = estimates.get(intercept_term(treatment))
            b1 = estimates.get(slope_term(treatment))
            if b0 is None or b1 is None:
                continue
            row = {"model": model, "treatment": treatment, "estimate": float(critical_dose(b0, b1, q))}
            if true_doses is not None and treatment in true_doses:
                row["truth"] = true_doses[treatment]
                row["error"] = row["estimate"] - row["truth"]
            rows.append(row)

    columns = ["model", "treatment", "estimate"] + (["truth", "error"] if true_doses is not None else [])
    return pd.DataFrame(rows, columns=columns)


@dataclass
class ComparisonReport:
    """Everything a comparison run produces.

    Attributes:
        fits: Raw fit results, in run order.
        tidy: ``(model, term, estimate, std_error)`` for every model.
        comparison: *tidy* joined with the truth (bias, intervals, coverage).
        summary: One row per model.
        critical_doses: Estimated versus true critical doses.
        runtimes: Elapsed time per fit.
    """

    fits: List[FitResult]
    tidy: pd.DataFrame
    comparison: pd.DataFrame
    summary: pd.DataFrame
    critical_doses: pd.DataFrame
    runtimes: pd.DataFrame = field(default_factory=pd.DataFrame)

    def fit(self, name: str) -> FitResult:
        """Look up a fit by name."""
        for result in self.fits:
            if result.name == name:
                return result
        raise KeyError(f"No fit named '{name}'")

    @property
    def messages(self) -> Dict[str, List[str]]:
        return {f.name: list(f.messages) for f in self.fits}
