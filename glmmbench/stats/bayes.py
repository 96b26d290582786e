"""Bayesian cloglog GLMM via bambi (PyMC NUTS).

Requires the optional ``bayes`` extra: ``pip install glmmbench[bayes]``.
"""

import re
import warnings
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .data_generation import intercept_term, slope_term
from .diagnostics import check_sampler, check_singular
from .fit import FitConfig, FitResult

FORMULA = "p(Dead, Total) ~ 0 + Treatment + Treatment:x + (1 + x | Replicate)"

DEFAULT_SAMPLER_OPTIONS = {
    "draws": 1000,
    "tune": 1000,
    "chains": 4,
    "random_seed": 2024,
}

# Posterior summary labels such as "Treatment[A]" or "Treatment:x[A]"
_TERM_PATTERN = re.compile(r"^Treatment(?P<slope>:x)?\[(?P<level>[^\]]+)\]$")

RE_SIGMA_NAMES = ("1|Replicate_sigma", "x|Replicate_sigma")


def _import_bambi():
    try:
        import arviz as az
        import bambi as bmb
    except ImportError as e:
        raise ImportError("bambi and arviz required for Bayesian fits: pip install glmmbench[bayes]") from e
    return bmb, az


def _rename_term(label: str) -> Optional[str]:
    match = _TERM_PATTERN.match(label)
    if match is None:
        return None
    level = match.group("level")
    return slope_term(level) if match.group("slope") else intercept_term(level)


def _model_frame(data: pd.DataFrame) -> pd.DataFrame:
    frame = data.copy()
    frame["Total"] = frame["Dead"] + frame["Alive"]
    # Integer ids would otherwise be read as a numeric covariate
    frame["Replicate"] = pd.Categorical(frame["Replicate"].astype(str))
    return frame


def fit_bayes(data: pd.DataFrame, config: FitConfig) -> FitResult:
    """Sample the posterior of the full random-slope cloglog GLMM."""
    bmb, az = _import_bambi()

    options: Dict = {**DEFAULT_SAMPLER_OPTIONS, **config.options}

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        model = bmb.Model(FORMULA, _model_frame(data), family="binomial", link="cloglog")
        idata = model.fit(
            draws=options["draws"],
            tune=options["tune"],
            chains=options["chains"],
            random_seed=options["random_seed"],
            progressbar=False,
        )
        summary = az.summary(idata, kind="all")

    fixed = summary[[label.startswith("Treatment") for label in summary.index]]
    terms = [_rename_term(label) for label in fixed.index]
    keep = [t is not None for t in terms]
    coefficients = pd.DataFrame(
        {
            "term": [t for t in terms if t is not None],
            "estimate": fixed["mean"].to_numpy(dtype=float)[keep],
            "std_error": fixed["sd"].to_numpy(dtype=float)[keep],
        }
    )

    sigma_rows = [name for name in RE_SIGMA_NAMES if name in summary.index]
    sd = summary.loc[sigma_rows, "mean"].to_numpy(dtype=float)
    cov_re = np.diag(sd**2) if len(sd) else None

    divergences = int(np.asarray(idata.sample_stats["diverging"]).sum())
    report = check_sampler(summary["r_hat"].to_numpy(), divergences, summary["ess_bulk"].to_numpy())

    diagnostics = {
        "max_r_hat": float(np.nanmax(summary["r_hat"].to_numpy(dtype=float))),
        "min_ess_bulk": float(np.nanmin(summary["ess_bulk"].to_numpy(dtype=float))),
        "divergences": divergences,
    }

    return FitResult(
        name=config.name,
        engine=config.engine,
        coefficients=coefficients,
        cov_re=cov_re,
        converged=report.ok,
        singular=check_singular(cov_re) if cov_re is not None else None,
        messages=report.messages,
        warnings=[f"{w.category.__name__}: {w.message}" for w in caught],
        diagnostics=diagnostics,
    )
