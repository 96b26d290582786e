"""
Marginal (population-averaged) cloglog model built on statsmodels GEE.

Same ``Treatment/x - 1`` fixed effects as the GLMM, with an exchangeable
working correlation among the trials of one replicate. statsmodels is
imported lazily so the rest of the package works without it.
"""

import warnings
from typing import List, Tuple

import numpy as np
import pandas as pd

from .fit import FitConfig, FitResult
from .glmm import build_fixed_design

DEFAULT_IRLS_MAXITER = 100
DEFAULT_GEE_MAXITER = 60


def _import_statsmodels():
    try:
        import statsmodels.api as sm
    except ImportError as e:
        raise ImportError("statsmodels required for GEE fitting: pip install statsmodels") from e
    return sm


def _cloglog_family(sm):
    return sm.families.Binomial(link=sm.families.links.CLogLog())


def _coefficient_table(params, bse, columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "term": columns,
            "estimate": np.asarray(params, dtype=float),
            "std_error": np.asarray(bse, dtype=float),
        }
    )


def expand_to_bernoulli(data: pd.DataFrame) -> Tuple[pd.DataFrame, np.ndarray]:
    """Expand count rows into one 0/1 row per trial.

    Returns ``(expanded_rows, outcome)`` where *expanded_rows* repeats the
    design columns of *data*.
    """
    dead = data["Dead"].to_numpy(dtype=np.int64)
    alive = data["Alive"].to_numpy(dtype=np.int64)
    positions = np.arange(len(data))

    index = np.concatenate([np.repeat(positions, dead), np.repeat(positions, alive)])
    outcome = np.concatenate([np.ones(dead.sum()), np.zeros(alive.sum())])

    # Keep each replicate's trials contiguous
    order = np.argsort(index, kind="stable")
    expanded = data.iloc[index[order]].reset_index(drop=True)
    return expanded, outcome[order]


def fit_gee(data: pd.DataFrame, config: FitConfig) -> FitResult:
    """Fit the marginal cloglog model with an exchangeable working correlation."""
    sm = _import_statsmodels()

    expanded, y = expand_to_bernoulli(data)
    X = build_fixed_design(expanded)
    groups = expanded["Replicate"].to_numpy()
    family = _cloglog_family(sm)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        start_params = None
        if not config.skip_zero_order:
            glm = sm.GLM(data[["Dead", "Alive"]].to_numpy(dtype=float), build_fixed_design(data).to_numpy(), family=family)
            start_params = np.asarray(glm.fit(method="IRLS", maxiter=DEFAULT_IRLS_MAXITER).params)

        model = sm.GEE(y, X.to_numpy(), groups=groups, family=family, cov_struct=sm.cov_struct.Exchangeable())
        result = model.fit(maxiter=config.max_fev or DEFAULT_GEE_MAXITER, start_params=start_params)

    warning_messages = [f"{w.category.__name__}: {w.message}" for w in caught]
    converged = getattr(result, "converged", None)
    if converged is None:
        converged = not any("Iteration limit" in msg for msg in warning_messages)
    messages = [] if converged else ["GEE iteration limit reached before convergence"]

    dep_params = np.atleast_1d(np.asarray(model.cov_struct.dep_params, dtype=float))
    diagnostics = {
        "working_correlation": float(dep_params[0]) if dep_params.size else np.nan,
        "used_glm_start": start_params is not None,
    }

    return FitResult(
        name=config.name,
        engine=config.engine,
        coefficients=_coefficient_table(result.params, result.bse, list(X.columns)),
        cov_re=None,
        converged=bool(converged),
        singular=None,
        messages=messages,
        warnings=warning_messages,
        diagnostics=diagnostics,
    )
