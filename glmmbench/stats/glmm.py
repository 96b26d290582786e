"""
Cloglog binomial GLMM engine built on mixedlm (a Python port of lme4).

The model is ``cbind(Dead, Alive) ~ Treatment/x - 1 + (1 + x | Replicate)``.
mixedlm spells grouped binomial responses as ``successes / trials`` and does
not expand ``/`` nesting among fixed effects, so the ``Treatment/x - 1``
columns are built here under their R coefficient names and passed to
``glmer`` as quoted numeric terms.

mixedlm is imported lazily so the rest of the package works without it.
"""

import warnings
from typing import List

import numpy as np
import pandas as pd

from .data_generation import intercept_term, slope_term
from .diagnostics import SINGULAR_TOL
from .fit import FitConfig, FitResult

GROUP = "Replicate"
RANDOM_TERM = "(1 + x | Replicate)"


def _import_mixedlm():
    try:
        import mixedlm
    except ImportError as e:
        raise ImportError("mixedlm required for GLMM fitting: pip install mixedlm") from e
    return mixedlm


def build_fixed_design(data: pd.DataFrame) -> pd.DataFrame:
    """Design matrix for ``Treatment/x - 1``.

    One indicator column per treatment (its intercept) followed by one
    ``indicator * x`` column per treatment (its slope). Column names follow
    R's coefficient naming (``TreatmentA``, ``TreatmentA:x``).
    """
    treatment = data["Treatment"]
    if isinstance(treatment.dtype, pd.CategoricalDtype):
        levels = [str(c) for c in treatment.cat.categories]
    else:
        levels = [str(c) for c in pd.unique(treatment)]

    labels = treatment.astype(str).to_numpy()
    x = data["x"].to_numpy(dtype=float)

    indicators = (labels[:, None] == np.asarray(levels)[None, :]).astype(float)
    columns = [intercept_term(t) for t in levels] + [slope_term(t) for t in levels]
    matrix = np.hstack([indicators, indicators * x[:, None]])
    return pd.DataFrame(matrix, columns=columns, index=data.index)


def _quote(name: str) -> str:
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


def glmm_formula(columns: List[str]) -> str:
    """mixedlm formula over the fixed-effect *columns* of ``build_fixed_design``."""
    fixed = " + ".join(_quote(c) for c in columns)
    return f"Dead / Total ~ 0 + {fixed} + {RANDOM_TERM}"


def glmm_frame(data: pd.DataFrame) -> pd.DataFrame:
    """Model frame for ``glmer``: fixed design, ``x``, counts and the grouping factor."""
    X = build_fixed_design(data)
    frame = X.copy()
    frame["x"] = data["x"].to_numpy(dtype=float)
    frame["Dead"] = data["Dead"].to_numpy(dtype=float)
    frame["Total"] = (data["Dead"] + data["Alive"]).to_numpy(dtype=float)
    frame[GROUP] = data[GROUP].astype(str).to_numpy()
    return frame


def _control(mixedlm, config: FitConfig):
    kwargs = {"optimizer": config.optimizer, "nAGQ0initStep": not config.skip_zero_order}
    if config.max_fev is not None:
        kwargs["maxiter"] = config.max_fev
    return mixedlm.glmerControl(**kwargs)


def _warning_messages(caught) -> List[str]:
    return [f"{w.category.__name__}: {w.message}" for w in caught]


def fit_glmm(data: pd.DataFrame, config: FitConfig) -> FitResult:
    """Fit the cloglog GLMM by maximum likelihood with ``mixedlm.glmer``.

    ``optimizer``, ``max_fev``, ``n_agq`` and ``skip_zero_order`` map to
    glmer's ``optimizer``, ``maxiter``, ``nAGQ`` and ``nAGQ0initStep``.
    Errors raised by mixedlm (for example ``nAGQ > 1`` with a random slope)
    propagate unchanged.
    """
    mixedlm = _import_mixedlm()
    from mixedlm.families.binomial import Binomial

    frame = glmm_frame(data)
    columns = list(build_fixed_design(data).columns)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = mixedlm.glmer(
            glmm_formula(columns),
            frame,
            family=Binomial(link="cloglog"),
            nAGQ=config.n_agq,
            control=_control(mixedlm, config),
        )

    fixef = result.fixef()
    std_error = np.sqrt(np.clip(np.diag(np.asarray(result.vcov(), dtype=float)), 0.0, None))
    coefficients = pd.DataFrame(
        {
            "term": list(fixef.keys()),
            "estimate": np.asarray(list(fixef.values()), dtype=float),
            "std_error": std_error,
        }
    )

    cov_re = np.asarray(result.VarCorr().get_cov(GROUP), dtype=float)
    converged = bool(result.converged)
    messages = [] if converged else [str(result.message or "optimizer did not converge")]

    diagnostics = {
        "deviance": float(result.deviance),
        "llf": float(result.logLik()),
        "n_iter": int(result.n_iter),
        "n_agq": int(result.nAGQ),
        "optimizer": str(result.optimizer),
        "pirls_converged": bool(result.pirls_converged),
    }

    return FitResult(
        name=config.name,
        engine=config.engine,
        coefficients=coefficients,
        cov_re=cov_re,
        converged=converged,
        singular=bool(result.isSingular(tol=SINGULAR_TOL)),
        messages=messages,
        warnings=_warning_messages(caught),
        diagnostics=diagnostics,
    )
