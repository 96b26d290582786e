"""
Fit configuration, fit results and engine dispatch.

Every model fit is a call into an external library (mixedlm, statsmodels,
bambi); this module only describes *what* to fit and collects what comes back.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..utils.validators import _validate_numeric_parameter, _ValidationResult

ENGINES = ("glmm", "gee", "bayes")

# mixedlm optimizer names; "auto" lets glmer pick, COBYQA is SciPy's BOBYQA successor
OPTIMIZERS = ("auto", "COBYQA", "Nelder-Mead", "L-BFGS-B", "BFGS", "Powell")


@dataclass
class FitConfig:
    """One model fit to run against the shared dataset.

    Attributes:
        name: Label used in every output table.
        engine: ``"glmm"`` (maximum-likelihood GLMM via ``mixedlm.glmer``),
            ``"gee"`` (marginal model, exchangeable within replicate) or
            ``"bayes"`` (bambi GLMM).
        optimizer: glmer optimizer for the ``glmm`` engine.
        max_fev: Maximum iterations / function evaluations (``None`` keeps
            the library default).
        n_agq: Adaptive quadrature order passed to glmer as ``nAGQ``. ``0``
            optimizes the covariance parameters only, ``1`` is the Laplace
            approximation. mixedlm rejects higher orders for the
            ``(1 + x | Replicate)`` term, and that error becomes a failed fit.
        skip_zero_order: Skip glmer's ``nAGQ = 0`` initialisation step
            (``nAGQ0initStep = False``); for ``gee``, leave start values to
            statsmodels instead of an IRLS GLM fit.
        options: Engine-specific keyword options (e.g. ``draws``, ``tune``,
            ``chains``, ``random_seed`` for ``bayes``).
    """

    name: str
    engine: str = "glmm"
    optimizer: str = "auto"
    max_fev: Optional[int] = None
    n_agq: int = 1
    skip_zero_order: bool = False
    options: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> _ValidationResult:
        errors: List[str] = []
        if not isinstance(self.name, str) or not self.name:
            errors.append("Fit name must be a non-empty string")
        if self.engine not in ENGINES:
            errors.append(f"Unknown engine '{self.engine}'. Available: {', '.join(ENGINES)}")
        if self.optimizer not in OPTIMIZERS:
            errors.append(f"Unknown optimizer '{self.optimizer}'. Available: {', '.join(OPTIMIZERS)}")
        result = _ValidationResult(len(errors) == 0, errors, [])
        if self.max_fev is not None:
            result = result.merge(_validate_numeric_parameter(self.max_fev, "max_fev", expected_types=(int,), min_val=1))
        result = result.merge(_validate_numeric_parameter(self.n_agq, "n_agq", expected_types=(int,), min_val=0))
        return result


@dataclass
class FitResult:
    """Outcome of one fit, successful or not.

    Attributes:
        name: Fit label (from ``FitConfig.name``).
        engine: Engine used.
        coefficients: ``(term, estimate, std_error)`` table, ``None`` on failure.
        cov_re: Estimated random-effect covariance, when the engine has one.
        converged: Optimizer / sampler convergence flag.
        singular: Singular-fit flag, ``None`` when not applicable.
        messages: Convergence diagnostic messages.
        warnings: Warnings raised by the external library during the fit.
        diagnostics: Extra engine-specific numbers (deviance, R-hat, ...).
        elapsed: Wall-clock fitting time in seconds.
        failure_reason: Why the fit produced no estimates.
    """

    name: str
    engine: str
    coefficients: Optional[pd.DataFrame] = None
    cov_re: Optional[np.ndarray] = None
    converged: bool = False
    singular: Optional[bool] = None
    messages: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    elapsed: float = 0.0
    failure_reason: Optional[str] = None
    config: Optional[FitConfig] = None

    @property
    def succeeded(self) -> bool:
        return self.failure_reason is None and self.coefficients is not None


def fit_model(data: pd.DataFrame, config: FitConfig) -> FitResult:
    """Fit one configuration and time it.

    Engine errors propagate; ``FitRunner`` turns them into failed results.

    Args:
        data: Trial table (``x, Treatment, Replicate, Dead, Alive``); not
            modified.
        config: What to fit.

    Raises:
        ValueError: Invalid configuration.
    """
    config.validate().raise_if_invalid()

    start = time.perf_counter()

    if config.engine == "glmm":
        from .glmm import fit_glmm

        result = fit_glmm(data, config)
    elif config.engine == "gee":
        from .gee import fit_gee

        result = fit_gee(data, config)
    else:
        from .bayes import fit_bayes

        result = fit_bayes(data, config)

    result.elapsed = time.perf_counter() - start
    result.config = config
    return result
