"""
Default fit sequence for GLMMBench.

The sequence walks through the configurations a practitioner typically
tries when a cloglog GLMM misbehaves: the default fit, another optimizer,
dropping the zero-order initialisation step, raising the evaluation limit,
asking for higher-order quadrature, a marginal model, and a Bayesian fit.
"""

from typing import Dict, List, Optional

from ..stats.fit import FitConfig

DEFAULT_FIT_CONFIG = {
    "default": {"engine": "glmm", "optimizer": "auto"},
    "cobyqa": {"engine": "glmm", "optimizer": "COBYQA", "max_fev": 100},
    "cobyqa_no_init": {"engine": "glmm", "optimizer": "COBYQA", "max_fev": 100, "skip_zero_order": True},
    "cobyqa_maxfev": {"engine": "glmm", "optimizer": "COBYQA", "max_fev": 10000, "skip_zero_order": True},
    "nelder_mead": {"engine": "glmm", "optimizer": "Nelder-Mead"},
    "agq2": {"engine": "glmm", "n_agq": 2},
    "gee": {"engine": "gee"},
    "bayes": {"engine": "bayes", "options": {"draws": 1000, "tune": 1000, "chains": 4}},
}


def build_fit_configs(configs: Optional[Dict[str, Dict]] = None, exclude: Optional[List[str]] = None) -> List[FitConfig]:
    """Turn a ``{name: kwargs}`` mapping into validated ``FitConfig`` objects.

    Args:
        configs: Mapping of fit name to ``FitConfig`` keyword arguments.
            Defaults to ``DEFAULT_FIT_CONFIG``.
        exclude: Names to leave out.

    Raises:
        ValueError: If any configuration is invalid.
    """
    configs = configs if configs is not None else DEFAULT_FIT_CONFIG
    exclude = set(exclude or [])
    fits = []
    for name, kwargs in configs.items():
        if name in exclude:
            continue
        config = FitConfig(name=name, **kwargs)
        config.validate().raise_if_invalid()
        fits.append(config)
    return fits
