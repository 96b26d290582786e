"""Link and distribution functions for GLMMBench.

Provides the complementary log-log link pair used by the simulation model
and the fitted models, plus the normal quantile used for Wald intervals.

Usage:
    from glmmbench.stats.distributions import cloglog, inv_cloglog
"""

import numpy as np
from scipy.stats import norm as _norm_dist

# Smallest representable distance from 0 and 1 for probabilities
PROB_EPS = np.finfo(np.float64).eps


def cloglog(p):
    """Complementary log-log link: ``log(-log(1 - p))``."""
    p = np.asarray(p, dtype=np.float64)
    return np.log(-np.log1p(-p))


def inv_cloglog(eta):
    """Inverse cloglog link: ``1 - exp(-exp(eta))``.

    The result is clipped into ``[PROB_EPS, 1 - PROB_EPS]`` so that it stays
    strictly inside (0, 1) even where ``exp(-exp(eta))`` underflows.
    """
    eta = np.asarray(eta, dtype=np.float64)
    p = -np.expm1(-np.exp(eta))
    return np.clip(p, PROB_EPS, 1.0 - PROB_EPS)


def norm_ppf(q):
    """Standard normal quantile function."""
    return _norm_dist.ppf(q)


def wald_multiplier(level: float = 0.95) -> float:
    """Two-sided normal multiplier for a ``level`` Wald interval."""
    return float(norm_ppf(0.5 + level / 2.0))
