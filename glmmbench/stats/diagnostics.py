"""Convergence and singularity diagnostics for fitted models.

Maximum-likelihood fits get their singular and convergence flags from
mixedlm itself. The checks here cover the Bayesian fits:

- singular fit: a variance component (diagonal of the relative Cholesky
  factor) at the boundary, or a random-effect correlation at +/-1, using
  lme4's boundary tolerance;
- sampler check: R-hat, divergences and effective sample size.

Diagnostics only report; nothing here alters a fit.
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

SINGULAR_TOL = 1e-4
RHAT_TOL = 1.01
MIN_ESS = 400


@dataclass
class ConvergenceReport:
    """Result of a diagnostic check.

    Attributes:
        ok: ``True`` when no problem was detected.
        messages: Human-readable description of each problem.
    """

    ok: bool = True
    messages: List[str] = field(default_factory=list)

    def add(self, message: str):
        self.ok = False
        self.messages.append(message)


def check_singular(cov_re, tol: float = SINGULAR_TOL) -> bool:
    """Return ``True`` if a random-effect covariance is (near) singular.

    Args:
        cov_re: Square random-effect covariance matrix (or a 1-D array of
            variances, treated as a diagonal matrix).
        tol: Boundary tolerance on the Cholesky diagonal and on ``1 - |r|``.
    """
    cov = np.atleast_1d(np.asarray(cov_re, dtype=float))
    if cov.ndim == 1:
        cov = np.diag(cov)
    if cov.size == 0:
        return False
    if not np.all(np.isfinite(cov)):
        return True

    sd = np.sqrt(np.clip(np.diag(cov), 0.0, None))
    if np.any(sd < tol):
        return True

    corr = cov / np.outer(sd, sd)
    off_diag = corr[~np.eye(len(sd), dtype=bool)]
    if off_diag.size and np.any(np.abs(off_diag) >= 1.0 - tol):
        return True

    # Binomial scale is 1, so the Cholesky factor of cov_re is lme4's theta
    try:
        chol = np.linalg.cholesky(cov)
    except np.linalg.LinAlgError:
        return True
    return bool(np.any(np.abs(np.diag(chol)) < tol))


def check_sampler(
    r_hat,
    divergences: int,
    ess_bulk,
    rhat_tol: float = RHAT_TOL,
    min_ess: float = MIN_ESS,
) -> ConvergenceReport:
    """Check MCMC output for the usual failure signs."""
    report = ConvergenceReport()
    r_hat = np.asarray(r_hat, dtype=float)
    ess_bulk = np.asarray(ess_bulk, dtype=float)

    if r_hat.size and np.nanmax(r_hat) > rhat_tol:
        report.add(f"R-hat up to {np.nanmax(r_hat):.3f} (> {rhat_tol})")
    if divergences > 0:
        report.add(f"{divergences} divergent transitions")
    if ess_bulk.size and np.nanmin(ess_bulk) < min_ess:
        report.add(f"Bulk ESS as low as {np.nanmin(ess_bulk):.0f} (< {min_ess})")
    return report
