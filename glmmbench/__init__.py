"""GLMMBench - cloglog GLMM fitting comparison.

Simulates a synthetic binomial dose-response trial from a complementary
log-log GLMM with per-replicate random intercepts and slopes, fits it with
several engines and configurations, and compares estimates, diagnostics and
runtimes against the known truth.

Example:
    >>> from glmmbench import GLMMComparison
    >>>
    >>> comparison = GLMMComparison().set_seed(42)
    >>> comparison.set_fits(exclude=["bayes"])
    >>> report = comparison.run()
    >>> comparison.plot("coefficients")
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

from .model import GLMMComparison
from .progress import ComparisonCancelled, PrintReporter, ProgressReporter, TqdmReporter
from .stats.data_generation import SyntheticTrial, TrialDesign, generate_trial
from .stats.fit import FitConfig, FitResult

try:
    __version__ = _get_version("GLMMBench")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "GLMMComparison",
    "TrialDesign",
    "SyntheticTrial",
    "generate_trial",
    "FitConfig",
    "FitResult",
    "ComparisonCancelled",
    "ProgressReporter",
    "PrintReporter",
    "TqdmReporter",
]
