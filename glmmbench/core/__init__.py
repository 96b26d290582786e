"""Core components for the GLMMBench framework.

Re-exports the building blocks of a comparison run:

- ``DEFAULT_FIT_CONFIG``, ``build_fit_configs``: the fit sequence.
- ``FitRunner``: sequential or joblib-parallel fit execution.
- ``ResultsProcessor``, ``ComparisonReport``, ``tidy_coefficients``,
  ``estimated_critical_doses``: comparison against the truth.
"""

from .fits import DEFAULT_FIT_CONFIG, build_fit_configs
from .results import (
    ComparisonReport,
    ResultsProcessor,
    estimated_critical_doses,
    tidy_coefficients,
)
from .runner import FitRunner

__all__ = [
    # Fits
    "DEFAULT_FIT_CONFIG",
    "build_fit_configs",
    # Execution
    "FitRunner",
    # Results
    "ResultsProcessor",
    "ComparisonReport",
    "tidy_coefficients",
    "estimated_critical_doses",
]
