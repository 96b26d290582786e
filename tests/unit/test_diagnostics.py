"""
Tests for convergence and singularity diagnostics.
"""

import numpy as np

from glmmbench.stats.diagnostics import (
    ConvergenceReport,
    check_sampler,
    check_singular,
)


class TestCheckSingular:
    """Boundary detection on random-effect covariances."""

    def test_default_design_covariance_not_singular(self):
        assert check_singular([[0.06, -0.001], [-0.001, 0.0001]]) is False

    def test_diagonal_not_singular(self):
        assert check_singular(np.diag([0.06, 0.0001])) is False

    def test_zero_variance(self):
        assert check_singular([[0.06, 0.0], [0.0, 0.0]])

    def test_perfect_correlation(self):
        assert check_singular([[1.0, 1.0], [1.0, 1.0]])

    def test_near_perfect_correlation(self):
        r = 1.0 - 1e-6
        assert check_singular([[1.0, r], [r, 1.0]])

    def test_variance_vector(self):
        assert check_singular([0.5, 0.0])
        assert not check_singular([0.5, 0.2])

    def test_empty(self):
        assert check_singular([]) is False

    def test_non_finite(self):
        assert check_singular([[np.nan, 0.0], [0.0, 1.0]])

    def test_custom_tolerance(self):
        cov = np.diag([0.06, 1e-6])
        assert check_singular(cov, tol=1e-2)
        assert not check_singular(cov, tol=1e-4)


class TestCheckSampler:
    """MCMC output checks."""

    def test_clean_chains(self):
        report = check_sampler([1.0, 1.005], 0, [1200.0, 900.0])
        assert report.ok

    def test_high_rhat(self):
        report = check_sampler([1.0, 1.05], 0, [1200.0])
        assert "R-hat up to 1.050" in report.messages[0]

    def test_divergences(self):
        report = check_sampler([1.0], 3, [1200.0])
        assert report.messages == ["3 divergent transitions"]

    def test_low_ess(self):
        report = check_sampler([1.0], 0, [100.0, 1000.0])
        assert "Bulk ESS as low as 100" in report.messages[0]

    def test_all_problems_collected(self):
        report = check_sampler([1.2], 5, [10.0])
        assert len(report.messages) == 3


class TestConvergenceReport:
    def test_add_marks_failure(self):
        report = ConvergenceReport()
        assert report.ok
        report.add("problem")
        assert not report.ok
        assert report.messages == ["problem"]
