"""
Tests for GLMMComparison configuration (no fitting).
"""

import pandas as pd
import pytest

from glmmbench import GLMMComparison, TrialDesign
from glmmbench.core import DEFAULT_FIT_CONFIG
from tests.config import N_ROWS, SEED


class TestConstruction:
    def test_defaults(self):
        comparison = GLMMComparison(verbose=False)
        assert comparison.seed == SEED
        assert comparison.level == 0.95
        assert comparison.parallel is False
        assert [f.name for f in comparison.fits] == list(DEFAULT_FIT_CONFIG)

    def test_invalid_design(self):
        with pytest.raises(ValueError, match="Slopes"):
            GLMMComparison(TrialDesign(slopes=(0.1,)), verbose=False)


class TestSetSeed:
    def test_chaining(self):
        comparison = GLMMComparison(verbose=False)
        assert comparison.set_seed(7) is comparison
        assert comparison.seed == 7

    def test_resets_trial(self, small_design):
        comparison = GLMMComparison(small_design, verbose=False)
        first = comparison.trial
        comparison.set_seed(SEED + 1)
        assert comparison.trial is not first

    @pytest.mark.parametrize("seed, error", [("42", TypeError), (1.5, TypeError), (True, TypeError), (-1, ValueError)])
    def test_invalid(self, seed, error):
        with pytest.raises(error):
            GLMMComparison(verbose=False).set_seed(seed)

    def test_none_allowed(self):
        assert GLMMComparison(verbose=False).set_seed(None).seed is None


class TestSetDesign:
    def test_overrides(self):
        comparison = GLMMComparison(verbose=False).set_design(n_repeats=5)
        assert comparison.design.n_repeats == 5
        assert comparison.design.n_treatments == 24

    def test_invalid_override(self):
        comparison = GLMMComparison(verbose=False)
        with pytest.raises(ValueError):
            comparison.set_design(trial_size=0)
        assert comparison.design.trial_size == 25

    def test_unknown_field(self):
        with pytest.raises(TypeError):
            GLMMComparison(verbose=False).set_design(n_doses=3)


class TestSetFits:
    def test_exclude(self):
        comparison = GLMMComparison(verbose=False).set_fits(exclude=["bayes"])
        assert "bayes" not in [f.name for f in comparison.fits]

    def test_mapping(self):
        comparison = GLMMComparison(verbose=False).set_fits({"only": {"optimizer": "Nelder-Mead"}})
        assert [f.name for f in comparison.fits] == ["only"]

    def test_duplicate_names_in_list(self):
        from glmmbench import FitConfig

        with pytest.raises(ValueError, match="unique"):
            GLMMComparison(verbose=False).set_fits([FitConfig("a"), FitConfig("a")])

    def test_add_fit(self):
        comparison = GLMMComparison(verbose=False).set_fits({"a": {}})
        comparison.add_fit("lbfgs", optimizer="L-BFGS-B", max_fev=500)
        assert [f.name for f in comparison.fits] == ["a", "lbfgs"]
        with pytest.raises(ValueError, match="already exists"):
            comparison.add_fit("a")

    def test_add_invalid_fit(self):
        with pytest.raises(ValueError):
            GLMMComparison(verbose=False).add_fit("x", engine="nope")

    def test_fits_is_copy(self):
        comparison = GLMMComparison(verbose=False)
        comparison.fits.clear()
        assert len(comparison.fits) == len(DEFAULT_FIT_CONFIG)


class TestOtherSettings:
    def test_parallel_disable(self):
        comparison = GLMMComparison(verbose=False).set_parallel(False)
        assert comparison.parallel is False
        assert comparison.n_cores == 1

    def test_parallel_enable(self):
        comparison = GLMMComparison(verbose=False).set_parallel(True, n_cores=1)
        assert comparison.parallel is True
        assert comparison.n_cores == 1

    def test_parallel_invalid(self):
        with pytest.raises(ValueError):
            GLMMComparison(verbose=False).set_parallel(True, n_cores=0)

    def test_confidence_level(self):
        assert GLMMComparison(verbose=False).set_confidence_level(0.9).level == 0.9
        with pytest.raises(ValueError):
            GLMMComparison(verbose=False).set_confidence_level(1.2)

    def test_external_coefficients(self):
        table = pd.DataFrame({"variable": ["TreatmentA"], "estimate": [-3.0], "se": [0.1]})
        comparison = GLMMComparison(verbose=False).set_external_coefficients(table, model="lme4")
        assert list(comparison._external) == ["lme4"]


class TestSimulate:
    def test_cached(self):
        comparison = GLMMComparison(verbose=False)
        assert comparison.simulate() is comparison.simulate()
        assert len(comparison.trial) == N_ROWS

    def test_prints_summary_when_verbose(self, capsys, small_design):
        GLMMComparison(small_design, verbose=True).simulate()
        assert "=== Simulated trial ===" in capsys.readouterr().out

    @pytest.mark.parametrize("print_results", [True, False])
    def test_run_prints_trial_summary_once(self, capsys, small_design, print_results):
        from unittest.mock import patch

        from glmmbench.stats.data_generation import true_coefficients
        from glmmbench.stats.fit import FitResult

        truth = true_coefficients(small_design)
        coefficients = pd.DataFrame({"term": truth["term"], "estimate": truth["truth"], "std_error": 0.1})

        def fake_fit(data, config):
            return FitResult(config.name, config.engine, coefficients=coefficients, converged=True, elapsed=0.1)

        comparison = GLMMComparison(small_design, verbose=True).set_fits({"default": {}})
        with patch("glmmbench.core.runner.fit_model", side_effect=fake_fit):
            comparison.run(print_results=print_results)
        assert capsys.readouterr().out.count("=== Simulated trial ===") == 1


class TestPlotBeforeRun:
    def test_results_plot_requires_run(self):
        with pytest.raises(RuntimeError, match="call run"):
            GLMMComparison(verbose=False).plot("runtime", show=False)

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown plot kind"):
            GLMMComparison(verbose=False).plot("forest", show=False)

    def test_save_without_results(self, tmp_path, small_design):
        paths = GLMMComparison(small_design, verbose=False).save(tmp_path, figures=False)
        assert set(paths) == {"data", "true_doses"}
        assert paths["data"].exists()
