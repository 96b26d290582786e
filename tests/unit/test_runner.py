"""
Tests for fit execution (engines mocked).
"""

import pandas as pd
import pytest
from unittest.mock import patch

from glmmbench.core.runner import FitRunner
from glmmbench.progress import ComparisonCancelled, ProgressReporter
from glmmbench.stats.fit import FitConfig, FitResult

DATA = pd.DataFrame({"x": [0.0, 2.0], "Treatment": ["A", "A"], "Replicate": [1, 1], "Dead": [1, 5], "Alive": [24, 20]})


def _fake_fit(data, config):
    if config.name == "bad":
        raise RuntimeError("boom")
    coefficients = pd.DataFrame({"term": ["TreatmentA", "TreatmentA:x"], "estimate": [-3.0, 0.1], "std_error": [0.2, 0.01]})
    return FitResult(config.name, config.engine, coefficients=coefficients, converged=True, elapsed=0.5, config=config)


class TestFitRunner:
    """Test FitRunner with fit_model mocked out."""

    def test_results_in_config_order(self):
        configs = [FitConfig("first"), FitConfig("second", optimizer="Nelder-Mead")]
        with patch("glmmbench.core.runner.fit_model", side_effect=_fake_fit):
            results = FitRunner(verbose=False).run(DATA, configs)
        assert [r.name for r in results] == ["first", "second"]
        assert all(r.succeeded for r in results)

    def test_failure_does_not_stop_run(self):
        configs = [FitConfig("bad"), FitConfig("good")]
        with patch("glmmbench.core.runner.fit_model", side_effect=_fake_fit):
            with pytest.warns(UserWarning, match="Fit 'bad' failed: RuntimeError: boom"):
                results = FitRunner(verbose=False).run(DATA, configs)
        assert results[0].failure_reason == "RuntimeError: boom"
        assert results[0].config is configs[0]
        assert results[1].succeeded

    def test_library_error_recorded_as_failure(self):
        def reject_agq(data, config):
            raise ValueError("nAGQ > 1 requires one random-effect term with one coefficient per group")

        with patch("glmmbench.core.runner.fit_model", side_effect=reject_agq):
            with pytest.warns(UserWarning, match="Fit 'agq2' failed"):
                results = FitRunner(verbose=False).run(DATA, [FitConfig("agq2", n_agq=2)])
        assert not results[0].succeeded
        assert results[0].failure_reason.startswith("ValueError: nAGQ > 1 requires")

    def test_diagnostic_messages_warned(self):
        def fit_with_problems(data, config):
            result = _fake_fit(data, config)
            result.messages = ["Model failed to converge"]
            result.singular = True
            return result

        with patch("glmmbench.core.runner.fit_model", side_effect=fit_with_problems):
            with pytest.warns(UserWarning) as record:
                FitRunner(verbose=False).run(DATA, [FitConfig("shaky")])
        messages = [str(w.message) for w in record]
        assert any("Model failed to converge" in m for m in messages)
        assert "Fit 'shaky': boundary (singular) fit" in messages

    def test_data_not_modified(self):
        before = DATA.copy()
        with patch("glmmbench.core.runner.fit_model", side_effect=_fake_fit):
            FitRunner(verbose=False).run(DATA, [FitConfig("a")])
        pd.testing.assert_frame_equal(DATA, before)

    def test_cancel(self):
        with patch("glmmbench.core.runner.fit_model", side_effect=_fake_fit):
            with pytest.raises(ComparisonCancelled):
                FitRunner(verbose=False).run(DATA, [FitConfig("a")], cancel_check=lambda: True)

    def test_progress(self):
        calls = []
        progress = ProgressReporter(2, lambda c, t: calls.append((c, t)))
        with patch("glmmbench.core.runner.fit_model", side_effect=_fake_fit):
            FitRunner(verbose=False).run(DATA, [FitConfig("a"), FitConfig("b")], progress=progress)
        assert calls == [(0, 2), (1, 2), (2, 2)]

    def test_verbose_status_line(self, capsys):
        with patch("glmmbench.core.runner.fit_model", side_effect=_fake_fit):
            FitRunner(verbose=True).run(DATA, [FitConfig("a")])
        assert "a: converged in 0.50s (glmm)" in capsys.readouterr().out
