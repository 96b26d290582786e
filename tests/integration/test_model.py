"""
End-to-end tests for GLMMComparison with the mixedlm and statsmodels engines.
"""

import numpy as np
import pandas as pd
import pytest

pytest.importorskip("mixedlm")
pytest.importorskip("statsmodels")

pytestmark = pytest.mark.glmm

FITS = {
    "default": {"engine": "glmm"},
    "nelder_mead": {"engine": "glmm", "optimizer": "Nelder-Mead"},
    "agq2": {"engine": "glmm", "n_agq": 2},
    "gee": {"engine": "gee"},
}


@pytest.fixture
def comparison(small_design):
    from glmmbench import GLMMComparison

    return GLMMComparison(small_design, verbose=False).set_fits(FITS)


@pytest.fixture
def report(comparison):
    with pytest.warns(UserWarning, match="Fit 'agq2' failed"):
        return comparison.run(print_results=False)


class TestRun:
    """Full comparison on the small design."""

    def test_summary_rows(self, report):
        assert report.summary["model"].tolist() == ["default", "nelder_mead", "agq2", "gee"]

    def test_agq2_fails_without_stopping(self, report):
        failed = report.fit("agq2")
        assert not failed.succeeded
        assert "nAGQ > 1 requires one random-effect term" in failed.failure_reason
        assert report.fit("gee").succeeded

    def test_failed_fit_has_no_estimates(self, report):
        assert "agq2" not in set(report.tidy["model"])
        row = report.summary.set_index("model").loc["agq2"]
        assert np.isnan(row["rmse_intercept"])

    def test_comparison_columns(self, report):
        for column in ("truth", "bias", "lower", "upper", "covered"):
            assert column in report.comparison.columns
        assert len(report.comparison) == 3 * 6

    def test_critical_doses(self, report, comparison):
        doses = report.critical_doses
        assert set(doses["model"]) == {"default", "nelder_mead", "gee"}
        default = doses[doses["model"] == "default"].set_index("treatment")
        for treatment, dose in comparison.trial.critical_doses.items():
            assert default.loc[treatment, "truth"] == pytest.approx(dose)

    def test_runtimes(self, report):
        assert len(report.runtimes) == 4
        assert report.runtimes["elapsed"].is_monotonic_decreasing

    def test_report_stored(self, comparison, report):
        assert comparison.report is report

    def test_printed_report(self, comparison, capsys):
        with pytest.warns(UserWarning):
            comparison.run(print_results=True)
        out = capsys.readouterr().out
        assert "=== Model comparison ===" in out
        assert "agq2: FAILED" in out


class TestExternalCoefficients:
    def test_external_model_in_summary(self, comparison, small_design):
        from glmmbench.stats.data_generation import true_coefficients

        truth = true_coefficients(small_design)
        comparison.set_external_coefficients(
            pd.DataFrame({"variable": truth["term"], "estimate": truth["truth"], "se": 0.1}), model="lme4"
        )
        comparison.set_fits({"default": {}})
        report = comparison.run(print_results=False)

        row = report.summary.set_index("model").loc["lme4"]
        assert row["engine"] == "external"
        assert row["rmse_slope"] == pytest.approx(0.0)
        assert row["coverage_intercept"] == pytest.approx(1.0)


class TestSave:
    def test_tables_written(self, comparison, report, tmp_path):
        paths = comparison.save(tmp_path / "out", figures=False)

        for name in ("data", "true_doses", "coefficients", "comparison", "summary", "critical_doses", "runtimes"):
            assert paths[name].exists()
        summary = pd.read_csv(paths["summary"])
        assert summary["model"].tolist() == ["default", "nelder_mead", "agq2", "gee"]

    def test_figures_written(self, comparison, report, tmp_path):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")

        paths = comparison.save(tmp_path, figures=True)
        for name in ("trial_plot", "coefficients_plot", "runtime_plot"):
            assert paths[name].exists()
            assert paths[name].stat().st_size > 0


class TestCommandLine:
    """scripts/run_report.py end to end (fast fits only)."""

    @pytest.mark.slow
    def test_main(self, tmp_path):
        import importlib.util
        from pathlib import Path

        script = Path(__file__).resolve().parents[2] / "scripts" / "run_report.py"
        spec = importlib.util.spec_from_file_location("run_report", script)
        run_report = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(run_report)

        argv = ["--seed", "1", "--output-dir", str(tmp_path), "--no-figures", "--quiet"]
        argv += ["--exclude", "bayes", "gee", "cobyqa_maxfev"]
        with pytest.warns(UserWarning, match="agq2"):
            code = run_report.main(argv)

        assert code == 0
        summary = pd.read_csv(tmp_path / "summary.csv")
        assert summary["model"].tolist() == ["default", "cobyqa", "cobyqa_no_init", "nelder_mead", "agq2"]
