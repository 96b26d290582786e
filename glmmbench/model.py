"""
GLMMBench - cloglog GLMM fitting comparison.

This module provides the main GLMMComparison class: simulate one synthetic
trial, fit it with several engines and configurations, and compare the
estimates against the known truth.
"""

import dataclasses
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pandas as pd

from .core import (
    DEFAULT_FIT_CONFIG,
    ComparisonReport,
    FitRunner,
    ResultsProcessor,
    build_fit_configs,
    estimated_critical_doses,
    tidy_coefficients,
)
from .stats.data_generation import SyntheticTrial, TrialDesign, generate_trial, true_coefficients, write_trial_csv
from .stats.distributions import wald_multiplier
from .stats.fit import FitConfig
from .utils.external_tables import load_external_coefficients
from .utils.formatters import _format_report, _format_trial_summary
from .utils.validators import _validate_confidence_level, _validate_parallel_settings


class GLMMComparison:
    """Simulate a cloglog GLMM trial and compare fitting methods on it.

    Configuration methods (``set_*``) validate immediately and return
    ``self`` for method chaining. The trial is generated once (lazily, on
    first use) and shared read-only by every fit.

    Attributes:
        seed: Random seed for the simulated trial (default: 42).
        design: Simulation parameters.
        level: Confidence level for coverage (default: 0.95).
        parallel: Run fits in parallel worker processes (default: False).
        n_cores: Number of worker processes.
        verbose: Print status lines.

    Example:
        >>> comparison = GLMMComparison().set_seed(42)
        >>> comparison.set_fits(exclude=["bayes"])
        >>> report = comparison.run()
        >>> report.summary
    """

    def __init__(self, design: Optional[TrialDesign] = None, verbose: bool = True):
        """Initialise the comparison.

        Args:
            design: Simulation parameters. Defaults to ``TrialDesign()``.
            verbose: Print configuration and status messages.

        Raises:
            ValueError: If *design* is invalid.
        """
        self.verbose = verbose
        self.seed: Optional[int] = 42
        self.level = 0.95
        self.parallel = False
        self.n_cores = 1

        self.design = design or TrialDesign()
        self.design.validate().raise_if_invalid()

        self._fits: List[FitConfig] = build_fit_configs(DEFAULT_FIT_CONFIG)
        self._external: Dict[str, pd.DataFrame] = {}
        self._trial: Optional[SyntheticTrial] = None
        self.report: Optional[ComparisonReport] = None

    def _print(self, message: str):
        if self.verbose:
            print(message)

    # =========================================================================
    # Configuration methods
    # =========================================================================

    def set_seed(self, seed: Optional[int] = None):
        """Set the random seed of the simulated trial.

        Args:
            seed: Non-negative integer. ``None`` draws fresh OS entropy.

        Returns:
            self: For method chaining.

        Raises:
            TypeError: If *seed* is not an integer or ``None``.
            ValueError: If *seed* is negative.
        """
        if seed is not None:
            if not isinstance(seed, int) or isinstance(seed, bool):
                raise TypeError("seed must be an integer or None")
            if seed < 0:
                raise ValueError("seed must be non-negative")

        self.seed = seed
        self._trial = None
        self._print(f"Seed set to: {seed}" if seed is not None else "Random seeding enabled")
        return self

    def set_design(self, design: Optional[TrialDesign] = None, **overrides: Any):
        """Replace the simulation design, or override some of its fields.

        Args:
            design: Full design. Defaults to the current one.
            **overrides: ``TrialDesign`` fields to change
                (e.g. ``n_repeats=5``, ``trial_size=50``).

        Returns:
            self: For method chaining.

        Raises:
            ValueError: If the resulting design is invalid.
            TypeError: If an override names an unknown field.
        """
        new_design = dataclasses.replace(design or self.design, **overrides)
        new_design.validate().raise_if_invalid()
        self.design = new_design
        self._trial = None
        return self

    def set_fits(
        self,
        fits: Optional[Union[Dict[str, Dict], List[FitConfig]]] = None,
        exclude: Optional[List[str]] = None,
    ):
        """Choose which fits to run.

        Args:
            fits: ``{name: FitConfig kwargs}`` mapping or a list of
                ``FitConfig``. Defaults to ``DEFAULT_FIT_CONFIG``.
            exclude: Fit names to drop.

        Returns:
            self: For method chaining.

        Raises:
            ValueError: If a configuration is invalid or names repeat.
        """
        if fits is None or isinstance(fits, dict):
            configs = build_fit_configs(fits, exclude=exclude)
        else:
            exclude_set = set(exclude or [])
            configs = [c for c in fits if c.name not in exclude_set]
            for config in configs:
                config.validate().raise_if_invalid()

        names = [c.name for c in configs]
        if len(set(names)) != len(names):
            raise ValueError(f"Fit names must be unique, got: {', '.join(names)}")

        self._fits = configs
        self._print(f"Fits: {', '.join(names) if names else '(none)'}")
        return self

    def add_fit(self, name: str, **kwargs: Any):
        """Append one fit configuration (``FitConfig`` keyword arguments).

        Returns:
            self: For method chaining.
        """
        if any(c.name == name for c in self._fits):
            raise ValueError(f"A fit named '{name}' already exists")
        config = FitConfig(name=name, **kwargs)
        config.validate().raise_if_invalid()
        self._fits.append(config)
        return self

    def set_parallel(self, enable: bool = True, n_cores: Optional[int] = None):
        """Enable or disable parallel fitting (requires ``joblib``).

        Args:
            enable: ``True`` to run fits in worker processes.
            n_cores: Number of workers. Defaults to ``cpu_count // 2``.

        Returns:
            self: For method chaining.
        """
        if enable is False:
            self.parallel, self.n_cores = False, 1
            return self

        settings, result = _validate_parallel_settings(enable, n_cores)
        for warning in result.warnings:
            print(f"Warning: {warning}")
        result.raise_if_invalid()
        self.parallel, self.n_cores = settings
        return self

    def set_confidence_level(self, level: float):
        """Set the Wald interval level used for coverage.

        Returns:
            self: For method chaining.
        """
        _validate_confidence_level(level).raise_if_invalid()
        self.level = float(level)
        return self

    def set_external_coefficients(self, source: Union[str, Path, pd.DataFrame], model: str = "external"):
        """Add a coefficient table fitted elsewhere (variable, estimate, std error).

        Returns:
            self: For method chaining.
        """
        table = load_external_coefficients(source, model)
        self._external[model] = table
        self._print(f"External coefficients '{model}': {len(table)} terms")
        return self

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def fits(self) -> List[FitConfig]:
        """Configured fits, in run order."""
        return list(self._fits)

    @property
    def trial(self) -> SyntheticTrial:
        """The simulated trial (generated on first access)."""
        return self.simulate()

    # =========================================================================
    # Running
    # =========================================================================

    def simulate(self) -> SyntheticTrial:
        """Generate the trial for the current design and seed (cached)."""
        return self._simulate(announce=True)

    def _simulate(self, announce: bool) -> SyntheticTrial:
        if self._trial is None:
            self._trial = generate_trial(self.design, seed=self.seed)
            if announce:
                self._print(self._trial_summary(self._trial))
        return self._trial

    def _trial_summary(self, trial: SyntheticTrial) -> str:
        return _format_trial_summary(trial.data, self.design.n_replicates, self.design.trial_size, self.seed)

    def run(
        self,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
        print_results: bool = True,
    ) -> ComparisonReport:
        """Fit every configured model and compare the results.

        Fit failures are reported as warnings and recorded in the summary;
        they never stop the run.

        Args:
            progress_callback: ``callback(current, total)`` called as fits
                complete (e.g. ``PrintReporter()``).
            cancel_check: Callable returning ``True`` to abort between fits.
            print_results: Print the comparison table.

        Returns:
            ``ComparisonReport`` (also stored on ``self.report``).
        """
        from .progress import ProgressReporter

        # The printed report repeats the trial summary
        trial = self._simulate(announce=not print_results)
        progress = ProgressReporter(len(self._fits), progress_callback) if progress_callback is not None else None

        runner = FitRunner(parallel=self.parallel, n_cores=self.n_cores, verbose=self.verbose)
        fits = runner.run(trial.data, self._fits, progress=progress, cancel_check=cancel_check)

        processor = ResultsProcessor(level=self.level)
        tidy = tidy_coefficients(fits, list(self._external.values()))
        comparison = processor.compare_to_truth(tidy, true_coefficients(self.design))

        self.report = ComparisonReport(
            fits=fits,
            tidy=tidy,
            comparison=comparison,
            summary=processor.summarize(comparison, fits),
            critical_doses=estimated_critical_doses(tidy, trial.critical_doses),
            runtimes=processor.runtime_table(fits),
        )

        if print_results:
            trial_text = self._trial_summary(trial)
            print(_format_report(trial_text, self.report.summary, self.report.messages))
        return self.report

    # =========================================================================
    # Output
    # =========================================================================

    def plot(self, kind: str = "coefficients", show: bool = True):
        """Draw one of the report figures.

        Args:
            kind: ``"coefficients"``, ``"runtime"`` or ``"trial"``.
            show: Display the figure.

        Returns:
            The matplotlib figure.

        Raises:
            RuntimeError: If a results figure is requested before ``run()``.
            ValueError: If *kind* is unknown.
        """
        from .utils.visualization import _create_coefficient_plot, _create_runtime_plot, _create_trial_plot

        if kind == "trial":
            trial = self.simulate()
            return _create_trial_plot(trial.data, self.design.trial_size, trial.critical_doses, show=show)
        if kind not in ("coefficients", "runtime"):
            raise ValueError(f"Unknown plot kind '{kind}'. Available: coefficients, runtime, trial")
        if self.report is None:
            raise RuntimeError("No results yet: call run() first")
        if kind == "coefficients":
            return _create_coefficient_plot(self.report.comparison, z_crit=wald_multiplier(self.level), show=show)
        return _create_runtime_plot(self.report.runtimes, show=show)

    def save(self, output_dir: Union[str, Path], figures: bool = True) -> Dict[str, Path]:
        """Write the trial, the result tables and (optionally) figures.

        Args:
            output_dir: Directory to write into (created if missing).
            figures: Also save PNG figures (requires matplotlib).

        Returns:
            Mapping of artifact name to path.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        trial = self.simulate()

        paths = {
            "data": output_dir / "trial.csv",
            "true_doses": output_dir / "true_critical_doses.csv",
        }
        write_trial_csv(trial, paths["data"], doses_path=paths["true_doses"])

        if self.report is not None:
            tables = {
                "coefficients": self.report.tidy,
                "comparison": self.report.comparison,
                "summary": self.report.summary,
                "critical_doses": self.report.critical_doses,
                "runtimes": self.report.runtimes,
            }
            for name, table in tables.items():
                paths[name] = output_dir / f"{name}.csv"
                table.to_csv(paths[name], index=False)

        if figures:
            import matplotlib.pyplot as plt

            kinds = ["trial"] + (["coefficients", "runtime"] if self.report is not None else [])
            for kind in kinds:
                fig = self.plot(kind, show=False)
                paths[f"{kind}_plot"] = output_dir / f"{kind}.png"
                fig.savefig(paths[f"{kind}_plot"], dpi=120)
                plt.close(fig)

        self._print(f"Saved {len(paths)} files to {output_dir}")
        return paths
