"""
Fit execution for GLMMBench.

Runs every configured fit against the same immutable trial table. A failing
fit never stops the run: its exception becomes a failed ``FitResult`` and a
warning, and the next fit starts.
"""

import time
import warnings
from typing import Callable, List, Optional

import pandas as pd

from ..progress import ComparisonCancelled
from ..stats.fit import FitConfig, FitResult, fit_model


def _run_single_fit(data: pd.DataFrame, config: FitConfig) -> FitResult:
    """Fit one configuration, converting any exception into a failed result."""
    start = time.perf_counter()
    try:
        return fit_model(data, config)
    except Exception as e:
        return FitResult(
            name=config.name,
            engine=config.engine,
            converged=False,
            elapsed=time.perf_counter() - start,
            failure_reason=f"{type(e).__name__}: {e}",
            config=config,
        )


class FitRunner:
    """Executes a list of fits sequentially or with joblib.

    Each fit only reads the shared table and returns its own result, so
    parallel and sequential runs give the same estimates.
    """

    def __init__(self, parallel: bool = False, n_cores: int = 1, verbose: bool = True):
        """Initialise the runner.

        Args:
            parallel: Run fits in separate processes (``joblib``/``loky``).
            n_cores: Number of worker processes when *parallel* is set.
            verbose: Print one status line per fit.
        """
        self.parallel = parallel
        self.n_cores = n_cores
        self.verbose = verbose

    def run(
        self,
        data: pd.DataFrame,
        configs: List[FitConfig],
        progress=None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> List[FitResult]:
        """Run every fit in *configs* on *data*.

        Args:
            data: Trial table; never modified.
            configs: Fits to run, in report order.
            progress: Optional ``ProgressReporter`` (advanced by 1 per fit).
            cancel_check: Optional callable returning ``True`` to abort.

        Returns:
            One ``FitResult`` per config, in the same order.

        Raises:
            ComparisonCancelled: If *cancel_check* requests cancellation.
        """
        if progress is not None:
            progress.start()

        if self.parallel and len(configs) > 1:
            results = self._run_parallel(data, configs, progress, cancel_check)
        else:
            results = self._run_sequential(data, configs, progress, cancel_check)

        if progress is not None:
            progress.finish()

        for result in results:
            self._report(result)
        return results

    def _run_sequential(self, data, configs, progress, cancel_check) -> List[FitResult]:
        results = []
        for config in configs:
            if cancel_check is not None and cancel_check():
                raise ComparisonCancelled("Comparison cancelled by user")
            results.append(_run_single_fit(data, config))
            if progress is not None:
                progress.advance()
        return results

    def _run_parallel(self, data, configs, progress, cancel_check) -> List[FitResult]:
        try:
            from joblib import Parallel, delayed
        except ImportError:
            print("Warning: joblib not available. Install with: pip install joblib")
            print("Warning: Continuing with sequential processing.")
            return self._run_sequential(data, configs, progress, cancel_check)

        try:
            outputs = Parallel(
                n_jobs=self.n_cores,
                backend="loky",
                verbose=0,
                return_as="generator",
            )(delayed(_run_single_fit)(data, config) for config in configs)
            results = []
            for result in outputs:
                if cancel_check is not None and cancel_check():
                    raise ComparisonCancelled("Comparison cancelled by user")
                results.append(result)
                if progress is not None:
                    progress.advance()
            return results
        except ComparisonCancelled:
            raise
        except Exception as e:
            print(f"Warning: Parallel execution failed ({e}). Falling back to sequential.")
            if progress is not None:
                progress.start()
            return self._run_sequential(data, configs, progress, cancel_check)

    def _report(self, result: FitResult):
        if result.failure_reason is not None:
            warnings.warn(f"Fit '{result.name}' failed: {result.failure_reason}", UserWarning, stacklevel=3)
            return
        for message in result.messages:
            warnings.warn(f"Fit '{result.name}': {message}", UserWarning, stacklevel=3)
        if result.singular:
            warnings.warn(f"Fit '{result.name}': boundary (singular) fit", UserWarning, stacklevel=3)
        if self.verbose:
            status = "converged" if result.converged else "NOT converged"
            print(f"{result.name}: {status} in {result.elapsed:.2f}s ({result.engine})")
