"""
Progress reporting for GLMMBench runs.

Provides a callback-based progress system that works from both scripts and
notebooks. Progress is reported via a simple ``(current, total)`` callback,
advanced once per completed fit.
"""

import sys
from typing import Callable, Optional


class ComparisonCancelled(Exception):
    """Raised when a comparison run is cancelled by the user."""

    pass


class ProgressReporter:
    """Wraps a ``(current, total)`` callback with counting and throttling.

    Args:
        total: Total number of fits.
        callback: Function called as ``callback(current, total)`` on each
            (throttled) update.
        update_every: Fire the callback at most once per this many advances.
            Defaults to 1 (fits are slow; every one is worth reporting).
    """

    def __init__(
        self,
        total: int,
        callback: Callable[[int, int], None],
        update_every: Optional[int] = None,
    ):
        self.total = total
        self._callback = callback
        self._current = 0
        self.update_every = update_every if update_every is not None else 1

    @property
    def current(self) -> int:
        return self._current

    def start(self):
        """Signal the beginning of the run (fires an initial 0/total update)."""
        self._current = 0
        self._callback(0, self.total)

    def advance(self, n: int = 1):
        """Advance the counter by *n* fits, firing the callback when due."""
        self._current += n
        if self._current >= self.total or self._current % self.update_every == 0:
            self._callback(self._current, self.total)

    def finish(self):
        """Signal completion (fires a final total/total update if not already there)."""
        if self._current < self.total:
            self._current = self.total
            self._callback(self.total, self.total)


class PrintReporter:
    """Console progress reporter: prints ``\\rFitting: 3/8 models``."""

    def __call__(self, current: int, total: int):
        if total <= 0:
            return
        sys.stderr.write(f"\rFitting: {current}/{total} models")
        sys.stderr.flush()
        if current >= total:
            sys.stderr.write("\n")
            sys.stderr.flush()


class TqdmReporter:
    """Optional tqdm-based progress reporter (lazy import).

    Usage::

        from glmmbench.progress import TqdmReporter
        comparison.run(progress_callback=TqdmReporter())
    """

    def __init__(self, **tqdm_kwargs):
        self._tqdm_kwargs = tqdm_kwargs
        self._bar = None

    def __call__(self, current: int, total: int):
        try:
            from tqdm import tqdm
        except ImportError:
            raise ImportError("tqdm required for TqdmReporter: pip install glmmbench[progress]") from None

        if self._bar is None:
            self._bar = tqdm(total=total, unit="fit", **self._tqdm_kwargs)

        delta = current - self._bar.n
        if delta > 0:
            self._bar.update(delta)

        if current >= total:
            self._bar.close()
            self._bar = None
