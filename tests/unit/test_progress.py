"""
Tests for progress reporting.
"""

import io
import sys
from unittest.mock import patch

import pytest

from glmmbench.progress import ComparisonCancelled, PrintReporter, ProgressReporter, TqdmReporter


class TestProgressReporter:
    """Test ProgressReporter."""

    def test_start_advance_finish(self):
        calls = []
        reporter = ProgressReporter(3, lambda c, t: calls.append((c, t)))
        reporter.start()
        reporter.advance()
        reporter.advance()
        reporter.advance()
        reporter.finish()
        assert calls == [(0, 3), (1, 3), (2, 3), (3, 3)]
        assert reporter.current == 3

    def test_throttling(self):
        calls = []
        reporter = ProgressReporter(5, lambda c, t: calls.append(c), update_every=2)
        reporter.start()
        for _ in range(5):
            reporter.advance()
        assert calls == [0, 2, 4, 5]

    def test_finish_completes_early_stop(self):
        calls = []
        reporter = ProgressReporter(4, lambda c, t: calls.append(c))
        reporter.start()
        reporter.advance()
        reporter.finish()
        assert calls == [0, 1, 4]

    def test_start_resets(self):
        reporter = ProgressReporter(2, lambda c, t: None)
        reporter.advance(2)
        reporter.start()
        assert reporter.current == 0


class TestPrintReporter:
    def test_writes_to_stderr(self, capsys):
        reporter = PrintReporter()
        reporter(1, 4)
        reporter(4, 4)
        err = capsys.readouterr().err
        assert "\rFitting: 1/4 models" in err
        assert err.endswith("\n")

    def test_zero_total_silent(self, capsys):
        PrintReporter()(0, 0)
        assert capsys.readouterr().err == ""


class TestTqdmReporter:
    def test_updates_bar(self):
        pytest.importorskip("tqdm")
        reporter = TqdmReporter(file=io.StringIO())
        reporter(0, 3)
        reporter(2, 3)
        assert reporter._bar.n == 2
        reporter(3, 3)
        assert reporter._bar is None

    def test_missing_tqdm(self):
        with patch.dict(sys.modules, {"tqdm": None}):
            with pytest.raises(ImportError, match="tqdm required"):
                TqdmReporter()(0, 1)


class TestComparisonCancelled:
    def test_is_exception(self):
        with pytest.raises(ComparisonCancelled):
            raise ComparisonCancelled("stop")
