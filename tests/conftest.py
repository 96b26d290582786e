"""
Shared pytest fixtures for GLMMBench tests.
"""

import pytest

from tests.config import SEED, SMALL_INTERCEPTS, SMALL_N_REPEATS, SMALL_SLOPES, SMALL_TREATMENTS


@pytest.fixture
def default_design():
    """The benchmark design with every default."""
    from glmmbench import TrialDesign

    return TrialDesign()


@pytest.fixture(scope="session")
def default_trial():
    """Default design generated with the reference seed."""
    from glmmbench import generate_trial

    return generate_trial(seed=SEED)


@pytest.fixture
def small_design():
    """Three treatments, four repeats: fast to fit."""
    from glmmbench import TrialDesign

    return TrialDesign(
        treatments=SMALL_TREATMENTS,
        intercepts=SMALL_INTERCEPTS,
        slopes=SMALL_SLOPES,
        n_repeats=SMALL_N_REPEATS,
    )


@pytest.fixture
def small_trial(small_design):
    from glmmbench import generate_trial

    return generate_trial(small_design, seed=SEED)


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running fits (MCMC, full default design)")
    config.addinivalue_line("markers", "glmm: requires mixedlm")
    config.addinivalue_line("markers", "gee: requires statsmodels")
