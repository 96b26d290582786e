"""Data generation, model fitting and diagnostics modules."""

from . import data_generation as data_generation
from . import diagnostics as diagnostics
from . import distributions as distributions
from . import fit as fit
