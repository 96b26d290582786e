"""
Synthetic trial generator for cloglog GLMM benchmarks.

Builds an artificial dose-response dataset for a factorial
treatment x repeat x dose design:

- per-treatment fixed intercepts and slopes
- one bivariate-normal (intercept, slope) random effect per replicate
- binomial outcome counts drawn through the inverse cloglog link

Generation is a pure function of the design and an explicit
``numpy.random.Generator``; no global random state is touched.
"""

import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..utils.validators import (
    _validate_covariance_matrix,
    _validate_parameter_sequence,
    _validate_positive_int,
    _validate_seed,
    _validate_treatments,
    _validate_x_values,
    _ValidationResult,
)
from .distributions import cloglog, inv_cloglog

# Persisted column order
COLUMNS = ["x", "Treatment", "Replicate", "Dead", "Alive"]

# Probability at which the critical dose is defined
CRITICAL_PROBABILITY = 0.99

# Defaults of the benchmark design
DEFAULT_X_VALUES = tuple(float(v) for v in np.arange(0, 28 + 1, 2))
DEFAULT_TREATMENTS = tuple(string.ascii_uppercase[:24])
DEFAULT_N_REPEATS = 3
DEFAULT_INTERCEPTS = tuple(float(v) for v in np.round(-3.0 + 0.15 * np.arange(24), 10))
DEFAULT_SLOPES = tuple(float(v) for v in np.tile(np.round(0.05 * np.arange(1, 7), 10), 4))
DEFAULT_RE_COV = ((0.06, -0.001), (-0.001, 0.0001))
DEFAULT_TRIAL_SIZE = 25


@dataclass(frozen=True)
class TrialDesign:
    """Parameters of the synthetic dose-response trial.

    Attributes:
        x_values: Covariate (dose) grid.
        treatments: Treatment labels, in order.
        n_repeats: Repeats per treatment; each (repeat, treatment) pair is
            one replicate.
        intercepts: Fixed intercept per treatment, aligned with *treatments*.
        slopes: Fixed slope per treatment, aligned with *treatments*.
        re_cov: 2x2 covariance of the (intercept, slope) random effects.
        trial_size: Binomial trial size per row.
    """

    x_values: Tuple[float, ...] = DEFAULT_X_VALUES
    treatments: Tuple[str, ...] = DEFAULT_TREATMENTS
    n_repeats: int = DEFAULT_N_REPEATS
    intercepts: Tuple[float, ...] = DEFAULT_INTERCEPTS
    slopes: Tuple[float, ...] = DEFAULT_SLOPES
    re_cov: Tuple[Tuple[float, float], Tuple[float, float]] = DEFAULT_RE_COV
    trial_size: int = DEFAULT_TRIAL_SIZE

    @property
    def n_treatments(self) -> int:
        return len(self.treatments)

    @property
    def n_replicates(self) -> int:
        return len(self.treatments) * self.n_repeats

    @property
    def n_rows(self) -> int:
        return len(self.x_values) * self.n_replicates

    def validate(self) -> _ValidationResult:
        """Check every parameter; collects all problems before reporting."""
        result = _validate_x_values(self.x_values)
        result = result.merge(_validate_treatments(self.treatments))
        result = result.merge(_validate_positive_int(self.n_repeats, "Repeat count"))
        result = result.merge(_validate_positive_int(self.trial_size, "Trial size"))
        result = result.merge(_validate_parameter_sequence(self.intercepts, len(self.treatments), "Intercepts"))
        result = result.merge(_validate_parameter_sequence(self.slopes, len(self.treatments), "Slopes", positive=True))
        result = result.merge(_validate_covariance_matrix(self.re_cov))
        return result

    def treatment_effects(self) -> Dict[str, Tuple[float, float]]:
        """Mapping of treatment label to its ``(intercept, slope)`` pair."""
        return {t: (float(b0), float(b1)) for t, b0, b1 in zip(self.treatments, self.intercepts, self.slopes)}


@dataclass
class SyntheticTrial:
    """A generated dataset plus the ground truth used to build it.

    Attributes:
        data: One row per (x, treatment, repeat) with columns ``COLUMNS``.
        critical_doses: Treatment label -> true dose at which the success
            probability reaches ``CRITICAL_PROBABILITY``.
        random_effects: Per-replicate draws, indexed by replicate id, with
            columns ``b0`` and ``b1``.
        linear_predictor: Per-row true linear predictor.
        probability: Per-row true success probability.
        design: The design the data was generated from.
        seed: Seed used, when generation was seeded by integer.
    """

    data: pd.DataFrame
    critical_doses: Dict[str, float]
    random_effects: pd.DataFrame
    linear_predictor: np.ndarray
    probability: np.ndarray
    design: TrialDesign
    seed: Optional[int] = None
    metadata: Dict[str, object] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.data)


def critical_dose(beta0, beta1, q: float = CRITICAL_PROBABILITY):
    """Dose at which ``inv_cloglog(beta0 + beta1 * x)`` equals *q*.

    The dose only exists for an increasing curve; a non-positive *beta1*
    gives ``nan``.
    """
    b0 = np.asarray(beta0, dtype=float)
    b1 = np.asarray(beta1, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        dose = (cloglog(q) - b0) / b1
    return np.where(b1 > 0, dose, np.nan)


def intercept_term(treatment: str) -> str:
    """Coefficient name of a treatment intercept (``Treatment/x - 1`` coding)."""
    return f"Treatment{treatment}"


def slope_term(treatment: str) -> str:
    """Coefficient name of a treatment slope (``Treatment/x - 1`` coding)."""
    return f"Treatment{treatment}:x"


def true_coefficients(design: Optional[TrialDesign] = None) -> pd.DataFrame:
    """True fixed effects as a ``(term, kind, treatment, truth)`` table."""
    design = design or TrialDesign()
    rows = []
    for treatment, (b0, b1) in design.treatment_effects().items():
        rows.append({"term": intercept_term(treatment), "kind": "intercept", "treatment": treatment, "truth": b0})
    for treatment, (b0, b1) in design.treatment_effects().items():
        rows.append({"term": slope_term(treatment), "kind": "slope", "treatment": treatment, "truth": b1})
    return pd.DataFrame(rows, columns=["term", "kind", "treatment", "truth"])


def _build_design_frame(design: TrialDesign) -> pd.DataFrame:
    """Full cross of x-values x treatments x repeat-indices (x varies fastest)."""
    x = np.asarray(design.x_values, dtype=float)
    n_x, n_t, n_r = len(x), design.n_treatments, design.n_repeats

    x_col = np.tile(x, n_t * n_r)
    t_idx = np.tile(np.repeat(np.arange(n_t), n_x), n_r)
    r_idx = np.repeat(np.arange(n_r), n_x * n_t)

    # One integer per distinct (repeat, treatment) pair, 1-based
    replicate = r_idx * n_t + t_idx + 1

    treatment = pd.Categorical.from_codes(t_idx, categories=list(design.treatments))
    return pd.DataFrame({"x": x_col, "Treatment": treatment, "Replicate": replicate})


def generate_trial(
    design: Optional[TrialDesign] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> SyntheticTrial:
    """Generate a synthetic cloglog GLMM dataset.

    Algorithm:

    1. Build the full cross of (x, treatment, repeat-index).
    2. Recode each (repeat-index, treatment) pair to a unique replicate id.
    3. Draw one bivariate-normal random effect per replicate and broadcast
       it to the replicate's rows.
    4. ``eta = (beta0_t + b0_r) + (beta1_t + b1_r) * x``.
    5. ``p = inv_cloglog(eta)``.
    6. ``Dead ~ Binomial(trial_size, p)``, ``Alive = trial_size - Dead``.
    7. Per-treatment true critical dose from the fixed effects.

    Args:
        design: Trial parameters (defaults to ``TrialDesign()``).
        seed: Integer seed; used to build a fresh ``numpy.random.Generator``.
        rng: Explicit generator. Mutually exclusive with *seed*.

    Returns:
        ``SyntheticTrial`` with the data table and its ground truth.

    Raises:
        ValueError: If any design parameter is invalid (checked before any
            random draw) or both *seed* and *rng* are given.
    """
    design = design or TrialDesign()
    design.validate().raise_if_invalid()

    if seed is not None and rng is not None:
        raise ValueError("Pass either seed or rng, not both")
    if rng is None:
        if seed is not None:
            _validate_seed(seed).raise_if_invalid()
        rng = np.random.default_rng(seed)

    frame = _build_design_frame(design)

    # Random effects, one row per replicate id 1..n_replicates
    re_cov = np.asarray(design.re_cov, dtype=float)
    draws = rng.multivariate_normal(np.zeros(2), re_cov, size=design.n_replicates)
    replicate_ids = np.arange(1, design.n_replicates + 1)
    random_effects = pd.DataFrame({"b0": draws[:, 0], "b1": draws[:, 1]}, index=pd.Index(replicate_ids, name="Replicate"))

    effects = design.treatment_effects()
    beta0 = pd.Series({t: b0 for t, (b0, _) in effects.items()})
    beta1 = pd.Series({t: b1 for t, (_, b1) in effects.items()})

    treatment_labels = frame["Treatment"].astype(str)
    b0_row = random_effects["b0"].reindex(frame["Replicate"]).to_numpy()
    b1_row = random_effects["b1"].reindex(frame["Replicate"]).to_numpy()
    intercept = treatment_labels.map(beta0).to_numpy(dtype=float) + b0_row
    slope = treatment_labels.map(beta1).to_numpy(dtype=float) + b1_row

    eta = intercept + slope * frame["x"].to_numpy()
    prob = inv_cloglog(eta)

    dead = rng.binomial(design.trial_size, prob).astype(np.int64)
    frame["Dead"] = dead
    frame["Alive"] = design.trial_size - dead

    doses = {t: float(critical_dose(b0, b1)) for t, (b0, b1) in effects.items()}

    return SyntheticTrial(
        data=frame[COLUMNS],
        critical_doses=doses,
        random_effects=random_effects,
        linear_predictor=eta,
        probability=prob,
        design=design,
        seed=seed,
    )


def write_trial_csv(
    trial: SyntheticTrial,
    path: Union[str, Path],
    doses_path: Optional[Union[str, Path]] = None,
) -> Path:
    """Persist the trial table (and optionally its critical doses) as CSV.

    Missing parent directories are created. Both tables are written to
    temporary siblings first and only renamed into place once every write
    succeeded, so a failure leaves neither file behind.
    """
    outputs = {Path(path): trial.data}
    if doses_path is not None:
        outputs[Path(doses_path)] = pd.DataFrame(
            {"Treatment": list(trial.critical_doses), "critical_dose": list(trial.critical_doses.values())}
        )

    for target in outputs:
        if target.is_dir():
            raise IsADirectoryError(f"Output path is a directory: {target}")
        target.parent.mkdir(parents=True, exist_ok=True)

    staged = []
    try:
        for target, table in outputs.items():
            tmp = target.with_name(f".{target.name}.tmp")
            staged.append((tmp, target))
            table.to_csv(tmp, index=False)
        for tmp, target in staged:
            tmp.replace(target)
    finally:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)
    return Path(path)


def read_trial_csv(path: Union[str, Path], treatments: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Load a persisted trial table.

    Args:
        path: CSV written by ``write_trial_csv``.
        treatments: Category order for ``Treatment``. Defaults to the order
            of first appearance.

    Raises:
        ValueError: If a required column is missing.
    """
    data = pd.read_csv(path, dtype={"Treatment": str})
    missing = [c for c in COLUMNS if c not in data.columns]
    if missing:
        raise ValueError(f"Trial table is missing columns: {', '.join(missing)}")
    categories = list(treatments) if treatments is not None else list(pd.unique(data["Treatment"]))
    data["Treatment"] = pd.Categorical(data["Treatment"], categories=categories)
    return data[COLUMNS]


def simulate_to_csv(
    path: Union[str, Path],
    design: Optional[TrialDesign] = None,
    seed: Optional[int] = None,
    doses_path: Optional[Union[str, Path]] = None,
) -> SyntheticTrial:
    """Generate a trial and write it to *path*.

    Parameters are validated before anything is written, so an invalid
    design leaves no file behind.
    """
    trial = generate_trial(design, seed=seed)
    write_trial_csv(trial, path, doses_path=doses_path)
    return trial
