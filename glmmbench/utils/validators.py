"""
Validation utilities for GLMMBench.

This module provides validation functions for simulation design parameters,
fit configurations and tabular inputs.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

__all__ = []

# Tolerance for eigenvalue / symmetry checks on covariance matrices
PSD_TOL = 1e-12


@dataclass
class _ValidationResult:
    """Outcome of a validation check, carrying errors and warnings.

    Attributes:
        is_valid: ``True`` if no errors were found.
        errors: List of error messages (empty when valid).
        warnings: List of non-fatal warning messages.
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def raise_if_invalid(self):
        """Raise ``ValueError`` if the validation failed."""
        if not self.is_valid:
            error_msg = "Validation failed:\n" + "\n".join(f"• {err}" for err in self.errors)
            raise ValueError(error_msg)

    def merge(self, other: "_ValidationResult") -> "_ValidationResult":
        """Combine two results into one (errors and warnings concatenated)."""
        errors = self.errors + other.errors
        return _ValidationResult(len(errors) == 0, errors, self.warnings + other.warnings)


class _Validator:
    """Static helpers for type and range checks used by all validators."""

    @staticmethod
    def _check_type(value: Any, expected_types: tuple, name: str) -> Optional[str]:
        """Check if value has expected type."""
        if isinstance(value, bool) or not isinstance(value, expected_types):
            actual_type = type(value).__name__
            expected = expected_types[0].__name__ if len(expected_types) == 1 else f"one of {[t.__name__ for t in expected_types]}"
            return f"{name} must be {expected}, got {actual_type}"
        return None

    @staticmethod
    def _check_range(
        value: Union[int, float],
        min_val: Optional[float],
        max_val: Optional[float],
        name: str,
    ) -> Optional[str]:
        """Check if value is within range."""
        if min_val is not None and value < min_val:
            return f"{name} must be >= {min_val}, got {value}"
        if max_val is not None and value > max_val:
            return f"{name} must be <= {max_val}, got {value}"
        return None


_validator = _Validator()


def _validate_numeric_parameter(
    value: Any,
    name: str,
    expected_types: tuple = (int, float),
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
) -> _ValidationResult:
    """Generic validation for numeric parameters."""
    errors: List[str] = []
    warnings: List[str] = []

    type_error = _validator._check_type(value, expected_types, name)
    if type_error:
        errors.append(type_error)
        return _ValidationResult(False, errors, warnings)

    range_error = _validator._check_range(value, min_val, max_val, name)
    if range_error:
        errors.append(range_error)

    return _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_positive_int(value: Any, name: str) -> _ValidationResult:
    """Validate a strictly positive integer (numpy integers accepted)."""
    return _validate_numeric_parameter(value, name, expected_types=(int, np.integer), min_val=1)


def _validate_seed(seed: Any) -> _ValidationResult:
    """Validate a random seed (non-negative integer)."""
    return _validate_numeric_parameter(seed, "Seed", expected_types=(int, np.integer), min_val=0)


def _validate_covariance_matrix(cov: Any, name: str = "Random-effect covariance", size: int = 2) -> _ValidationResult:
    """Validate a ``size x size`` symmetric positive-semidefinite matrix.

    Checks shape, finiteness, symmetry, non-negative variances on the
    diagonal and non-negative eigenvalues (up to ``PSD_TOL``).
    """
    errors: List[str] = []
    warnings: List[str] = []

    try:
        matrix = np.asarray(cov, dtype=float)
    except (TypeError, ValueError):
        return _ValidationResult(False, [f"{name} must be a numeric matrix"], warnings)

    if matrix.shape != (size, size):
        errors.append(f"{name} must be {size}x{size}, got shape {matrix.shape}")
        return _ValidationResult(False, errors, warnings)

    if not np.all(np.isfinite(matrix)):
        errors.append(f"{name} contains non-finite values")
        return _ValidationResult(False, errors, warnings)

    if not np.allclose(matrix, matrix.T, atol=PSD_TOL):
        errors.append(f"{name} must be symmetric")

    diag = np.diag(matrix)
    for i, variance in enumerate(diag):
        if variance < 0:
            errors.append(f"{name}: variance [{i},{i}] must be non-negative, got {variance}")

    if not errors:
        eigenvalues = np.linalg.eigvalsh(matrix)
        if np.min(eigenvalues) < -PSD_TOL:
            errors.append(f"{name} must be positive semi-definite (min eigenvalue: {np.min(eigenvalues):.3g})")
        elif np.min(eigenvalues) <= PSD_TOL:
            warnings.append(f"{name} is singular; draws are confined to a subspace")

    return _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_parameter_sequence(
    values: Sequence[float], expected_length: int, name: str, positive: bool = False
) -> _ValidationResult:
    """Validate a per-treatment parameter sequence (length, finiteness and, if *positive*, sign)."""
    errors: List[str] = []
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        errors.append(f"{name} must be one-dimensional")
    elif len(arr) != expected_length:
        errors.append(f"{name} has {len(arr)} values but there are {expected_length} treatments")
    elif not np.all(np.isfinite(arr)):
        errors.append(f"{name} contains non-finite values")
    elif positive and np.any(arr <= 0):
        errors.append(f"{name} must be positive, got {arr[arr <= 0].tolist()}")
    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_treatments(treatments: Sequence[str]) -> _ValidationResult:
    """Validate treatment labels (non-empty, unique strings)."""
    errors: List[str] = []
    labels = list(treatments)
    if not labels:
        errors.append("At least one treatment is required")
    elif not all(isinstance(t, str) and t for t in labels):
        errors.append("Treatment labels must be non-empty strings")
    elif len(set(labels)) != len(labels):
        duplicates = sorted({t for t in labels if labels.count(t) > 1})
        errors.append(f"Duplicate treatment labels: {', '.join(duplicates)}")
    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_x_values(x_values: Sequence[float]) -> _ValidationResult:
    """Validate the covariate grid."""
    errors: List[str] = []
    arr = np.asarray(x_values, dtype=float)
    if arr.ndim != 1 or len(arr) == 0:
        errors.append("Covariate grid must be a non-empty one-dimensional sequence")
    elif not np.all(np.isfinite(arr)):
        errors.append("Covariate grid contains non-finite values")
    elif len(np.unique(arr)) != len(arr):
        errors.append("Covariate grid values must be distinct")
    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_parallel_settings(enable: Any, n_cores: Optional[int]) -> Tuple[Tuple[bool, int], _ValidationResult]:
    """Validate parallel processing settings."""
    import multiprocessing as mp

    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(enable, bool):
        errors.append(f"parallel must be True or False, got {enable!r}")
        return (False, 1), _ValidationResult(False, errors, warnings)

    max_cores = mp.cpu_count() or 1
    if n_cores is None:
        n_cores = max(1, max_cores // 2)
    elif not isinstance(n_cores, int) or isinstance(n_cores, bool) or n_cores < 1:
        errors.append(f"n_cores must be a positive integer, got {n_cores!r}")
        return (False, 1), _ValidationResult(False, errors, warnings)
    elif n_cores > max_cores:
        warnings.append(f"n_cores={n_cores} exceeds available cores ({max_cores}); using {max_cores}")
        n_cores = max_cores

    return (enable, n_cores), _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_confidence_level(level: Any) -> _ValidationResult:
    """Validate a confidence level in (0, 1)."""
    result = _validate_numeric_parameter(level, "Confidence level")
    if result.is_valid and not 0 < level < 1:
        return _ValidationResult(False, [f"Confidence level must be in (0, 1), got {level}"], [])
    return result
