"""
Loading coefficient tables produced outside GLMMBench.

The reference fit from another numerical environment is exchanged as a CSV
with three columns: variable name, point estimate, standard error. Header
names vary between tools, so columns are matched by known aliases and fall
back to position.
"""

from pathlib import Path
from typing import Union

import pandas as pd

__all__ = []

_ALIASES = {
    "term": ("term", "variable", "var", "name", "parameter", "coefficient", ""),
    "estimate": ("estimate", "est", "coef", "value", "mean"),
    "std_error": ("std_error", "std.error", "std. error", "stderr", "se", "sd", "standard error"),
}


def _normalize(name: str) -> str:
    return str(name).strip().lower().replace("unnamed: 0", "")


def _match_columns(columns) -> dict:
    """Map each tidy column to a source column (by alias, else by position)."""
    normalized = {_normalize(c): c for c in columns}
    mapping = {}
    for target, aliases in _ALIASES.items():
        for alias in aliases:
            if alias in normalized and normalized[alias] not in mapping.values():
                mapping[target] = normalized[alias]
                break
    if len(mapping) < 3:
        if len(columns) < 3:
            raise ValueError(f"External coefficient table needs 3 columns (variable, estimate, std error), got {len(columns)}")
        mapping = dict(zip(["term", "estimate", "std_error"], list(columns)[:3]))
    return mapping


def load_external_coefficients(source: Union[str, Path, pd.DataFrame], model: str) -> pd.DataFrame:
    """Read an external coefficient table into tidy form.

    Args:
        source: CSV path or an already loaded DataFrame.
        model: Model label to attach.

    Returns:
        ``(model, term, estimate, std_error)`` table.

    Raises:
        ValueError: If the table has fewer than three columns or
            non-numeric estimates.
    """
    table = source.copy() if isinstance(source, pd.DataFrame) else pd.read_csv(source)
    mapping = _match_columns(table.columns)

    tidy = pd.DataFrame(
        {
            "model": model,
            "term": table[mapping["term"]].astype(str).str.strip(),
            "estimate": pd.to_numeric(table[mapping["estimate"]], errors="coerce"),
            "std_error": pd.to_numeric(table[mapping["std_error"]], errors="coerce"),
        }
    )
    if tidy["estimate"].isna().any():
        bad = tidy.loc[tidy["estimate"].isna(), "term"].tolist()
        raise ValueError(f"Non-numeric estimates for: {', '.join(bad)}")
    return tidy.reset_index(drop=True)
