"""Correlation and mean reductions over numeric series columns."""

from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from ltc_report.errors import EmptyColumnError, ValidationError


def _numeric_columns(series: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    columns = list(columns)
    if not columns:
        raise ValidationError("At least one column is required")
    missing = [c for c in columns if c not in series.columns]
    if missing:
        raise ValidationError(f"Unknown columns: {missing}")

    numeric = series[columns].apply(pd.to_numeric, errors="coerce")
    empty: List[str] = [c for c in columns if numeric[c].notna().sum() == 0]
    if empty:
        raise EmptyColumnError(f"Columns with no non-null values: {empty}")
    return numeric


def correlation_matrix(series: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Pearson correlation using pairwise-complete observations.

    A row missing one column of a pair only drops out of that pair. Columns
    with zero variance yield NaN, including on the diagonal.
    """
    numeric = _numeric_columns(series, columns)
    return numeric.corr(method="pearson", min_periods=1)


def column_means(series: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
    """Arithmetic mean of each column, ignoring nulls."""
    numeric = _numeric_columns(series, columns)
    return numeric.mean(skipna=True)


def group_means(series: pd.DataFrame, columns: Sequence[str], by: str = "quarter") -> pd.DataFrame:
    """Column means per calendar group (``quarter`` or ``month``)."""
    if by not in ("quarter", "month"):
        raise ValidationError(f"Cannot group by {by!r}; expected 'quarter' or 'month'")
    if by not in series.columns:
        raise ValidationError(f"Series has no {by!r} column")
    numeric = _numeric_columns(series, columns)
    numeric[by] = series[by].values
    return numeric.groupby(by, sort=True).mean()
