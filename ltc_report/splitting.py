"""Chronological train/test partitioning."""

from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd

from ltc_report.errors import InsufficientDataError


@dataclass(frozen=True)
class SplitResult:
    """Training prefix and testing suffix of one series."""

    training: pd.DataFrame
    testing: pd.DataFrame

    @property
    def train_size(self) -> int:
        return len(self.training)

    @property
    def test_size(self) -> int:
        return len(self.testing)


def split(series: pd.DataFrame, train_fraction: float = 0.8) -> SplitResult:
    """Split by row position: the first ``floor(fraction * n)`` rows train.

    The series is taken as already sorted; this is not a date split.
    """
    train_fraction = float(train_fraction)
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    n = 0 if series is None else len(series)
    if n < 2:
        raise InsufficientDataError(f"Cannot split a series of {n} rows")

    train_size = int(math.floor(train_fraction * n))
    if train_size == 0 or train_size == n:
        raise InsufficientDataError(
            f"Split of {n} rows at fraction {train_fraction} leaves an empty partition"
        )

    training = series.iloc[:train_size].reset_index(drop=True)
    testing = series.iloc[train_size:].reset_index(drop=True)
    return SplitResult(training=training, testing=testing)
