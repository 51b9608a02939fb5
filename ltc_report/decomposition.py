"""Additive seasonal decomposition of the training close series."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import seasonal_decompose

from ltc_report.errors import InsufficientPeriodsError, ValidationError
from ltc_report.logging_setup import get_logger

logger = get_logger()


@dataclass(frozen=True)
class DecompositionResult:
    """Aligned additive components; trend and residual are NaN at the edges."""

    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    residual: pd.Series
    period: int

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "observed": self.observed,
                "trend": self.trend,
                "seasonal": self.seasonal,
                "residual": self.residual,
            }
        )

    def seasonal_strength(self) -> float:
        """1 - Var(residual) / Var(seasonal + residual), clipped at 0."""
        mask = self.residual.notna()
        resid = self.residual[mask].values
        detrended = resid + self.seasonal[mask].values
        denom = float(np.var(detrended))
        if denom <= 0.0:
            return 0.0
        return float(max(0.0, 1.0 - np.var(resid) / denom))


class SeasonalDecomposer:
    """Moving-average decomposition with a fixed observation-count period."""

    def __init__(self, config: Optional[dict] = None):
        decomp_cfg = (config or {}).get("decomposition", {})
        self.period = int(decomp_cfg.get("period", 1440))
        self.column = str(decomp_cfg.get("column", "close"))

    def decompose(self, training: Union[pd.DataFrame, pd.Series], period: Optional[int] = None) -> DecompositionResult:
        """Split the series into trend, seasonal and residual parts.

        The input is treated as equally spaced; one seasonal cycle is
        ``period`` observations (1440 for a day of minute bars).

        Raises:
            InsufficientPeriodsError: fewer than two full periods of data.
        """
        period = self.period if period is None else int(period)
        if period < 2:
            raise ValueError(f"Seasonal period must be at least 2, got {period}")

        if isinstance(training, pd.DataFrame):
            if self.column not in training.columns:
                raise ValidationError(f"Training series has no {self.column!r} column")
            values = training[self.column]
        else:
            values = training
        values = pd.Series(np.asarray(values, dtype=float)).reset_index(drop=True)

        if len(values) < 2 * period:
            raise InsufficientPeriodsError(
                f"Decomposition needs at least {2 * period} observations (2 periods of {period}), got {len(values)}"
            )
        if values.isna().any():
            raise ValidationError("Decomposition input contains missing values")

        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            result = seasonal_decompose(values, model="additive", period=period, two_sided=True)

        logger.info("Decomposed %d observations with period %d", len(values), period)
        return DecompositionResult(
            observed=pd.Series(np.asarray(result.observed, dtype=float), name="observed"),
            trend=pd.Series(np.asarray(result.trend, dtype=float), name="trend"),
            seasonal=pd.Series(np.asarray(result.seasonal, dtype=float), name="seasonal"),
            residual=pd.Series(np.asarray(result.resid, dtype=float), name="residual"),
            period=period,
        )
