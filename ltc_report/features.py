"""Derived per-row metrics over a sorted market series."""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from ltc_report.logging_setup import get_logger

logger = get_logger()


class DerivedMetricEngine:
    """Compute daily return and trailing volatility columns.

    Both metrics are positional: the series must already be sorted by
    timestamp and is not re-sorted here.
    """

    def __init__(self, config: Optional[dict] = None):
        metrics_cfg = (config or {}).get("metrics", {})
        self.volatility_window = int(metrics_cfg.get("volatility_window", 7))

    def compute_daily_return(self, series: pd.DataFrame) -> pd.DataFrame:
        """Percentage change of close against the previous row; NaN on the first row."""
        df = series.copy()
        close = df["close"].astype(float)
        df["daily_return"] = (close / close.shift(1) - 1.0) * 100.0
        return df

    def compute_volatility(self, series: pd.DataFrame, window: Optional[int] = None) -> pd.DataFrame:
        """Right-aligned sample std of close over ``window`` consecutive rows.

        The window ends at and includes the current row, spans rows rather than
        elapsed time, and stays NaN until it is filled.
        """
        window = self.volatility_window if window is None else int(window)
        if window < 2:
            raise ValueError(f"Volatility window must be at least 2 rows, got {window}")

        df = series.copy()
        df["volatility"] = df["close"].astype(float).rolling(window=window, min_periods=window).std(ddof=1)
        return df

    def compute(self, series: pd.DataFrame) -> pd.DataFrame:
        """Add ``daily_return`` and ``volatility`` to a copy of the series."""
        if series is None or series.empty:
            out = series.copy() if series is not None else pd.DataFrame()
            out["daily_return"] = pd.Series(dtype=float)
            out["volatility"] = pd.Series(dtype=float)
            return out

        df = self.compute_daily_return(series)
        df = self.compute_volatility(df)
        logger.info(
            "Derived metrics: %d rows, volatility window=%d, mean |return|=%.6f%%",
            len(df),
            self.volatility_window,
            float(np.nanmean(np.abs(df["daily_return"].values))) if len(df) > 1 else 0.0,
        )
        return df
