"""Calendar-period OHLCV resampling and dashboard-facing filters."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

import pandas as pd

from ltc_report.errors import InvalidGranularity, ValidationError
from ltc_report.logging_setup import get_logger

logger = get_logger()

BUCKET_COLUMNS = ["period_start", "open", "high", "low", "close", "volume", "count"]


class Granularity(Enum):
    """Closed set of resampling modes."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    @classmethod
    def parse(cls, value: Union["Granularity", str]) -> "Granularity":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        raise InvalidGranularity(
            f"Unknown granularity {value!r}; expected one of {[m.value for m in cls]}"
        )


def bucket_keys(trading_day: pd.Series, granularity: Granularity, week_start: int = 6) -> pd.Series:
    """Floor each civil date-time to the start of its bucket."""
    if granularity is Granularity.NONE:
        return trading_day

    day = trading_day.dt.normalize()
    if granularity is Granularity.DAILY:
        return day
    if granularity is Granularity.WEEKLY:
        offset = (day.dt.dayofweek - int(week_start)) % 7
        return day - pd.to_timedelta(offset, unit="D")
    if granularity is Granularity.MONTHLY:
        return day - pd.to_timedelta(day.dt.day - 1, unit="D")

    # Quarterly: first month of the fixed Jan/Apr/Jul/Oct block
    first_month = ((day.dt.month - 1) // 3) * 3 + 1
    return pd.to_datetime(
        pd.DataFrame({"year": day.dt.year, "month": first_month, "day": 1}),
    )


class PeriodResampler:
    """Aggregate a market series into fixed calendar buckets."""

    def __init__(self, config: Optional[dict] = None):
        resample_cfg = (config or {}).get("resample", {})
        self.week_start = int(resample_cfg.get("week_start", 6)) % 7

    def resample(self, series: pd.DataFrame, granularity: Union[Granularity, str]) -> pd.DataFrame:
        """Resample OHLCV rows into ascending, non-empty buckets.

        Within each bucket rows are taken in timestamp order: open is the first
        row's open, close the last row's close, high/low are extremes and
        volume is summed.
        """
        granularity = Granularity.parse(granularity)
        if series is None or series.empty:
            return pd.DataFrame(columns=BUCKET_COLUMNS)

        df = series.sort_values("timestamp", kind="mergesort").reset_index(drop=True)

        if granularity is Granularity.NONE:
            out = df[["trading_day", "open", "high", "low", "close", "volume"]].rename(
                columns={"trading_day": "period_start"}
            )
            out["count"] = 1
            return out[BUCKET_COLUMNS]

        df["period_start"] = bucket_keys(df["trading_day"], granularity, week_start=self.week_start)
        out = (
            df.groupby("period_start", sort=True)
            .agg(
                open=("open", "first"),
                high=("high", "max"),
                low=("low", "min"),
                close=("close", "last"),
                volume=("volume", "sum"),
                count=("close", "size"),
            )
            .reset_index()
        )
        logger.info("Resampled %d rows into %d %s buckets", len(df), len(out), granularity.value)
        return out[BUCKET_COLUMNS]

    def comparison_series(
        self,
        series: pd.DataFrame,
        column: str,
        granularity: Union[Granularity, str] = Granularity.NONE,
    ) -> pd.Series:
        """One resampled column indexed by ``period_start``, for a user-picked comparison."""
        if column not in ("open", "high", "low", "close", "volume", "count"):
            raise ValidationError(f"Unknown comparison column {column!r}")
        buckets = self.resample(series, granularity)
        return buckets.set_index("period_start")[column].rename(column)


def _as_bound(value, end: bool) -> Optional[pd.Timestamp]:
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        ts = pd.Timestamp(value)
        return ts + pd.Timedelta(days=1) - pd.Timedelta(1, unit="ns") if end else ts
    return pd.Timestamp(value)


def filter_date_range(series: pd.DataFrame, start=None, end=None) -> pd.DataFrame:
    """Rows whose ``trading_day`` lies within inclusive bounds.

    A plain ``date`` bound covers that whole day; datetimes and strings are
    compared exactly.
    """
    lo = _as_bound(start, end=False)
    hi = _as_bound(end, end=True)
    if lo is not None and hi is not None and lo > hi:
        raise ValidationError(f"Start bound {start!r} is after end bound {end!r}")

    mask = pd.Series(True, index=series.index)
    if lo is not None:
        mask &= series["trading_day"] >= lo
    if hi is not None:
        mask &= series["trading_day"] <= hi
    return series.loc[mask].reset_index(drop=True)
