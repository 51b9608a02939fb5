"""Raw row normalization into a typed, calendar-enriched market series."""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np
import pandas as pd
import pytz
from pandas.errors import OutOfBoundsDatetime

from ltc_report.errors import ParseError, ValidationError
from ltc_report.logging_setup import get_logger

logger = get_logger()

SOURCE_COLUMNS = {
    "Unix Timestamp": "timestamp",
    "Date": "trading_day",
    "Symbol": "symbol",
    "Open": "open",
    "High": "high",
    "Low": "low",
    "Close": "close",
    "Volume": "volume",
}
PRICE_COLUMNS = ["open", "high", "low", "close"]
OHLCV_COLUMNS = PRICE_COLUMNS + ["volume"]
SERIES_COLUMNS = [
    "timestamp",
    "trading_day",
    "symbol",
    "open",
    "high",
    "low",
    "close",
    "volume",
    "month",
    "month_label",
    "quarter",
]

# Fixed calendar month blocks; not a fiscal or library quarter.
MONTH_TO_QUARTER = {
    1: "Q1", 2: "Q1", 3: "Q1",
    4: "Q2", 5: "Q2", 6: "Q2",
    7: "Q3", 8: "Q3", 9: "Q3",
    10: "Q4", 11: "Q4", 12: "Q4",
}
MONTH_LABELS = {
    1: "Jan", 2: "Feb", 3: "Mar", 4: "Apr", 5: "May", 6: "Jun",
    7: "Jul", 8: "Aug", 9: "Sep", 10: "Oct", 11: "Nov", 12: "Dec",
}

MAX_ROWS_IN_MESSAGE = 5
EPOCH_NANOS_MAX = np.iinfo("int64").max


def _row_list(index: Iterable) -> str:
    rows = list(index)
    shown = ", ".join(str(r) for r in rows[:MAX_ROWS_IN_MESSAGE])
    if len(rows) > MAX_ROWS_IN_MESSAGE:
        shown += f", ... ({len(rows)} rows)"
    return shown


def parse_epoch(values: pd.Series) -> pd.Series:
    """Parse epoch stamps into UTC-aware pandas timestamps.

    Seconds are the native unit; values large enough to be milliseconds,
    microseconds or nanoseconds are scaled per value, since exchange exports
    switch precision partway through a file.
    """
    raw = pd.Series(values)
    numeric = pd.to_numeric(raw, errors="coerce")
    as_float = numeric.astype(float)
    bad = ~np.isfinite(as_float) | (as_float.abs() >= 2.0**63)
    if bad.any():
        first = bad[bad].index[0]
        raise ParseError(
            f"Unparseable Unix Timestamp {raw.loc[first]!r} at rows {_row_list(bad[bad].index)}"
        )

    ints = numeric.round().astype("int64")
    magnitude = ints.abs()
    to_nanos = np.select(
        [magnitude >= 10**17, magnitude >= 10**14, magnitude >= 10**11],
        [1, 1_000, 1_000_000],
        default=1_000_000_000,
    )
    # Scaled values must stay inside the int64 nanosecond range.
    out_of_range = magnitude > (EPOCH_NANOS_MAX // to_nanos)
    if out_of_range.any():
        first = out_of_range[out_of_range].index[0]
        raise ParseError(
            f"Unix Timestamp {raw.loc[first]!r} is outside the representable range "
            f"at rows {_row_list(out_of_range[out_of_range].index)}"
        )

    try:
        parsed = pd.to_datetime(ints * to_nanos, unit="ns")
    except (OutOfBoundsDatetime, OverflowError) as exc:
        raise ParseError(f"Unix Timestamp out of range: {exc}") from exc
    return parsed.dt.tz_localize(pytz.UTC)


def parse_trading_day(values: pd.Series, date_format: str) -> pd.Series:
    """Parse civil date-times with an explicit format; never coerce silently."""
    raw = pd.Series(values).astype(str).str.strip()
    parsed = pd.to_datetime(raw, format=date_format, errors="coerce")
    bad = parsed.isna()
    if bad.any():
        first = bad[bad].index[0]
        raise ParseError(
            f"Date {raw.loc[first]!r} does not match format {date_format!r} "
            f"(rows {_row_list(bad[bad].index)})"
        )
    return parsed


def quarter_of_month(month: int) -> str:
    """Map a 1-12 month to its fixed calendar block Q1..Q4."""
    try:
        return MONTH_TO_QUARTER[int(month)]
    except (KeyError, TypeError, ValueError):
        raise ValidationError(f"Month out of range: {month!r}")


class RecordNormalizer:
    """Turn raw source rows into a typed market series."""

    def __init__(self, config: Optional[dict] = None):
        data_cfg = (config or {}).get("data", {})
        self.date_format = str(data_cfg.get("date_format", "%m/%d/%Y %H:%M"))
        self.symbols: List[str] = [str(s) for s in data_cfg.get("symbols", ["LTC/USD"])]
        self.validate_price_bounds = bool(data_cfg.get("validate_price_bounds", False))

    def normalize(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Parse, validate and enrich raw rows.

        Args:
            raw: DataFrame with the source columns (``Unix Timestamp``, ``Date``,
                ``Symbol``, ``Open``, ``High``, ``Low``, ``Close``, ``Volume``)

        Returns:
            New DataFrame in input order with typed columns plus ``month``,
            ``month_label`` and ``quarter``.

        Raises:
            ParseError: Malformed epoch or date field.
            ValidationError: Missing column, null required field, negative
                OHLCV value or symbol outside the configured domain.
        """
        missing = [c for c in SOURCE_COLUMNS if c not in raw.columns]
        if missing:
            raise ValidationError(f"Missing required columns: {missing}")

        df = raw[list(SOURCE_COLUMNS)].rename(columns=SOURCE_COLUMNS).copy()

        null_rows = df.isna().any(axis=1)
        if null_rows.any():
            null_cols = [c for c in df.columns if df[c].isna().any()]
            raise ValidationError(
                f"Null values in required fields {null_cols} at rows {_row_list(null_rows[null_rows].index)}"
            )

        df["timestamp"] = parse_epoch(df["timestamp"])
        df["trading_day"] = parse_trading_day(df["trading_day"], self.date_format)
        df["symbol"] = self._cast_symbol(df["symbol"])

        for col in OHLCV_COLUMNS:
            values = pd.to_numeric(df[col], errors="coerce")
            bad = values.isna()
            if bad.any():
                raise ValidationError(f"Non-numeric {col} at rows {_row_list(bad[bad].index)}")
            negative = values < 0
            if negative.any():
                raise ValidationError(f"Negative {col} at rows {_row_list(negative[negative].index)}")
            df[col] = values.astype(float)

        self._check_price_bounds(df)

        df["month"] = df["trading_day"].dt.month.astype(int)
        df["month_label"] = df["month"].map(MONTH_LABELS)
        df["quarter"] = df["month"].map(quarter_of_month)

        logger.info("Normalized %d rows (%s to %s)", len(df),
                    df["trading_day"].min() if len(df) else None,
                    df["trading_day"].max() if len(df) else None)
        return df[SERIES_COLUMNS]

    def _cast_symbol(self, values: pd.Series) -> pd.Series:
        symbols = values.astype(str).str.strip()
        outside = ~symbols.isin(self.symbols)
        if outside.any():
            unknown = sorted(symbols[outside].unique().tolist())
            raise ValidationError(
                f"Symbol(s) {unknown} outside allowed domain {self.symbols} at rows {_row_list(outside[outside].index)}"
            )
        return pd.Series(pd.Categorical(symbols, categories=self.symbols), index=values.index)

    def _check_price_bounds(self, df: pd.DataFrame) -> None:
        high_ok = df["high"] >= df[["open", "close", "low"]].max(axis=1)
        low_ok = df["low"] <= df[["open", "close", "high"]].min(axis=1)
        violations = ~(high_ok & low_ok)
        if not violations.any():
            return
        if self.validate_price_bounds:
            raise ValidationError(
                f"High/low bounds violated at rows {_row_list(violations[violations].index)}"
            )
        logger.warning("%d rows violate high/low bounds; passing through unchanged", int(violations.sum()))


def sort_series(series: pd.DataFrame) -> pd.DataFrame:
    """Return a chronologically sorted copy; timestamps must be unique."""
    dupes = series["timestamp"].duplicated(keep=False)
    if dupes.any():
        raise ValidationError(f"Duplicate timestamps at rows {_row_list(dupes[dupes].index)}")
    return series.sort_values("timestamp", kind="mergesort").reset_index(drop=True)
