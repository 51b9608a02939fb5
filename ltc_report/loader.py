"""Flat-file loading of raw minute bars."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

from ltc_report.logging_setup import get_logger

logger = get_logger()


def load_raw(path: Union[str, Path], skip_rows: int = 0) -> pd.DataFrame:
    """Read the raw bar table; the header row is required.

    Args:
        path: CSV file path
        skip_rows: Leading lines to skip before the header (exchange exports
            often start with a source URL line)
    """
    csv_path = Path(path)
    df = pd.read_csv(
        csv_path,
        skiprows=int(skip_rows),
        dtype={"Date": str, "Symbol": str},
        skipinitialspace=True,
    )
    df.columns = [str(c).strip() for c in df.columns]
    logger.info("Loaded %d raw rows from %s", len(df), csv_path)
    return df
