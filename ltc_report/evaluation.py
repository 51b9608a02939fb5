"""Out-of-sample forecast accuracy."""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error

from ltc_report.errors import EmptyColumnError, LengthMismatchError, ValidationError
from ltc_report.logging_setup import get_logger

logger = get_logger()

ArrayLike = Union[pd.DataFrame, pd.Series, np.ndarray, Sequence[float]]


def _values(data: ArrayLike, column: str) -> np.ndarray:
    if isinstance(data, pd.DataFrame):
        if column not in data.columns:
            raise ValidationError(f"Expected a {column!r} column, got {list(data.columns)}")
        data = data[column]
    return np.asarray(data, dtype=float).ravel()


def _acf1(errors: np.ndarray) -> float:
    if len(errors) < 2:
        return float("nan")
    centered = errors - errors.mean()
    denom = float(np.sum(centered ** 2))
    if denom == 0.0:
        return float("nan")
    return float(np.sum(centered[1:] * centered[:-1]) / denom)


def evaluate(
    forecast: ArrayLike,
    actual: ArrayLike,
    training: Optional[ArrayLike] = None,
    column: str = "close",
) -> Dict[str, float]:
    """Compare aligned forecasts with held-out actuals.

    Errors are ``actual - forecast``, so a positive ME or MPE means the model
    underestimated. MAPE and MPE propagate NaN when any actual is zero rather
    than skipping those points.

    Args:
        forecast: Point forecasts; a DataFrame uses its ``mean`` column.
        actual: Held-out values; a DataFrame uses ``column``.
        training: Optional training series, enables MASE.
        column: Column read from DataFrame ``actual``/``training`` inputs.

    Returns:
        dict: ME, RMSE, MAE, MPE, MAPE, ACF1 and, with training, MASE.
    """
    pred = _values(forecast, "mean")
    obs = _values(actual, column)
    if len(pred) != len(obs):
        raise LengthMismatchError(f"Forecast has {len(pred)} points but actual has {len(obs)}")
    if len(obs) == 0:
        raise EmptyColumnError("Cannot evaluate an empty forecast")

    errors = obs - pred
    mae = float(mean_absolute_error(obs, pred))
    rmse = float(np.sqrt(mean_squared_error(obs, pred)))

    zero_actual = obs == 0.0
    if zero_actual.any():
        logger.warning("%d zero actual values; MAPE and MPE are undefined (NaN)", int(zero_actual.sum()))
    safe_obs = np.where(zero_actual, np.nan, obs)
    mape = float(np.mean(np.abs(errors) / np.abs(safe_obs)) * 100.0)
    mpe = float(np.mean(errors / safe_obs) * 100.0)

    report = {
        "ME": float(np.mean(errors)),
        "RMSE": rmse,
        "MAE": mae,
        "MPE": mpe,
        "MAPE": mape,
        "ACF1": _acf1(errors),
    }

    if training is not None:
        train = _values(training, column)
        scale = float(np.mean(np.abs(np.diff(train)))) if len(train) > 1 else float("nan")
        report["MASE"] = mae / scale if scale and np.isfinite(scale) else float("nan")

    logger.info("Accuracy over %d points: MAE=%.6f RMSE=%.6f MAPE=%.4f%% MPE=%.4f%%",
                len(obs), mae, rmse, mape, mpe)
    return report
