"""Automatic seasonal ARIMA order selection, fitting and forecasting."""

from __future__ import annotations

import itertools
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.seasonal import STL
from statsmodels.tsa.stattools import kpss

from ltc_report.errors import InsufficientDataError, ValidationError
from ltc_report.logging_setup import get_logger

logger = get_logger()

# Roots this close to the unit circle count as non-stationary/non-invertible
MIN_ROOT_MODULUS = 1.001
SUPPORTED_CRITERIA = ("aic", "aicc", "bic")

# (p, q, P, Q, with_constant)
Candidate = Tuple[int, int, int, int, bool]


@dataclass
class FittedArima:
    """Handle around one fitted statsmodels ARIMA result; forecasts may be drawn repeatedly."""

    result: Any
    order: Tuple[int, int, int]
    seasonal_order: Tuple[int, int, int, int]
    with_constant: bool
    criterion: str
    criterion_value: float
    n_obs: int
    interval_levels: List[int] = field(default_factory=lambda: [80, 95])
    candidates: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def label(self) -> str:
        p, d, q = self.order
        P, D, Q, m = self.seasonal_order
        text = f"ARIMA({p},{d},{q})"
        if m > 1:
            text += f"({P},{D},{Q})[{m}]"
        if self.with_constant:
            text += " with " + ("drift" if d + D == 1 else "mean")
        return text

    def forecast(self, horizon: int) -> pd.DataFrame:
        """Point forecasts plus interval bounds for ``horizon`` steps."""
        horizon = int(horizon)
        if horizon < 1:
            raise ValueError(f"Forecast horizon must be at least 1, got {horizon}")

        pred = self.result.get_forecast(steps=horizon)
        out = pd.DataFrame({"step": np.arange(1, horizon + 1)})
        out["mean"] = np.asarray(pred.predicted_mean, dtype=float)
        for level in self.interval_levels:
            bounds = np.asarray(pred.conf_int(alpha=1.0 - float(level) / 100.0), dtype=float)
            out[f"lower_{level}"] = bounds[:, 0]
            out[f"upper_{level}"] = bounds[:, 1]
        return out

    def summary(self) -> Dict[str, Any]:
        return {
            "model": self.label,
            "order": list(self.order),
            "seasonal_order": list(self.seasonal_order),
            "with_constant": self.with_constant,
            "criterion": self.criterion,
            "criterion_value": float(self.criterion_value),
            "n_obs": int(self.n_obs),
            "candidates_tried": len(self.candidates),
        }


class AutoArima:
    """Stepwise (Hyndman-Khandakar style) search minimising an information criterion."""

    def __init__(self, config: Optional[dict] = None):
        forecast_cfg = (config or {}).get("forecast", {})
        self.column = str(forecast_cfg.get("column", "close"))
        self.seasonal_period = int(forecast_cfg.get("seasonal_period", 1440))
        self.max_seasonal_period = int(forecast_cfg.get("max_seasonal_period", 24))
        self.criterion = str(forecast_cfg.get("information_criterion", "aic")).lower()
        if self.criterion not in SUPPORTED_CRITERIA:
            raise ValueError(f"information_criterion must be one of {SUPPORTED_CRITERIA}")
        self.stepwise = bool(forecast_cfg.get("stepwise", True))
        self.max_p = int(forecast_cfg.get("max_p", 5))
        self.max_q = int(forecast_cfg.get("max_q", 5))
        self.max_P = int(forecast_cfg.get("max_P", 2))
        self.max_Q = int(forecast_cfg.get("max_Q", 2))
        self.max_d = int(forecast_cfg.get("max_d", 2))
        self.max_D = int(forecast_cfg.get("max_D", 1))
        self.max_order = int(forecast_cfg.get("max_order", 5))
        self.max_fits = int(forecast_cfg.get("max_fits", 94))
        self.min_observations = int(forecast_cfg.get("min_observations", 10))
        self.interval_levels = [int(v) for v in forecast_cfg.get("interval_levels", [80, 95])]
        self.unit_root_alpha = float(forecast_cfg.get("unit_root_alpha", 0.05))
        self.seasonal_strength_threshold = float(forecast_cfg.get("seasonal_strength_threshold", 0.64))

    def select_and_fit(self, training: Union[pd.DataFrame, pd.Series, Sequence[float]]) -> FittedArima:
        """Choose orders on the training series and return the best fitted model.

        Raises:
            InsufficientDataError: too few observations for the minimal model,
                or no candidate produced an admissible fit.
        """
        y = self._as_array(training)
        n = len(y)
        if n < self.min_observations:
            raise InsufficientDataError(
                f"Model fit needs at least {self.min_observations} observations, got {n}"
            )

        m = self._effective_period(n)
        D = self._seasonal_diffs(y, m) if m > 1 else 0
        seasonally_differenced = y[m * D:] - y[:-m * D] if D else y
        d = self._ndiffs(seasonally_differenced)

        if n - d - m * D < self.min_observations:
            raise InsufficientDataError(
                f"{n} observations leave fewer than {self.min_observations} after differencing (d={d}, D={D}, m={m})"
            )

        logger.info("Order search on %d observations: d=%d D=%d m=%d criterion=%s stepwise=%s",
                    n, d, D, m, self.criterion, self.stepwise)

        tried: Dict[Candidate, Optional[Tuple[float, Any]]] = {}
        if self.stepwise:
            best = self._stepwise_search(y, d, D, m, tried)
        else:
            best = self._exhaustive_search(y, d, D, m, tried)

        if best is None:
            raise InsufficientDataError(
                f"No stationary/invertible ARIMA model could be fitted to {n} observations"
            )

        (p, q, P, Q, constant), (ic_value, result) = best
        candidates = [
            {
                "order": [c[0], d, c[1]],
                "seasonal_order": [c[2], D, c[3], m if m > 1 else 0],
                "with_constant": c[4],
                self.criterion: None if fit is None else float(fit[0]),
            }
            for c, fit in tried.items()
        ]
        model = FittedArima(
            result=result,
            order=(p, d, q),
            seasonal_order=(P, D, Q, m if m > 1 else 0),
            with_constant=constant,
            criterion=self.criterion,
            criterion_value=ic_value,
            n_obs=n,
            interval_levels=list(self.interval_levels),
            candidates=candidates,
        )
        logger.info("Selected %s with %s=%.3f after %d fits",
                    model.label, self.criterion.upper(), ic_value, len(tried))
        return model

    def _as_array(self, training) -> np.ndarray:
        if isinstance(training, pd.DataFrame):
            if self.column not in training.columns:
                raise ValidationError(f"Training series has no {self.column!r} column")
            training = training[self.column]
        y = np.asarray(training, dtype=float)
        if y.ndim != 1:
            raise ValidationError("Forecasting requires a univariate series")
        if not np.isfinite(y).all():
            raise ValidationError("Training series contains missing or infinite values")
        return y

    def _effective_period(self, n: int) -> int:
        m = self.seasonal_period
        if m <= 1:
            return 1
        if m > self.max_seasonal_period:
            logger.info("Seasonal period %d exceeds max_seasonal_period %d; searching non-seasonal orders",
                        m, self.max_seasonal_period)
            return 1
        if n < 2 * m:
            logger.info("Only %d observations for seasonal period %d; searching non-seasonal orders", n, m)
            return 1
        return m

    def _ndiffs(self, y: np.ndarray) -> int:
        """Difference until KPSS no longer rejects level stationarity."""
        d = 0
        current = y
        while d < self.max_d:
            if len(current) < 3 or np.ptp(current) == 0:
                break
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                p_value = kpss(current, regression="c", nlags="auto")[1]
            if p_value >= self.unit_root_alpha:
                break
            current = np.diff(current)
            d += 1
        return d

    def _seasonal_diffs(self, y: np.ndarray, m: int) -> int:
        """Seasonal difference while STL seasonal strength exceeds the threshold."""
        D = 0
        current = y
        while D < self.max_D and len(current) >= 2 * m:
            if np.ptp(current) == 0:
                break
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                fit = STL(current, period=m, robust=False).fit()
            resid = np.asarray(fit.resid)
            denom = np.var(resid + np.asarray(fit.seasonal))
            strength = 0.0 if denom <= 0 else max(0.0, 1.0 - np.var(resid) / denom)
            if strength <= self.seasonal_strength_threshold:
                break
            current = current[m:] - current[:-m]
            D += 1
        return D

    def _allowed(self, cand: Candidate, d: int, D: int, m: int) -> bool:
        p, q, P, Q, constant = cand
        if min(p, q, P, Q) < 0:
            return False
        if p > self.max_p or q > self.max_q:
            return False
        if m <= 1 and (P or Q):
            return False
        if P > self.max_P or Q > self.max_Q:
            return False
        if p + q + P + Q > self.max_order:
            return False
        if constant and d + D > 1:
            return False
        return True

    def _fit(self, y: np.ndarray, cand: Candidate, d: int, D: int, m: int) -> Optional[Tuple[float, Any]]:
        p, q, P, Q, constant = cand
        if constant:
            trend = "c" if d + D == 0 else "t"
        else:
            trend = "n"
        seasonal_order = (P, D, Q, m) if m > 1 else (0, 0, 0, 0)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                model = ARIMA(
                    y,
                    order=(p, d, q),
                    seasonal_order=seasonal_order,
                    trend=trend,
                    enforce_stationarity=True,
                    enforce_invertibility=True,
                )
                result = model.fit()
        except (ValueError, np.linalg.LinAlgError) as exc:
            logger.debug("Failed to fit ARIMA(%d,%d,%d)(%d,%d,%d)[%d]: %s", p, d, q, P, D, Q, m, exc)
            return None

        ic_value = float(getattr(result, self.criterion))
        if not np.isfinite(ic_value):
            return None
        for roots in (result.arroots, result.maroots):
            roots = np.asarray(roots)
            if roots.size and np.min(np.abs(roots)) < MIN_ROOT_MODULUS:
                logger.debug("Rejected ARIMA(%d,%d,%d)(%d,%d,%d)[%d]: root inside unit circle",
                             p, d, q, P, D, Q, m)
                return None
        return ic_value, result

    def _try(self, y, cand, d, D, m, tried) -> Optional[Tuple[float, Any]]:
        if cand in tried:
            return tried[cand]
        fit = self._fit(y, cand, d, D, m)
        tried[cand] = fit
        return fit

    def _stepwise_search(self, y, d, D, m, tried):
        seasonal = m > 1
        constant = d + D <= 1
        start = [
            (min(2, self.max_p), min(2, self.max_q), min(1, self.max_P) if seasonal else 0,
             min(1, self.max_Q) if seasonal else 0, constant),
            (0, 0, 0, 0, constant),
            (1, 0, 1 if seasonal else 0, 0, constant),
            (0, 1, 0, 1 if seasonal else 0, constant),
        ]
        if constant:
            start.append((0, 0, 0, 0, False))

        best = None
        for cand in start:
            if not self._allowed(cand, d, D, m):
                continue
            fit = self._try(y, cand, d, D, m, tried)
            if fit is not None and (best is None or fit[0] < best[1][0]):
                best = (cand, fit)

        if best is None:
            return None

        improved = True
        while improved and len(tried) < self.max_fits:
            improved = False
            for cand in self._neighbours(best[0]):
                if len(tried) >= self.max_fits:
                    break
                if cand in tried or not self._allowed(cand, d, D, m):
                    continue
                fit = self._try(y, cand, d, D, m, tried)
                if fit is not None and fit[0] < best[1][0]:
                    best = (cand, fit)
                    improved = True
                    break
        return best

    @staticmethod
    def _neighbours(cand: Candidate) -> List[Candidate]:
        p, q, P, Q, constant = cand
        moves = [
            (-1, 0, 0, 0), (1, 0, 0, 0), (0, -1, 0, 0), (0, 1, 0, 0),
            (-1, -1, 0, 0), (1, 1, 0, 0),
            (0, 0, -1, 0), (0, 0, 1, 0), (0, 0, 0, -1), (0, 0, 0, 1),
            (0, 0, -1, -1), (0, 0, 1, 1),
        ]
        out = [(p + dp, q + dq, P + dP, Q + dQ, constant) for dp, dq, dP, dQ in moves]
        out.append((p, q, P, Q, not constant))
        return out

    def _exhaustive_search(self, y, d, D, m, tried):
        seasonal_P = range(self.max_P + 1) if m > 1 else [0]
        seasonal_Q = range(self.max_Q + 1) if m > 1 else [0]
        constants = [True, False] if d + D <= 1 else [False]
        best = None
        for p, q, P, Q, constant in itertools.product(
            range(self.max_p + 1), range(self.max_q + 1), seasonal_P, seasonal_Q, constants
        ):
            cand = (p, q, P, Q, constant)
            if not self._allowed(cand, d, D, m):
                continue
            fit = self._try(y, cand, d, D, m, tried)
            if fit is not None and (best is None or fit[0] < best[1][0]):
                best = (cand, fit)
        return best


def select_and_fit(training, config: Optional[dict] = None) -> FittedArima:
    """Fit the best ARIMA model to a training series."""
    return AutoArima(config).select_and_fit(training)


def forecast(model: FittedArima, horizon: int) -> pd.DataFrame:
    """Forecast ``horizon`` steps past the end of the training series."""
    return model.forecast(horizon)
