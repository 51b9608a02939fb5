"""End-to-end report pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

from ltc_report.config import load_config
from ltc_report.decomposition import DecompositionResult, SeasonalDecomposer
from ltc_report.errors import PipelineError
from ltc_report.evaluation import evaluate
from ltc_report.features import DerivedMetricEngine
from ltc_report.loader import load_raw
from ltc_report.logging_setup import get_logger
from ltc_report.models import AutoArima, FittedArima
from ltc_report.normalizer import RecordNormalizer, sort_series
from ltc_report.resampling import Granularity, PeriodResampler
from ltc_report.splitting import SplitResult, split
from ltc_report.stats import column_means, correlation_matrix, group_means
from ltc_report.utils import frame_records, safe_round, save_json

logger = get_logger()


@dataclass
class PipelineResult:
    """Every artifact of one pipeline run, as plain values."""

    series: pd.DataFrame
    weekly: pd.DataFrame
    monthly: pd.DataFrame
    correlations: pd.DataFrame
    means: pd.Series
    quarterly_means: pd.DataFrame
    split: SplitResult
    decomposition: DecompositionResult
    model: FittedArima
    forecast: pd.DataFrame
    accuracy: Dict[str, float]

    def summary(self) -> Dict[str, Any]:
        """JSON-serialisable summary for report/dashboard consumers."""
        trend = self.decomposition.trend.dropna()
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "rows": int(len(self.series)),
            "start": str(self.series["trading_day"].iloc[0]),
            "end": str(self.series["trading_day"].iloc[-1]),
            "train_rows": self.split.train_size,
            "test_rows": self.split.test_size,
            "means": {k: safe_round(v) for k, v in self.means.items()},
            "correlations": {
                row: {col: safe_round(val) for col, val in cols.items()}
                for row, cols in self.correlations.to_dict(orient="index").items()
            },
            "quarterly_means": {
                q: {col: safe_round(val) for col, val in cols.items()}
                for q, cols in self.quarterly_means.to_dict(orient="index").items()
            },
            "weekly": frame_records(self.weekly),
            "monthly": frame_records(self.monthly),
            "decomposition": {
                "period": self.decomposition.period,
                "seasonal_strength": safe_round(self.decomposition.seasonal_strength()),
                "trend_start": safe_round(trend.iloc[0]) if len(trend) else None,
                "trend_end": safe_round(trend.iloc[-1]) if len(trend) else None,
            },
            "model": self.model.summary(),
            "accuracy": {k: safe_round(v) for k, v in self.accuracy.items()},
        }


class ReportPipeline:
    """Run normalization, statistics, decomposition, forecasting and scoring in order."""

    def __init__(self, config: Optional[dict] = None):
        self.config = config if config is not None else load_config()
        split_cfg = self.config.get("split", {})
        stats_cfg = self.config.get("statistics", {})

        self.train_fraction = float(split_cfg.get("train_fraction", 0.8))
        self.correlation_columns = list(
            stats_cfg.get("correlation_columns", ["open", "high", "low", "close", "volume"])
        )
        self.forecast_column = str(self.config.get("forecast", {}).get("column", "close"))

        self.normalizer = RecordNormalizer(self.config)
        self.metrics = DerivedMetricEngine(self.config)
        self.resampler = PeriodResampler(self.config)
        self.decomposer = SeasonalDecomposer(self.config)
        self.auto_arima = AutoArima(self.config)
        # Name of the stage that raised during the last run, if any.
        self.failed_stage: Optional[str] = None

    @contextmanager
    def _stage(self, name: str):
        logger.info("Stage %s started", name)
        try:
            yield
        except Exception as exc:
            self.failed_stage = name
            if isinstance(exc, PipelineError):
                exc.stage = name
            logger.error("Stage %s failed with %s: %s", name, type(exc).__name__, exc)
            raise
        logger.info("Stage %s finished", name)

    def run(self, raw: pd.DataFrame) -> PipelineResult:
        """Run every stage on raw source rows; the first stage error halts the run."""
        self.failed_stage = None
        with self._stage("normalize"):
            series = sort_series(self.normalizer.normalize(raw))

        with self._stage("derived_metrics"):
            derived = self.metrics.compute(series)

        with self._stage("resample"):
            weekly = self.resampler.resample(series, Granularity.WEEKLY)
            monthly = self.resampler.resample(series, Granularity.MONTHLY)

        with self._stage("statistics"):
            correlations = correlation_matrix(series, self.correlation_columns)
            means = column_means(series, self.correlation_columns)
            quarterly = group_means(series, self.correlation_columns, by="quarter")

        with self._stage("split"):
            parts = split(series, self.train_fraction)

        with self._stage("decomposition"):
            decomposition = self.decomposer.decompose(parts.training)

        with self._stage("forecast"):
            model = self.auto_arima.select_and_fit(parts.training)
            predictions = model.forecast(parts.test_size)

        with self._stage("evaluation"):
            accuracy = evaluate(
                predictions,
                parts.testing,
                training=parts.training,
                column=self.forecast_column,
            )

        return PipelineResult(
            series=derived,
            weekly=weekly,
            monthly=monthly,
            correlations=correlations,
            means=means,
            quarterly_means=quarterly,
            split=parts,
            decomposition=decomposition,
            model=model,
            forecast=predictions,
            accuracy=accuracy,
        )

    def run_file(self, path: Optional[Union[str, Path]] = None) -> PipelineResult:
        """Load the configured flat file and run the pipeline."""
        data_cfg = self.config.get("data", {})
        path = path or data_cfg.get("path")
        self.failed_stage = None
        with self._stage("load"):
            raw = load_raw(path, skip_rows=int(data_cfg.get("skip_rows", 0)))
        return self.run(raw)

    def save_report(self, result: PipelineResult, path: Union[str, Path]) -> Path:
        out_path = Path(path)
        save_json(out_path, result.summary())
        logger.info("Report saved to %s", out_path)
        return out_path
