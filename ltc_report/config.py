"""Configuration loading for the report pipeline."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "data": {
        "path": "data/gemini_LTCUSD_2020_1min.csv",
        "skip_rows": 0,
        "date_format": "%m/%d/%Y %H:%M",
        "symbols": ["LTC/USD"],
        "validate_price_bounds": False,
    },
    "metrics": {
        "volatility_window": 7,
    },
    "resample": {
        # 0=Monday ... 6=Sunday
        "week_start": 6,
    },
    "statistics": {
        "correlation_columns": ["open", "high", "low", "close", "volume"],
    },
    "split": {
        "train_fraction": 0.8,
    },
    "decomposition": {
        "column": "close",
        "period": 1440,
    },
    "forecast": {
        "column": "close",
        "seasonal_period": 1440,
        "max_seasonal_period": 24,
        "information_criterion": "aic",
        "stepwise": True,
        "max_p": 5,
        "max_q": 5,
        "max_P": 2,
        "max_Q": 2,
        "max_d": 2,
        "max_D": 1,
        "max_order": 5,
        "max_fits": 94,
        "min_observations": 10,
        "interval_levels": [80, 95],
        "unit_root_alpha": 0.05,
        "seasonal_strength_threshold": 0.64,
    },
    "logging": {
        "level": "INFO",
        "log_file": "storage/report.log",
        "max_log_size": 10485760,
        "backup_count": 5,
    },
    "output": {
        "report_path": "",
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load a YAML config and merge it over the built-in defaults.

    Args:
        path: Path to config YAML. ``None`` returns a copy of the defaults.

    Returns:
        dict: Merged configuration.
    """
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level")
    return _merge(DEFAULT_CONFIG, loaded)
