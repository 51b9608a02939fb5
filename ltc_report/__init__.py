"""Minute-bar market report: normalization, statistics, decomposition and ARIMA forecasting."""

__version__ = "0.1.0"
