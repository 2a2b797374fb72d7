"""Forecast scoring."""

from .metrics import MetricsCalculator, MetricsResult, mae, mse, rmse

__all__ = ["MetricsCalculator", "MetricsResult", "mae", "mse", "rmse"]
