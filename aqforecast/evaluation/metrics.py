"""Evaluation metrics for point forecasts."""

from dataclasses import dataclass
from typing import Any, Dict, Sequence
import logging
import math

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from ..data.structs import PredictionResult
from ..utils.error_handling import LengthMismatchError

logger = logging.getLogger(__name__)


def _as_pair(predictions: Sequence[float], actuals: Sequence[float]):
    y_pred = np.asarray(predictions, dtype=float).reshape(-1)
    y_true = np.asarray(actuals, dtype=float).reshape(-1)
    if len(y_pred) != len(y_true):
        raise LengthMismatchError(expected=len(y_pred), actual=len(y_true))
    return y_pred, y_true


def mse(predictions: Sequence[float], actuals: Sequence[float]) -> float:
    """Mean squared error; 0.0 for two empty sequences."""
    y_pred, y_true = _as_pair(predictions, actuals)
    if len(y_pred) == 0:
        return 0.0
    return float(mean_squared_error(y_true, y_pred))


def mae(predictions: Sequence[float], actuals: Sequence[float]) -> float:
    """Mean absolute error; 0.0 for two empty sequences."""
    y_pred, y_true = _as_pair(predictions, actuals)
    if len(y_pred) == 0:
        return 0.0
    return float(mean_absolute_error(y_true, y_pred))


def rmse(predictions: Sequence[float], actuals: Sequence[float]) -> float:
    """Root mean squared error."""
    return math.sqrt(mse(predictions, actuals))


@dataclass
class MetricsResult:
    """Container for evaluation metrics."""
    metrics: Dict[str, float]
    metric_type: str
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metrics": self.metrics,
            "metric_type": self.metric_type,
            "metadata": self.metadata,
        }


class MetricsCalculator:
    """Calculate regression metrics for forecasts."""

    def calculate_regression_metrics(
        self,
        y_true: Sequence[float],
        y_pred: Sequence[float],
    ) -> Dict[str, float]:
        """
        Calculate regression metrics.

        Args:
            y_true: True values
            y_pred: Predicted values

        Returns:
            Dictionary with 'mse', 'rmse' and 'mae'
        """
        metrics: Dict[str, float] = {}
        metrics["mse"] = mse(y_pred, y_true)
        metrics["rmse"] = float(np.sqrt(metrics["mse"]))
        metrics["mae"] = mae(y_pred, y_true)
        return metrics

    def score(self, result: PredictionResult) -> MetricsResult:
        """
        Score a prediction result against its actual values.

        Raises:
            ValueError: If the result carries no actual values
        """
        if not result.has_actuals:
            raise ValueError(
                f"No actual values available for comparison in {result.mode.value} predictions"
            )
        metrics = self.calculate_regression_metrics(result.actuals, result.predictions)
        logger.info(
            f"Scored {len(result)} {result.target} predictions: "
            f"mse={metrics['mse']:.4f} mae={metrics['mae']:.4f} rmse={metrics['rmse']:.4f}"
        )
        return MetricsResult(
            metrics=metrics,
            metric_type="regression",
            metadata={"n_samples": len(result), "mode": result.mode.value, "target": result.target},
        )
