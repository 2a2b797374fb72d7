"""Z-score normalization of series features."""

from typing import Dict, Iterable, Mapping

import numpy as np
import pandas as pd
import logging

from .structs import FeatureStat, FeatureStats, Series
from ..utils.error_handling import EmptyInputError, MissingStatsError

logger = logging.getLogger(__name__)


class Normalizer:
    """Computes per-feature statistics and applies/reverses z-score scaling."""

    def fit(self, series: Series, features: Iterable[str]) -> FeatureStats:
        """
        Compute mean and population standard deviation per feature.

        Args:
            series: Observations to compute statistics over
            features: Feature names; duplicates are ignored, order is kept

        Returns:
            FeatureStats for the requested features

        Raises:
            EmptyInputError: If the series has no observations
            ValueError: If a feature is not a column of the series
        """
        if len(series) == 0:
            raise EmptyInputError("Cannot compute statistics over an empty series")

        stats: Dict[str, FeatureStat] = {}
        for feature in dict.fromkeys(features):
            values = series.column(feature)
            if np.ptp(values) == 0:
                # constant column: exact mean, no rounding-noise std
                stats[feature] = FeatureStat(mean=float(values[0]), std=0.0)
                continue
            # ddof=0: population standard deviation
            stats[feature] = FeatureStat(
                mean=float(np.mean(values)),
                std=float(np.std(values, ddof=0)),
            )

        logger.debug(f"Fitted statistics for {list(stats)} over {len(series)} observations")
        return FeatureStats(stats)

    def normalize(
        self,
        observation: Mapping[str, float],
        stats: FeatureStats,
    ) -> Dict[str, float]:
        """Scale each feature of ``observation`` that has statistics."""
        return {
            feature: (float(observation[feature]) - stat.mean) / stat.scale
            for feature, stat in stats.items()
            if feature in observation
        }

    def denormalize(self, scalar: float, feature: str, stats: FeatureStats) -> float:
        """Inverse of ``normalize`` for a single feature."""
        if feature not in stats:
            raise MissingStatsError(feature)
        stat = stats[feature]
        return float(scalar) * stat.scale + stat.mean

    def normalize_frame(self, frame: pd.DataFrame, stats: FeatureStats) -> pd.DataFrame:
        """
        Vectorised ``normalize`` over the columns of ``frame``.

        Every column must have statistics.
        """
        result = frame.astype(float).copy()
        for column in result.columns:
            if column not in stats:
                raise MissingStatsError(column)
            stat = stats[column]
            result[column] = (result[column] - stat.mean) / stat.scale
        return result

    def denormalize_array(self, values: np.ndarray, feature: str, stats: FeatureStats) -> np.ndarray:
        if feature not in stats:
            raise MissingStatsError(feature)
        stat = stats[feature]
        return np.asarray(values, dtype=float) * stat.scale + stat.mean
