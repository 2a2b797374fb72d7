"""Sliding-window construction for supervised time-series training."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import math

import numpy as np
import pandas as pd

from .normalizer import Normalizer
from .structs import FeatureStats, Series
from ..utils.error_handling import InsufficientDataError, MissingStatsError

logger = logging.getLogger(__name__)


@dataclass
class TrainingSet:
    """
    Windows and labels in ascending start-index order.

    Attributes:
        windows: Array of shape (n_samples, window_size, n_features)
        labels: Array of shape (n_samples,)
        label_timestamps: Timestamp of the observation each label comes from
    """
    windows: np.ndarray
    labels: np.ndarray
    label_timestamps: pd.DatetimeIndex

    def __len__(self) -> int:
        return len(self.labels)

    def pairs(self) -> List[Tuple[np.ndarray, float]]:
        return [(self.windows[i], float(self.labels[i])) for i in range(len(self))]

    def split(self, training_ratio: float) -> Tuple["TrainingSet", Optional["TrainingSet"]]:
        """
        Chronological split into train and validation parts.

        The first ``floor(len * training_ratio)`` samples are used for
        training. Returns ``None`` for the validation part when it is empty.
        """
        if not 0 < training_ratio <= 1:
            raise ValueError(f"training_ratio must be in (0, 1], got {training_ratio}")

        split_idx = math.floor(len(self) * training_ratio)
        train = TrainingSet(
            windows=self.windows[:split_idx],
            labels=self.labels[:split_idx],
            label_timestamps=self.label_timestamps[:split_idx],
        )
        if split_idx >= len(self):
            return train, None

        validation = TrainingSet(
            windows=self.windows[split_idx:],
            labels=self.labels[split_idx:],
            label_timestamps=self.label_timestamps[split_idx:],
        )
        return train, validation


class Windower:
    """Slices a series into fixed-length windows."""

    def __init__(self, normalizer: Optional[Normalizer] = None):
        self.normalizer = normalizer or Normalizer()

    def _feature_matrix(
        self,
        series: Series,
        features: Sequence[str],
        stats: Optional[FeatureStats],
    ) -> np.ndarray:
        for feature in features:
            if feature not in series.values.columns:
                raise ValueError(f"Unknown feature '{feature}'. Available: {series.features}")
        frame = series.values[list(features)]
        if stats is not None:
            frame = self.normalizer.normalize_frame(frame, stats)
        return frame.to_numpy(dtype=float)

    def _check_length(self, n_samples: int, window_size: int) -> None:
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}")
        if n_samples <= window_size:
            raise InsufficientDataError(
                f"Input data length ({n_samples}) must be greater than window size ({window_size})",
                required=window_size + 1,
                actual=n_samples,
            )

    def build_training_set(
        self,
        series: Series,
        features: Sequence[str],
        target: str,
        window_size: int,
        stats: Optional[FeatureStats] = None,
    ) -> TrainingSet:
        """
        Create (window, label) pairs.

        Window ``i`` covers observations ``[i, i + window_size)`` and is
        labelled with the target at ``i + window_size``; a series of length
        N yields exactly ``N - window_size`` pairs.

        Args:
            series: Chronologically ordered observations
            features: Input feature names
            target: Target feature name
            window_size: Number of observations per window
            stats: Optional statistics; when given, windows and labels are normalized

        Raises:
            InsufficientDataError: If ``len(series) <= window_size``
        """
        n_samples = len(series)
        self._check_length(n_samples, window_size)

        X = self._feature_matrix(series, features, stats)
        y = series.column(target)
        if stats is not None:
            if target not in stats:
                raise MissingStatsError(target)
            y = (y - stats[target].mean) / stats[target].scale

        xs, ys = [], []
        for i in range(n_samples - window_size):
            # Window: [i, i+1, ... i+window_size-1]
            xs.append(X[i:(i + window_size)])
            # Target: y[i+window_size] (next step)
            ys.append(y[i + window_size])

        logger.debug(f"Built {len(ys)} windows of size {window_size} over {list(features)}")
        return TrainingSet(
            windows=np.array(xs, dtype=float),
            labels=np.array(ys, dtype=float),
            label_timestamps=series.timestamp[window_size:],
        )

    def trailing_window(
        self,
        series: Series,
        features: Sequence[str],
        window_size: int,
        stats: Optional[FeatureStats] = None,
    ) -> np.ndarray:
        """
        Last ``window_size`` feature vectors, the seed for forward forecasts.

        Raises:
            InsufficientDataError: If ``len(series) <= window_size``
        """
        self._check_length(len(series), window_size)
        X = self._feature_matrix(series, features, stats)
        return X[-window_size:]
