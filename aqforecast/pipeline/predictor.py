"""Historical, future and custom-input prediction over a trained pipeline."""

from typing import Any, Mapping, Optional, Sequence, Union
import logging
import math

import numpy as np
import pandas as pd

from ..data.normalizer import Normalizer
from ..data.structs import PredictionMode, PredictionPoint, PredictionResult, Series
from ..data.windowing import Windower
from ..utils.error_handling import InsufficientDataError, MissingStatsError, TrainingError
from .state import PipelineState

logger = logging.getLogger(__name__)

CustomInput = Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]


class Predictor:
    """
    Produces denormalized predictions from a PipelineState.

    Inputs are normalized with the state's stats, passed through its
    forecaster, and the scalar output is denormalized with the target's stats.
    """

    def __init__(self, state: PipelineState, windower: Optional[Windower] = None):
        self.state = state
        self.windower = windower or Windower()
        self.normalizer = self.windower.normalizer

    def _check_ready(self) -> None:
        for feature in [self.state.target, *self.state.features]:
            if feature not in self.state.stats:
                raise MissingStatsError(feature)
        if self.state.forecaster is None:
            raise TrainingError("No forecaster available. Train a model first.")

    def _denormalize(self, values: np.ndarray) -> np.ndarray:
        return self.normalizer.denormalize_array(values, self.state.target, self.state.stats)

    def historical(self, series: Series, k: int) -> PredictionResult:
        """
        Replay the last ``k`` observations.

        Each point is predicted from the ``window_size`` observations before
        it, so ``k`` may be at most ``len(series) - window_size``.

        Raises:
            InsufficientDataError: If there are not enough observations
            MissingStatsError: If stats lack the target or an input feature
        """
        self._check_ready()
        if k < 1:
            raise ValueError(f"Number of predictions must be positive, got {k}")

        series = series.sorted()
        w = self.state.window_size
        available = len(series) - w
        if k > available:
            raise InsufficientDataError(
                f"Historical replay of {k} observations needs {k + w} observations "
                f"with window size {w}, got {len(series)}",
                required=k + w,
                actual=len(series),
            )

        training_set = self.windower.build_training_set(
            series, self.state.features, self.state.target, w, self.state.stats
        )
        windows = training_set.windows[-k:]
        predicted = self._denormalize(self.state.forecaster.predict_batch(windows))
        actual = series.column(self.state.target)[-k:]
        timestamps = training_set.label_timestamps[-k:]

        points = [
            PredictionPoint(timestamp=ts, predicted_value=float(p), actual_value=float(a))
            for ts, p, a in zip(timestamps, predicted, actual)
        ]
        logger.info(f"Historical replay of {k} {self.state.target} observations")
        return PredictionResult(mode=PredictionMode.HISTORICAL, target=self.state.target, points=points)

    def future(self, series: Series, k: int) -> PredictionResult:
        """
        Forecast ``k`` steps past the end of the series.

        Every step reuses the same trailing window; predictions are not fed
        back into the window, so a deterministic forecaster repeats itself.
        """
        self._check_ready()
        if k < 1:
            raise ValueError(f"Number of predictions must be positive, got {k}")

        series = series.sorted()
        window = self.windower.trailing_window(
            series, self.state.features, self.state.window_size, self.state.stats
        )
        timestamps = pd.date_range(series.timestamp[-1], periods=k + 1, freq=series.freq)[1:]

        points = []
        for ts in timestamps:
            normalized = self.state.forecaster.predict(window)
            value = self.normalizer.denormalize(normalized, self.state.target, self.state.stats)
            points.append(PredictionPoint(timestamp=ts, predicted_value=value))

        logger.info(f"Future forecast of {k} steps from {series.timestamp[-1].date()}")
        return PredictionResult(mode=PredictionMode.FUTURE, target=self.state.target, points=points)

    def custom(self, values: CustomInput, timestamp: Optional[Any] = None) -> PredictionResult:
        """
        Predict from caller-supplied feature values.

        Args:
            values: One ``{feature: value}`` mapping, repeated across the
                window, or a sequence of exactly ``window_size`` mappings
            timestamp: Timestamp of the prediction; defaults to today

        Raises:
            ValueError: If a feature value is missing or not a number
        """
        self._check_ready()
        w = self.state.window_size

        if isinstance(values, Mapping):
            rows = [values] * w
        else:
            rows = list(values)
            if len(rows) != w:
                raise InsufficientDataError(
                    f"Custom input needs {w} observations, got {len(rows)}",
                    required=w,
                    actual=len(rows),
                )

        window = np.array([self._custom_row(row) for row in rows], dtype=float)
        normalized = self.state.forecaster.predict(window)
        value = self.normalizer.denormalize(normalized, self.state.target, self.state.stats)

        ts = pd.Timestamp(timestamp) if timestamp is not None else pd.Timestamp.today().normalize()
        logger.info(f"Custom prediction for {self.state.target}: {value:.2f}")
        return PredictionResult(
            mode=PredictionMode.CUSTOM,
            target=self.state.target,
            points=[PredictionPoint(timestamp=ts, predicted_value=value)],
        )

    def _custom_row(self, row: Mapping[str, Any]) -> list:
        observation = {}
        for feature in self.state.features:
            try:
                number = float(row[feature])
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid value for {feature}. Please enter a number.") from e
            if math.isnan(number):
                raise ValueError(f"Invalid value for {feature}. Please enter a number.")
            observation[feature] = number
        normalized = self.normalizer.normalize(observation, self.state.stats)
        return [normalized[feature] for feature in self.state.features]

    def predict(
        self,
        mode: Union[PredictionMode, str],
        series: Optional[Series] = None,
        k: int = 1,
        values: Optional[CustomInput] = None,
        timestamp: Optional[Any] = None,
    ) -> PredictionResult:
        """Dispatch to the prediction mode selected by the caller."""
        mode = PredictionMode(mode)
        if mode is PredictionMode.CUSTOM:
            if values is None:
                raise ValueError("Custom predictions need input values")
            return self.custom(values, timestamp)
        if series is None:
            raise ValueError(f"{mode.value} predictions need a series")
        if mode is PredictionMode.HISTORICAL:
            return self.historical(series, k)
        return self.future(series, k)
