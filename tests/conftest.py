"""Pytest configuration and shared fixtures."""

import asyncio

import pytest
import pandas as pd
import numpy as np

from aqforecast.data.structs import Series, TrainingProgress
from aqforecast.models.base_model import BaseForecaster


class WindowMeanForecaster(BaseForecaster):
    """Deterministic forecaster: predicts the mean of the last feature in the window."""

    @property
    def model_type(self) -> str:
        return "window_mean"

    def _build_model(self, input_shape):
        return {"input_shape": input_shape}

    async def _run_epochs(self, windows, labels, validation_data):
        for epoch in range(self.config.epochs):
            await asyncio.sleep(0)
            preds = windows[:, :, -1].mean(axis=1)
            loss = float(np.mean((preds - labels) ** 2))
            val_loss = None
            if validation_data is not None:
                X_val, y_val = validation_data
                val_loss = float(np.mean((X_val[:, :, -1].mean(axis=1) - y_val) ** 2))
            yield TrainingProgress(epoch_index=epoch, training_loss=loss, validation_loss=val_loss)

    def _predict_windows(self, windows):
        return windows[:, :, -1].mean(axis=1)


class FailingForecaster(WindowMeanForecaster):
    """Fails after reporting the first epoch."""

    async def _run_epochs(self, windows, labels, validation_data):
        yield TrainingProgress(epoch_index=0, training_loss=1.0)
        raise RuntimeError("backend exploded")


def make_series(values, start="2024-01-01", feature="aqi", **extra) -> Series:
    """Daily Series with one or more feature columns."""
    columns = {feature: [float(v) for v in values]}
    for name, column in extra.items():
        columns[name] = [float(v) for v in column]
    return Series(
        timestamp=pd.date_range(start=start, periods=len(values), freq="D"),
        values=pd.DataFrame(columns),
        metadata={"source": "test", "freq": "D"},
    )


@pytest.fixture
def ramp_series():
    """Six daily observations rising by two."""
    return make_series([10, 12, 14, 16, 18, 20])


@pytest.fixture
def multi_feature_series():
    """Thirty days of pm25 and pm10 with a reproducible pattern."""
    rng = np.random.default_rng(42)
    pm10 = np.round(60 + 10 * np.sin(np.arange(30) / 3) + rng.uniform(-2, 2, 30))
    return make_series(np.round(pm10 * 0.8), feature="pm25", pm10=pm10)


@pytest.fixture
def window_mean_factory():
    def factory(config):
        return WindowMeanForecaster(config)
    return factory

