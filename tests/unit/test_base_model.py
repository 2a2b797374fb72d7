"""Unit tests for the forecaster interface and training runs."""

import asyncio

import numpy as np
import pytest

from aqforecast.models.config import ForecasterConfig
from aqforecast.utils.error_handling import TrainingError
from conftest import WindowMeanForecaster


@pytest.fixture
def windows():
    X = np.arange(12, dtype=float).reshape(4, 3, 1)
    y = np.array([3.0, 4.0, 5.0, 6.0])
    return X, y


async def collect(run):
    return [event async for event in run]


class TestTrainingRun:
    """Tests for the lazy progress sequence."""

    def test_one_event_per_epoch(self, windows):
        forecaster = WindowMeanForecaster(ForecasterConfig(epochs=3))
        events = asyncio.run(collect(forecaster.train(*windows)))
        assert [e.epoch_index for e in events] == [0, 1, 2]
        assert forecaster.is_fitted
        assert forecaster.training_history == events

    def test_validation_loss_reported(self, windows):
        X, y = windows
        forecaster = WindowMeanForecaster(ForecasterConfig(epochs=1))
        events = asyncio.run(collect(forecaster.train(X, y, validation_data=(X[:1], y[:1]))))
        assert events[0].validation_loss is not None

    def test_not_fitted_until_consumed(self, windows):
        forecaster = WindowMeanForecaster(ForecasterConfig(epochs=2))
        forecaster.train(*windows)
        assert not forecaster.is_fitted
        with pytest.raises(TrainingError, match="not fitted"):
            forecaster.predict(windows[0][0])

    def test_single_pass(self, windows):
        run = WindowMeanForecaster(ForecasterConfig(epochs=1)).train(*windows)
        asyncio.run(collect(run))
        with pytest.raises(RuntimeError):
            run.__aiter__()

    def test_wait_drains_remaining_events(self, windows):
        forecaster = WindowMeanForecaster(ForecasterConfig(epochs=4))
        run = forecaster.train(*windows)

        async def consume_one_then_wait():
            iterator = run.__aiter__()
            await iterator.__anext__()
            return await run.wait()

        assert asyncio.run(consume_one_then_wait()) is forecaster
        assert run.finished
        assert len(run.history) == 4


class TestValidation:
    """Tests for rejected training inputs."""

    def test_empty_windows(self):
        with pytest.raises(TrainingError, match="empty"):
            WindowMeanForecaster().train(np.empty((0, 3, 1)), np.empty(0))

    def test_mismatched_lengths(self, windows):
        X, y = windows
        with pytest.raises(TrainingError) as exc_info:
            WindowMeanForecaster().train(X, y[:2])
        assert exc_info.value.context == {"n_windows": 4, "n_labels": 2}

    def test_validation_shape_mismatch(self, windows):
        X, y = windows
        with pytest.raises(TrainingError, match="Validation windows"):
            WindowMeanForecaster().train(X, y, validation_data=(np.zeros((1, 2, 1)), np.zeros(1)))


class TestPrediction:
    """Tests for predicting with a fitted forecaster."""

    def test_predict_accepts_flat_window(self, windows):
        forecaster = asyncio.run(WindowMeanForecaster(ForecasterConfig(epochs=1)).fit(*windows))
        assert forecaster.predict(np.array([1.0, 2.0, 3.0])) == pytest.approx(2.0)

    def test_predict_batch_rejects_wrong_shape(self, windows):
        forecaster = asyncio.run(WindowMeanForecaster(ForecasterConfig(epochs=1)).fit(*windows))
        with pytest.raises(TrainingError, match="Expected windows"):
            forecaster.predict_batch(np.zeros((2, 5, 1)))

    def test_evaluate(self, windows):
        X, y = windows
        forecaster = asyncio.run(WindowMeanForecaster(ForecasterConfig(epochs=1)).fit(X, y))
        scores = forecaster.evaluate(X, y)
        # window means are 1, 4, 7, 10 against labels 3..6
        assert scores["mae"] == pytest.approx(np.mean([2.0, 0.0, 2.0, 4.0]))
        assert scores["loss"] == pytest.approx(np.mean([4.0, 0.0, 4.0, 16.0]))

    def test_release_discards_model(self, windows):
        forecaster = asyncio.run(WindowMeanForecaster(ForecasterConfig(epochs=1)).fit(*windows))
        forecaster.release()
        assert forecaster.model_object is None
        assert not forecaster.is_fitted

    def test_artifact(self, windows):
        forecaster = asyncio.run(WindowMeanForecaster(ForecasterConfig(epochs=2)).fit(*windows))
        artifact = forecaster.get_artifact().to_dict()
        assert artifact["model_type"] == "window_mean"
        assert artifact["input_shape"] == [3, 1]
        assert len(artifact["training_history"]) == 2
