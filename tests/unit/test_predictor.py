"""Unit tests for the three prediction modes."""

import asyncio

import pandas as pd
import pytest

from aqforecast.data.normalizer import Normalizer
from aqforecast.data.structs import FeatureStat, FeatureStats, PredictionMode, Series
from aqforecast.data.windowing import Windower
from aqforecast.models.config import ForecasterConfig
from aqforecast.pipeline.predictor import Predictor
from aqforecast.pipeline.state import PipelineState
from aqforecast.utils.error_handling import (
    InsufficientDataError,
    MissingStatsError,
    TrainingError,
)
from conftest import WindowMeanForecaster


def trained_state(series, features=("aqi",), target="aqi", window_size=2):
    """PipelineState with a fitted window-mean forecaster."""
    stats = Normalizer().fit(series, [*features, target])
    config = ForecasterConfig(epochs=1)
    forecaster = WindowMeanForecaster(config)
    training_set = Windower().build_training_set(series, list(features), target, window_size, stats)
    asyncio.run(forecaster.fit(training_set.windows, training_set.labels))
    return PipelineState(
        stats=stats,
        features=list(features),
        target=target,
        window_size=window_size,
        forecaster_config=config,
        forecaster=forecaster,
    )


class TestHistorical:
    """Tests for replaying known observations."""

    def test_pairs_predictions_with_actuals(self, ramp_series):
        result = Predictor(trained_state(ramp_series)).historical(ramp_series, 4)
        assert result.mode is PredictionMode.HISTORICAL
        assert result.predictions == pytest.approx([11.0, 13.0, 15.0, 17.0])
        assert result.actuals == [14.0, 16.0, 18.0, 20.0]
        assert list(result.to_frame().index) == list(ramp_series.timestamp[2:])

    def test_last_k_only(self, ramp_series):
        result = Predictor(trained_state(ramp_series)).historical(ramp_series, 2)
        assert result.actuals == [18.0, 20.0]

    def test_too_many_steps_raises(self, ramp_series):
        with pytest.raises(InsufficientDataError) as exc_info:
            Predictor(trained_state(ramp_series)).historical(ramp_series, 5)
        assert exc_info.value.required == 7
        assert exc_info.value.actual == 6

    def test_unsorted_series_is_sorted_first(self, ramp_series):
        shuffled = Series(
            timestamp=ramp_series.timestamp[::-1],
            values=ramp_series.values.iloc[::-1],
        )
        result = Predictor(trained_state(ramp_series)).historical(shuffled, 1)
        assert result.actuals == [20.0]


class TestFuture:
    """Tests for forecasting past the end of the series."""

    def test_repeats_for_deterministic_forecaster(self, ramp_series):
        result = Predictor(trained_state(ramp_series)).future(ramp_series, 3)
        assert result.predictions == pytest.approx([19.0, 19.0, 19.0])
        assert not result.has_actuals

    def test_timestamps_continue_daily(self, ramp_series):
        result = Predictor(trained_state(ramp_series)).future(ramp_series, 3)
        assert [p.timestamp for p in result.points] == list(
            pd.date_range("2024-01-07", periods=3, freq="D")
        )

    def test_summary(self, ramp_series):
        summary = Predictor(trained_state(ramp_series)).future(ramp_series, 2).summary()
        assert summary["average"] == pytest.approx(19.0)
        assert summary["minimum"] == pytest.approx(summary["maximum"])


class TestCustom:
    """Tests for caller-supplied inputs."""

    def test_single_mapping_fills_window(self, ramp_series):
        result = Predictor(trained_state(ramp_series)).custom({"aqi": 30}, timestamp="2024-02-01")
        assert result.predictions == pytest.approx([30.0])
        assert result.points[0].timestamp == pd.Timestamp("2024-02-01")

    def test_sequence_of_rows(self, ramp_series):
        result = Predictor(trained_state(ramp_series)).custom([{"aqi": 10}, {"aqi": "20"}])
        assert result.predictions == pytest.approx([15.0])

    def test_wrong_row_count_raises(self, ramp_series):
        with pytest.raises(InsufficientDataError):
            Predictor(trained_state(ramp_series)).custom([{"aqi": 10}])

    @pytest.mark.parametrize("value", ["abc", None, float("nan")])
    def test_invalid_value_raises(self, ramp_series, value):
        with pytest.raises(ValueError, match="Invalid value for aqi. Please enter a number."):
            Predictor(trained_state(ramp_series)).custom({"aqi": value})

    def test_missing_feature_raises(self, multi_feature_series):
        state = trained_state(multi_feature_series, features=("pm25", "pm10"), target="pm25")
        with pytest.raises(ValueError, match="Invalid value for pm10"):
            Predictor(state).custom({"pm25": 40})


class TestReadiness:
    """Tests for incomplete pipeline states."""

    def test_missing_target_stats(self, ramp_series):
        state = trained_state(ramp_series)
        state.stats = FeatureStats({"other": FeatureStat(0.0, 1.0)})
        with pytest.raises(MissingStatsError):
            Predictor(state).future(ramp_series, 1)

    def test_no_forecaster(self, ramp_series):
        state = trained_state(ramp_series)
        state.forecaster = None
        with pytest.raises(TrainingError):
            Predictor(state).historical(ramp_series, 1)


class TestDispatch:
    """Tests for Predictor.predict."""

    def test_mode_strings(self, ramp_series):
        predictor = Predictor(trained_state(ramp_series))
        assert predictor.predict("future", series=ramp_series, k=2).mode is PredictionMode.FUTURE
        assert predictor.predict("historical", series=ramp_series, k=1).has_actuals
        assert predictor.predict("custom", values={"aqi": 12}).predictions == pytest.approx([12.0])

    def test_unknown_mode_raises(self, ramp_series):
        with pytest.raises(ValueError):
            Predictor(trained_state(ramp_series)).predict("backcast", series=ramp_series)

    def test_series_required(self, ramp_series):
        with pytest.raises(ValueError, match="need a series"):
            Predictor(trained_state(ramp_series)).predict(PredictionMode.FUTURE)
