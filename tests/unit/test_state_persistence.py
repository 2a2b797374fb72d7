"""Unit tests for text serialization and the key-value store."""

import asyncio
import json

import pytest

from aqforecast.models.config import ForecasterConfig
from aqforecast.pipeline.config import PipelineConfig
from aqforecast.pipeline.trainer import Trainer
from aqforecast.utils.serialization import dumps_pipeline, dumps_series, loads_pipeline, loads_series
from aqforecast.utils.state_persistence import (
    PIPELINE_KEY,
    SERIES_KEY,
    KeyValueStore,
    load_pipeline,
    load_series,
    save_pipeline,
    save_series,
)


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(tmp_path / "state")


@pytest.fixture
def trained_state(ramp_series, window_mean_factory):
    config = PipelineConfig(
        target="aqi", features=["aqi"], window_size=2, forecaster=ForecasterConfig(epochs=2)
    )
    return asyncio.run(Trainer(config, forecaster_factory=window_mean_factory).fit(ramp_series))


class TestKeyValueStore:
    """Tests for KeyValueStore."""

    def test_set_get(self, store):
        store.set("a", "1")
        assert store.get("a") == "1"
        assert store["a"] == "1"
        assert "a" in store

    def test_missing_key(self, store):
        assert store.get("absent") is None
        assert store.get("absent", "fallback") == "fallback"
        with pytest.raises(KeyError):
            store["absent"]

    def test_keys_with_path_characters(self, store):
        store["reports/2024 q1"] = "x"
        assert list(store.keys()) == ["reports/2024 q1"]

    def test_overwrite_delete_clear(self, store):
        store["a"] = "1"
        store["a"] = "2"
        store["b"] = "3"
        assert store["a"] == "2"
        store.delete("a")
        assert "a" not in store
        store.clear()
        assert list(store.keys()) == []

    def test_empty_key_rejected(self, store):
        with pytest.raises(ValueError):
            store.set("", "value")


class TestSeriesSnapshots:
    """Tests for series snapshots."""

    def test_dates_are_iso_days(self, ramp_series):
        payload = json.loads(dumps_series(ramp_series))
        assert payload["data"][0] == {"date": "2024-01-01", "aqi": 10.0}
        assert payload["version"] == 1

    def test_default_key(self, store, ramp_series):
        save_series(store, ramp_series)
        assert list(store.keys()) == ["airQualityData"]

    def test_round_trip(self, store, multi_feature_series):
        save_series(store, multi_feature_series)
        restored = load_series(store)
        assert list(restored.timestamp) == list(multi_feature_series.timestamp)
        assert restored.values.equals(multi_feature_series.values)
        assert SERIES_KEY in store


class TestPipelineSnapshots:
    """Tests for trained-pipeline snapshots."""

    def test_round_trip(self, store, trained_state):
        save_pipeline(store, trained_state)
        restored = load_pipeline(store)
        assert PIPELINE_KEY in store
        assert restored.stats == trained_state.stats
        assert restored.features == ["aqi"]
        assert restored.target == "aqi"
        assert restored.window_size == 2
        assert restored.forecaster_config == trained_state.forecaster_config
        assert restored.training_history == trained_state.training_history
        assert restored.summary == trained_state.summary
        assert restored.forecaster is None

    def test_default_key(self, store, trained_state):
        save_pipeline(store, trained_state)
        assert list(store.keys()) == ["airQualityModelInfo"]

    def test_snapshot_keys(self, trained_state):
        payload = json.loads(dumps_pipeline(trained_state))
        assert {"target_feature", "selected_features", "window_size", "stats", "timestamp"} <= set(payload)

    def test_unknown_version(self, trained_state):
        payload = json.loads(dumps_pipeline(trained_state))
        payload["version"] = 99
        with pytest.raises(ValueError, match="Unsupported"):
            loads_pipeline(json.dumps(payload))

    def test_load_missing_raises(self, store):
        with pytest.raises(KeyError):
            load_pipeline(store)


def test_series_text_round_trip(ramp_series):
    restored = loads_series(dumps_series(ramp_series))
    assert restored.column("aqi").tolist() == ramp_series.column("aqi").tolist()
    assert restored.metadata["source"] == "test"
