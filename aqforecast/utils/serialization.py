"""
Serialization utilities for the forecasting pipeline.
Series snapshots and trained-pipeline metadata are stored as JSON text.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict

import numpy as np
import pandas as pd

from ..data.structs import FeatureStats, Series, TrainingProgress, TrainingSummary
from ..models.config import ForecasterConfig
from ..pipeline.state import PipelineState

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime and numpy types."""
    def default(self, obj):
        if isinstance(obj, (datetime, pd.Timestamp)):
            return obj.isoformat()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def dumps_series(series: Series) -> str:
    """Serialize a Series to JSON text with ``YYYY-MM-DD`` dates."""
    records = []
    for ts, row in zip(series.timestamp, series.observations()):
        records.append({"date": ts.strftime("%Y-%m-%d"), **row})
    payload = {
        "version": SNAPSHOT_VERSION,
        "source": series.metadata.get("source"),
        "timestamp": datetime.now().isoformat(),
        "metadata": series.metadata,
        "data": records,
    }
    return json.dumps(payload, cls=DateTimeEncoder)


def loads_series(text: str) -> Series:
    """Inverse of ``dumps_series``."""
    payload = json.loads(text)
    records = payload["data"]
    dates = pd.DatetimeIndex([pd.Timestamp(r["date"]) for r in records])
    values = pd.DataFrame([{k: v for k, v in r.items() if k != "date"} for r in records])
    if values.empty:
        values = pd.DataFrame(index=range(len(records)))
    return Series(timestamp=dates, values=values.astype(float), metadata=payload.get("metadata", {}))


def pipeline_to_dict(state: PipelineState) -> Dict[str, Any]:
    """Flat description of a trained pipeline (the model weights excluded)."""
    return {
        "version": SNAPSHOT_VERSION,
        "target_feature": state.target,
        "selected_features": list(state.features),
        "window_size": state.window_size,
        "stats": state.stats.to_dict(),
        "forecaster": state.forecaster_config.to_dict(),
        "training_history": [e.to_dict() for e in state.training_history],
        "summary": state.summary.to_dict() if state.summary else None,
        "timestamp": state.trained_at.isoformat(),
    }


def _summary_from_dict(data: Dict[str, Any]) -> TrainingSummary:
    fields = dict(data)
    fields["finished_at"] = datetime.fromisoformat(fields["finished_at"])
    return TrainingSummary(**fields)


def dumps_pipeline(state: PipelineState) -> str:
    """Serialize stats, features, target and forecaster config to one text blob."""
    return json.dumps(pipeline_to_dict(state), cls=DateTimeEncoder)


def loads_pipeline(text: str) -> PipelineState:
    """
    Restore a PipelineState from ``dumps_pipeline`` output.

    The returned state has no forecaster attached; load or retrain one.
    """
    data = json.loads(text)
    version = data.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported pipeline snapshot version: {version}")

    state = PipelineState(
        stats=FeatureStats.from_dict(data["stats"]),
        features=list(data["selected_features"]),
        target=data["target_feature"],
        window_size=int(data["window_size"]),
        forecaster_config=ForecasterConfig.from_dict(data["forecaster"]),
        training_history=[TrainingProgress(**e) for e in data.get("training_history", [])],
        summary=_summary_from_dict(data["summary"]) if data.get("summary") else None,
        trained_at=datetime.fromisoformat(data["timestamp"]),
    )
    logger.debug(f"Loaded pipeline snapshot for target {state.target}")
    return state
