"""Core data structures for the forecasting pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

import numpy as np
import pandas as pd


@dataclass
class Series:
    """
    Chronologically ordered observations keyed by feature name.

    Attributes:
        timestamp: DatetimeIndex, one entry per observation
        values: DataFrame of numeric features aligned with ``timestamp``
        metadata: Free-form metadata (source, loaded_at, freq, ...)
    """
    timestamp: pd.DatetimeIndex
    values: pd.DataFrame
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate consistency after initialization."""
        if not isinstance(self.timestamp, pd.DatetimeIndex):
            self.timestamp = pd.DatetimeIndex(self.timestamp)
        if len(self.timestamp) != len(self.values):
            raise ValueError(
                f"Length mismatch: timestamp ({len(self.timestamp)}) vs values ({len(self.values)})"
            )
        self.values = self.values.reset_index(drop=True)

    def __len__(self) -> int:
        return len(self.timestamp)

    @property
    def features(self) -> List[str]:
        return [str(c) for c in self.values.columns]

    @property
    def freq(self) -> str:
        return self.metadata.get("freq", "D")

    def sorted(self) -> "Series":
        """Return a copy ordered by timestamp (stable for duplicates)."""
        order = np.argsort(self.timestamp.values, kind="stable")
        return Series(
            timestamp=self.timestamp[order],
            values=self.values.iloc[order].reset_index(drop=True),
            metadata=dict(self.metadata),
        )

    def column(self, feature: str) -> np.ndarray:
        if feature not in self.values.columns:
            raise ValueError(f"Unknown feature '{feature}'. Available: {self.features}")
        return self.values[feature].to_numpy(dtype=float)

    def observations(self) -> Iterator[Dict[str, float]]:
        """Iterate rows as ``{feature: value}`` mappings."""
        for record in self.values.to_dict(orient="records"):
            yield record


@dataclass(frozen=True)
class FeatureStat:
    """Mean and population standard deviation of one feature."""
    mean: float
    std: float

    @property
    def scale(self) -> float:
        # zero variance is scaled by 1 so normalize/denormalize stay defined
        return self.std if self.std != 0 else 1.0


class FeatureStats(Mapping[str, FeatureStat]):
    """Read-only, ordered mapping of feature name to FeatureStat."""

    def __init__(self, stats: Mapping[str, FeatureStat]):
        self._stats: Dict[str, FeatureStat] = dict(stats)

    def __getitem__(self, feature: str) -> FeatureStat:
        return self._stats[feature]

    def __iter__(self):
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FeatureStats):
            return self._stats == other._stats
        return NotImplemented

    def __repr__(self) -> str:
        return f"FeatureStats({self._stats!r})"

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {name: {"mean": s.mean, "std": s.std} for name, s in self._stats.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, float]]) -> "FeatureStats":
        return cls({
            name: FeatureStat(mean=float(s["mean"]), std=float(s["std"]))
            for name, s in data.items()
        })


class PredictionMode(str, Enum):
    HISTORICAL = "historical"
    FUTURE = "future"
    CUSTOM = "custom"


@dataclass(frozen=True)
class PredictionPoint:
    timestamp: pd.Timestamp
    predicted_value: float
    actual_value: Optional[float] = None


@dataclass
class PredictionResult:
    """Ordered prediction output of one Predictor call."""
    mode: PredictionMode
    target: str
    points: List[PredictionPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def predictions(self) -> List[float]:
        return [p.predicted_value for p in self.points]

    @property
    def actuals(self) -> List[Optional[float]]:
        return [p.actual_value for p in self.points]

    @property
    def has_actuals(self) -> bool:
        return bool(self.points) and all(p.actual_value is not None for p in self.points)

    def summary(self) -> Dict[str, float]:
        """Average, minimum and maximum of the predicted values."""
        preds = np.asarray(self.predictions, dtype=float)
        if preds.size == 0:
            return {"average": float("nan"), "minimum": float("nan"), "maximum": float("nan")}
        return {
            "average": float(preds.mean()),
            "minimum": float(preds.min()),
            "maximum": float(preds.max()),
        }

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame({
            "date": [p.timestamp for p in self.points],
            f"predicted_{self.target}": self.predictions,
        })
        if self.has_actuals:
            frame[f"actual_{self.target}"] = self.actuals
        return frame.set_index("date")


@dataclass(frozen=True)
class TrainingProgress:
    """One epoch of training, as reported by a forecaster."""
    epoch_index: int
    training_loss: float
    validation_loss: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "epoch_index": self.epoch_index,
            "training_loss": self.training_loss,
            "validation_loss": self.validation_loss,
        }


@dataclass
class TrainingSummary:
    """Held-out evaluation of a finished training run."""
    validation_loss: float
    validation_mae: float
    validation_rmse: float
    denormalized_mae: float
    n_train: int
    n_validation: int
    finished_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validation_loss": self.validation_loss,
            "validation_mae": self.validation_mae,
            "validation_rmse": self.validation_rmse,
            "denormalized_mae": self.denormalized_mae,
            "n_train": self.n_train,
            "n_validation": self.n_validation,
            "finished_at": self.finished_at.isoformat(),
        }
