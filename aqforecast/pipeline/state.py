"""Explicit state of a trained pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..data.structs import FeatureStats, TrainingProgress, TrainingSummary
from ..models.base_model import BaseForecaster
from ..models.config import ForecasterConfig


@dataclass
class PipelineState:
    """
    Everything one training run produces.

    The stats are computed once per run and shared read-only by windowing,
    prediction and denormalization; each state owns its own forecaster.
    """
    stats: FeatureStats
    features: List[str]
    target: str
    window_size: int
    forecaster_config: ForecasterConfig
    forecaster: Optional[BaseForecaster] = None
    training_history: List[TrainingProgress] = field(default_factory=list)
    summary: Optional[TrainingSummary] = None
    trained_at: datetime = field(default_factory=datetime.now)

    @property
    def is_ready(self) -> bool:
        return self.forecaster is not None and self.forecaster.is_fitted
