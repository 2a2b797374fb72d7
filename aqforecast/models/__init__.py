"""Forecaster implementations."""

from .base_model import BaseForecaster, ModelArtifact, TrainingRun
from .config import ARCHITECTURES, ForecasterConfig

__all__ = ["BaseForecaster", "ModelArtifact", "TrainingRun", "ARCHITECTURES", "ForecasterConfig"]
