"""Training and prediction over a configured pipeline."""

from .config import PipelineConfig
from .state import PipelineState
from .predictor import Predictor
from .trainer import Trainer, TrainingSession

__all__ = ["PipelineConfig", "PipelineState", "Predictor", "Trainer", "TrainingSession"]
