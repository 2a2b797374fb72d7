"""Series containers, normalization, windowing and ingestion."""

from .structs import (
    FeatureStat,
    FeatureStats,
    PredictionMode,
    PredictionPoint,
    PredictionResult,
    Series,
    TrainingProgress,
    TrainingSummary,
)
from .normalizer import Normalizer
from .windowing import TrainingSet, Windower
from .loaders import FEATURE_UNITS, generate_sample_series, series_from_records, unit_for

__all__ = [
    "FeatureStat",
    "FeatureStats",
    "PredictionMode",
    "PredictionPoint",
    "PredictionResult",
    "Series",
    "TrainingProgress",
    "TrainingSummary",
    "Normalizer",
    "TrainingSet",
    "Windower",
    "FEATURE_UNITS",
    "generate_sample_series",
    "series_from_records",
    "unit_for",
]
