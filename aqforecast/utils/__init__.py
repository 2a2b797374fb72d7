"""Error types, logging setup, configuration and persistence helpers."""

from .error_handling import (
    EmptyInputError,
    ForecastError,
    InsufficientDataError,
    LengthMismatchError,
    MissingStatsError,
    RecoveryContext,
    TrainingError,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "EmptyInputError",
    "ForecastError",
    "InsufficientDataError",
    "LengthMismatchError",
    "MissingStatsError",
    "RecoveryContext",
    "TrainingError",
    "setup_logging",
    "get_logger",
]
