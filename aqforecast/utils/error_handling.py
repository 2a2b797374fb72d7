"""Error types and error-context utilities."""

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ForecastError(ValueError):
    """Base class for pipeline validation failures.

    Every error carries a ``context`` dict so callers can build a corrective
    message (which feature, required vs. actual length, ...).
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context: Dict[str, Any] = context


class EmptyInputError(ForecastError):
    """Raised when an operation receives no observations."""


class InsufficientDataError(ForecastError):
    """Raised when a series is too short for the requested window."""

    def __init__(self, message: str, required: int, actual: int, **context: Any):
        super().__init__(message, required=required, actual=actual, **context)
        self.required = required
        self.actual = actual


class TrainingError(ForecastError):
    """Raised when a forecaster cannot be trained or used."""


class MissingStatsError(ForecastError):
    """Raised when normalization statistics for a feature are absent."""

    def __init__(self, feature: str, message: Optional[str] = None):
        super().__init__(
            message or f"No normalization statistics for feature '{feature}'",
            feature=feature,
        )
        self.feature = feature


class LengthMismatchError(ForecastError):
    """Raised when predictions and actual values differ in length."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Predictions and actual values must have the same length "
            f"({expected} != {actual})",
            expected=expected,
            actual=actual,
        )
        self.expected = expected
        self.actual = actual


@dataclass
class RecoveryContext:
    """Captures context of a failed run for logging and debugging."""
    run_id: str
    timestamp: float = field(default_factory=time.time)
    exception_type: str = ""
    exception_message: str = ""
    stack_trace: str = ""
    error_context: Dict[str, Any] = field(default_factory=dict)
    local_variables: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, run_id: str, exc: BaseException) -> "RecoveryContext":
        """
        Create context from an exception.
        Captures locals from the frame where the exception was raised.
        """
        stack_trace = "".join(traceback.format_tb(exc.__traceback__))

        locals_repr = {}
        if exc.__traceback__:
            ptr = exc.__traceback__
            while ptr.tb_next:
                ptr = ptr.tb_next
            frame = ptr.tb_frame

            for k, v in frame.f_locals.items():
                try:
                    val_str = str(v)
                    if len(val_str) > 500:
                        val_str = val_str[:500] + "..."
                    locals_repr[k] = val_str
                except Exception:
                    locals_repr[k] = "<unprintable>"

        return cls(
            run_id=run_id,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            stack_trace=stack_trace,
            error_context=dict(getattr(exc, "context", {})),
            local_variables=locals_repr,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
            "exception_message": self.exception_message,
            "stack_trace": self.stack_trace,
            "error_context": self.error_context,
            "local_variables": self.local_variables,
        }
