"""Base forecaster interface for all forecasting backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
import logging
import time

import numpy as np

from ..data.structs import TrainingProgress
from ..evaluation.metrics import mae, mse
from .config import ForecasterConfig
from ..utils.error_handling import TrainingError

logger = logging.getLogger(__name__)


@dataclass
class ModelArtifact:
    """Container for forecaster metadata."""
    model_id: str
    model_type: str
    config: Dict[str, Any]
    input_shape: Optional[Tuple[int, int]] = None
    training_history: List[Dict[str, Any]] = field(default_factory=list)
    training_time: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert artifact metadata to dictionary."""
        return {
            "model_id": self.model_id,
            "model_type": self.model_type,
            "config": self.config,
            "input_shape": list(self.input_shape) if self.input_shape else None,
            "training_history": self.training_history,
            "training_time": self.training_time,
            "created_at": self.created_at.isoformat(),
        }


class TrainingRun:
    """
    Lazy, finite, single-pass sequence of training progress events.

    Iterate with ``async for`` to observe epochs as they finish, or
    ``await run.wait()`` to drain it. Training only advances while the run is
    being consumed; once exhausted it cannot be restarted.
    """

    def __init__(self, forecaster: "BaseForecaster", events: AsyncIterator[TrainingProgress]):
        self.forecaster = forecaster
        self.history: List[TrainingProgress] = []
        self._events = events
        self._started = False
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def __aiter__(self) -> "TrainingRun":
        if self._started:
            raise RuntimeError("A training run can only be iterated once")
        self._started = True
        return self

    async def __anext__(self) -> TrainingProgress:
        if self._finished:
            raise StopAsyncIteration
        try:
            event = await self._events.__anext__()
        except StopAsyncIteration:
            self._finished = True
            raise
        self.history.append(event)
        return event

    async def wait(self) -> "BaseForecaster":
        """Consume the remaining events and return the fitted forecaster."""
        if not self._started:
            self.__aiter__()
        while not self._finished:
            try:
                await self.__anext__()
            except StopAsyncIteration:
                break
        return self.forecaster


class BaseForecaster(ABC):
    """
    Trainable function mapping a window to a scalar prediction.

    Subclasses own exactly one backend model at a time: a new training run
    releases the previous model before building a fresh one.
    """

    def __init__(
        self,
        config: Optional[ForecasterConfig] = None,
        model_id: Optional[str] = None,
    ):
        self.config = config or ForecasterConfig()
        self.model_id = model_id or self._generate_model_id()
        self.model_object: Any = None
        self.is_fitted: bool = False
        self.input_shape: Optional[Tuple[int, int]] = None
        self.training_history: List[TrainingProgress] = []
        self.training_time: float = 0.0
        self._created_at: datetime = datetime.now()

    @property
    @abstractmethod
    def model_type(self) -> str:
        """Return the model type identifier."""
        pass

    @abstractmethod
    def _build_model(self, input_shape: Tuple[int, int]) -> Any:
        """Create a fresh, untrained backend model."""
        pass

    @abstractmethod
    def _run_epochs(
        self,
        windows: np.ndarray,
        labels: np.ndarray,
        validation_data: Optional[Tuple[np.ndarray, np.ndarray]],
    ) -> AsyncIterator[TrainingProgress]:
        """Train ``self.model_object``, yielding one event per epoch."""
        pass

    @abstractmethod
    def _predict_windows(self, windows: np.ndarray) -> np.ndarray:
        """Predict one normalized scalar per window."""
        pass

    def train(
        self,
        windows: np.ndarray,
        labels: np.ndarray,
        validation_data: Optional[Tuple[np.ndarray, np.ndarray]] = None,
    ) -> TrainingRun:
        """
        Start a training run over (window, label) pairs.

        Args:
            windows: Array of shape (n_samples, window_size, n_features)
            labels: Array of shape (n_samples,)
            validation_data: Optional (windows, labels) for validation loss

        Returns:
            TrainingRun yielding one TrainingProgress per epoch

        Raises:
            TrainingError: If windows is empty or lengths do not match
        """
        X, y = self._validate_training_data(windows, labels)
        val = None
        if validation_data is not None:
            val = self._validate_training_data(*validation_data)
            if val[0].shape[1:] != X.shape[1:]:
                raise TrainingError(
                    f"Validation windows have shape {val[0].shape[1:]}, expected {X.shape[1:]}"
                )

        self.release()
        self.input_shape = (int(X.shape[1]), int(X.shape[2]))
        self.model_object = self._build_model(self.input_shape)
        self.training_history = []
        logger.info(
            f"Training {self.model_type} on {len(X)} windows of shape {self.input_shape} "
            f"for {self.config.epochs} epochs"
        )
        return TrainingRun(self, self._track(X, y, val))

    async def fit(
        self,
        windows: np.ndarray,
        labels: np.ndarray,
        validation_data: Optional[Tuple[np.ndarray, np.ndarray]] = None,
    ) -> "BaseForecaster":
        """Train to completion and return self."""
        return await self.train(windows, labels, validation_data).wait()

    async def _track(self, X, y, val) -> AsyncIterator[TrainingProgress]:
        start = time.perf_counter()
        async for event in self._run_epochs(X, y, val):
            self.training_history.append(event)
            logger.debug(
                f"Epoch {event.epoch_index + 1}/{self.config.epochs} "
                f"loss={event.training_loss:.4f} val_loss={event.validation_loss}"
            )
            yield event
        self.training_time = time.perf_counter() - start
        self.is_fitted = True
        logger.info(f"{self.model_type} trained in {self.training_time:.2f}s")

    def predict(self, window: np.ndarray) -> float:
        """Predict the normalized next value for a single window."""
        window = np.asarray(window, dtype=float)
        if window.ndim == 1:
            window = window.reshape(-1, 1)
        return float(self.predict_batch(window[np.newaxis, ...])[0])

    def predict_batch(self, windows: np.ndarray) -> np.ndarray:
        """Predict one normalized value per window."""
        if not self.is_fitted:
            raise TrainingError("Forecaster not fitted")
        windows = np.asarray(windows, dtype=float)
        if windows.ndim != 3 or tuple(windows.shape[1:]) != tuple(self.input_shape):
            raise TrainingError(
                f"Expected windows of shape (n, {self.input_shape[0]}, {self.input_shape[1]}), "
                f"got {windows.shape}"
            )
        return np.asarray(self._predict_windows(windows), dtype=float).reshape(-1)

    def evaluate(self, windows: np.ndarray, labels: np.ndarray) -> Dict[str, float]:
        """Normalized MSE loss and MAE over held-out windows."""
        X, y = self._validate_training_data(windows, labels)
        preds = self.predict_batch(X)
        return {"loss": mse(preds, y), "mae": mae(preds, y)}

    def release(self) -> None:
        """Discard the current backend model, if any."""
        if self.model_object is not None:
            logger.debug(f"Releasing previous model of {self.model_id}")
        self.model_object = None
        self.is_fitted = False

    def get_artifact(self) -> ModelArtifact:
        return ModelArtifact(
            model_id=self.model_id,
            model_type=self.model_type,
            config=self.config.to_dict(),
            input_shape=self.input_shape,
            training_history=[e.to_dict() for e in self.training_history],
            training_time=self.training_time,
            created_at=self._created_at,
        )

    def _generate_model_id(self) -> str:
        """Generate a unique model ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{self.model_type}_{timestamp}"

    def _validate_training_data(self, windows, labels) -> Tuple[np.ndarray, np.ndarray]:
        X = np.asarray(windows, dtype=float)
        y = np.asarray(labels, dtype=float).reshape(-1)
        if len(X) == 0:
            raise TrainingError("Cannot train on an empty set of windows", n_windows=0)
        if len(X) != len(y):
            raise TrainingError(
                f"Windows ({len(X)}) and labels ({len(y)}) have mismatched lengths",
                n_windows=len(X),
                n_labels=len(y),
            )
        if X.ndim == 2:
            X = X[..., np.newaxis]
        if X.ndim != 3:
            raise TrainingError(f"Windows must be 2- or 3-dimensional, got shape {X.shape}")
        if np.isnan(X).any() or np.isnan(y).any():
            logger.warning("Training data contains NaN values")
        return X, y

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_id='{self.model_id}', "
            f"is_fitted={self.is_fitted})"
        )
