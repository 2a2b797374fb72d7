import os
# JAX backend unless the caller already picked one
os.environ.setdefault("KERAS_BACKEND", "jax")

import asyncio
import json
import logging
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple, Union

import numpy as np
import keras
from keras import layers

from .base_model import BaseForecaster
from .config import ForecasterConfig
from ..data.structs import TrainingProgress

logger = logging.getLogger(__name__)


class KerasForecaster(BaseForecaster):
    """
    Window-to-scalar regressor built with Keras (JAX backend).

    Architectures:
        dense: Flatten -> Dense(32, relu) -> Dense(16, relu) -> Dense(1)
        linear: Flatten -> Dense(1)
        recurrent: LSTM(32) -> Dense(1)
    """

    def __init__(
        self,
        config: Optional[ForecasterConfig] = None,
        model_id: Optional[str] = None,
    ):
        super().__init__(config, model_id)
        self.model_object: Optional[keras.Model] = None

    @property
    def model_type(self) -> str:
        return f"{self.config.architecture}_keras"

    def _build_model(self, input_shape: Tuple[int, int]) -> keras.Model:
        """Build and compile the Keras model for the configured architecture."""
        if self.config.seed is not None:
            keras.utils.set_random_seed(self.config.seed)

        model = keras.Sequential()
        model.add(layers.Input(shape=input_shape))

        architecture = self.config.architecture
        if architecture == "dense":
            model.add(layers.Flatten())
            model.add(layers.Dense(32, activation="relu"))
            model.add(layers.Dense(16, activation="relu"))
        elif architecture == "linear":
            model.add(layers.Flatten())
        elif architecture == "recurrent":
            model.add(layers.LSTM(32, return_sequences=False))
        else:
            raise ValueError(f"Unknown architecture: {architecture}")
        model.add(layers.Dense(1))

        optimizer = keras.optimizers.Adam(learning_rate=self.config.learning_rate)
        model.compile(optimizer=optimizer, loss="mse", metrics=["mae"])
        return model

    async def _run_epochs(
        self,
        windows: np.ndarray,
        labels: np.ndarray,
        validation_data: Optional[Tuple[np.ndarray, np.ndarray]],
    ) -> AsyncIterator[TrainingProgress]:
        X = windows.astype(np.float32)
        y = labels.astype(np.float32).reshape(-1, 1)
        val = None
        if validation_data is not None:
            X_val, y_val = validation_data
            val = (X_val.astype(np.float32), y_val.astype(np.float32).reshape(-1, 1))

        for epoch in range(self.config.epochs):
            # One epoch per worker-thread call keeps the event loop responsive
            history = await asyncio.to_thread(
                self.model_object.fit,
                X, y,
                validation_data=val,
                initial_epoch=epoch,
                epochs=epoch + 1,
                batch_size=self.config.batch_size,
                shuffle=True,
                verbose=0,
            )
            hist = history.history
            val_loss = hist.get("val_loss")
            yield TrainingProgress(
                epoch_index=epoch,
                training_loss=float(hist["loss"][-1]),
                validation_loss=float(val_loss[-1]) if val_loss else None,
            )

    def _predict_windows(self, windows: np.ndarray) -> np.ndarray:
        preds = self.model_object.predict(windows.astype(np.float32), verbose=0)
        return preds.reshape(-1)

    def save_model(self, path: Union[str, Path]) -> None:
        """Save the Keras model and its metadata to a directory."""
        if not self.is_fitted:
            raise ValueError("Cannot save unfitted model")

        save_dir = Path(path)
        save_dir.mkdir(parents=True, exist_ok=True)

        self.model_object.save(save_dir / "model.keras")
        with open(save_dir / "metadata.json", "w") as f:
            json.dump(self.get_artifact().to_dict(), f, indent=2)

        logger.info(f"Model saved to {save_dir}")

    def load_model(self, path: Union[str, Path]) -> "KerasForecaster":
        """Load a model previously written by ``save_model``."""
        load_dir = Path(path)

        with open(load_dir / "metadata.json", "r") as f:
            metadata = json.load(f)

        self.release()
        self.model_object = keras.models.load_model(load_dir / "model.keras")
        self.model_id = metadata["model_id"]
        self.config = ForecasterConfig.from_dict(metadata["config"])
        self.input_shape = tuple(metadata["input_shape"])
        self.training_history = [
            TrainingProgress(**event) for event in metadata["training_history"]
        ]
        self.training_time = metadata["training_time"]
        self.is_fitted = True

        logger.info(f"Model loaded from {load_dir}")
        return self


def create_forecaster(config: Optional[ForecasterConfig] = None, model_id: Optional[str] = None) -> BaseForecaster:
    """Build the forecaster backend for ``config``."""
    return KerasForecaster(config or ForecasterConfig(), model_id=model_id)
