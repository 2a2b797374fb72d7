"""Training orchestration: normalize, window, split and fit."""

from datetime import datetime
from typing import Callable, Optional, Tuple
import logging
import math
import uuid

from ..data.normalizer import Normalizer
from ..data.structs import FeatureStats, Series, TrainingProgress, TrainingSummary
from ..data.windowing import TrainingSet, Windower
from ..models.base_model import BaseForecaster, TrainingRun
from ..models.config import ForecasterConfig
from ..models.keras_forecaster import create_forecaster
from ..utils.error_handling import RecoveryContext, TrainingError
from .config import PipelineConfig
from .state import PipelineState

logger = logging.getLogger(__name__)

ForecasterFactory = Callable[[ForecasterConfig], BaseForecaster]


class TrainingSession:
    """
    A single training run of a Trainer.

    Iterate it with ``async for`` to receive TrainingProgress events, then
    ``await session.result()`` for the PipelineState. ``result()`` alone
    drains the remaining events.
    """

    def __init__(
        self,
        run_id: str,
        state: PipelineState,
        run: TrainingRun,
        validation: Optional[TrainingSet],
        n_train: int,
    ):
        self.run_id = run_id
        self.state = state
        self.summary: Optional[TrainingSummary] = None
        self._run = run
        self._validation = validation
        self._n_train = n_train

    def __aiter__(self) -> "TrainingSession":
        self._run.__aiter__()
        return self

    async def __anext__(self) -> TrainingProgress:
        try:
            return await self._run.__anext__()
        except StopAsyncIteration:
            raise
        except Exception as e:
            self._log_failure(e)
            raise

    async def result(self) -> PipelineState:
        """Finish training and return the trained pipeline state."""
        try:
            await self._run.wait()
        except Exception as e:
            self._log_failure(e)
            raise

        self.state.training_history = list(self._run.forecaster.training_history)
        self.state.trained_at = datetime.now()
        if self._validation is not None:
            self.summary = self._summarize(self._validation)
            self.state.summary = self.summary
        return self.state

    def _summarize(self, validation: TrainingSet) -> TrainingSummary:
        scores = self.state.forecaster.evaluate(validation.windows, validation.labels)
        target_scale = self.state.stats[self.state.target].scale
        summary = TrainingSummary(
            validation_loss=scores["loss"],
            validation_mae=scores["mae"],
            validation_rmse=math.sqrt(scores["loss"]),
            denormalized_mae=scores["mae"] * target_scale,
            n_train=self._n_train,
            n_validation=len(validation),
        )
        logger.info(
            "Training complete",
            extra={"props": {"run_id": self.run_id, **summary.to_dict()}},
        )
        return summary

    def _log_failure(self, exc: Exception) -> None:
        context = RecoveryContext.from_exception(self.run_id, exc)
        logger.error(
            f"Training run {self.run_id} failed: {exc}",
            extra={"props": context.to_dict()},
        )


class Trainer:
    """
    Runs the training half of the pipeline for one PipelineConfig.

    A Trainer keeps at most one live forecaster: starting a new run releases
    the model of the previous one.
    """

    def __init__(
        self,
        config: PipelineConfig,
        forecaster_factory: ForecasterFactory = create_forecaster,
        windower: Optional[Windower] = None,
    ):
        self.config = config
        self.forecaster_factory = forecaster_factory
        self.windower = windower or Windower()
        self.normalizer: Normalizer = self.windower.normalizer
        self.forecaster: Optional[BaseForecaster] = None

    def prepare(self, series: Series) -> Tuple[Series, FeatureStats, TrainingSet]:
        """
        Sort, fit statistics once and build the normalized training set.

        Raises:
            EmptyInputError: If the series is empty
            InsufficientDataError: If the series is not longer than the window
        """
        cfg = self.config
        series = series.sorted()
        stats = self.normalizer.fit(series, cfg.stat_features)
        training_set = self.windower.build_training_set(
            series, cfg.features, cfg.target, cfg.window_size, stats
        )
        logger.info(
            f"Prepared {len(training_set)} windows from {len(series)} observations "
            f"(target={cfg.target}, features={cfg.features}, window_size={cfg.window_size})"
        )
        return series, stats, training_set

    def train(self, series: Series) -> TrainingSession:
        """
        Start a training run over ``series``.

        Validation failures are raised here, before any model is built and
        before the previous forecaster is released.
        """
        run_id = uuid.uuid4().hex[:12]
        try:
            _, stats, training_set = self.prepare(series)
            train, validation = training_set.split(self.config.training_ratio)
            if len(train) == 0:
                raise TrainingError(
                    f"Training ratio {self.config.training_ratio} leaves no training windows "
                    f"out of {len(training_set)}",
                    n_windows=len(training_set),
                    training_ratio=self.config.training_ratio,
                )

            forecaster = self.forecaster_factory(self.config.forecaster)
            # the previous model stays usable until the new inputs are accepted
            forecaster._validate_training_data(train.windows, train.labels)
            if validation is not None:
                forecaster._validate_training_data(validation.windows, validation.labels)

            if self.forecaster is not None:
                self.forecaster.release()
            self.forecaster = forecaster

            run = forecaster.train(
                train.windows,
                train.labels,
                validation_data=(validation.windows, validation.labels) if validation else None,
            )
        except Exception as e:
            context = RecoveryContext.from_exception(run_id, e)
            logger.error(f"Could not start training run {run_id}: {e}", extra={"props": context.to_dict()})
            raise

        logger.info(
            f"Training with {len(train)} samples, validating with "
            f"{len(validation) if validation else 0} samples"
        )
        state = PipelineState(
            stats=stats,
            features=list(self.config.features),
            target=self.config.target,
            window_size=self.config.window_size,
            forecaster_config=self.config.forecaster,
            forecaster=forecaster,
        )
        return TrainingSession(run_id, state, run, validation, n_train=len(train))

    async def fit(self, series: Series) -> PipelineState:
        """Train to completion and return the pipeline state."""
        return await self.train(series).result()
