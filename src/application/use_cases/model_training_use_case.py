"""
Application Use Cases - Model Training

This module contains the use case for training forecasting networks
(LSTM/MLP). It handles data preparation, model creation, training with a
chronological hold-out, evaluation and persistence of the result.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
import structlog
from tensorflow.keras.callbacks import Callback  # type: ignore

from src.application.use_cases.data_preprocessing_use_case import (
    DataPreprocessingUseCase,
    PreparedSeries,
    compute_metrics,
    metrics_or_none,
)
from src.application.use_cases.model_factory import KerasModelFactory
from src.application.use_cases.model_persistence_use_case import (
    ModelPersistenceUseCase,
)
from src.application.use_cases.model_prediction_use_case import (
    ModelPredictionUseCase,
)
from src.domain.entities.errors import (
    InsufficientDataError,
    ModelValidationError,
    TrainingCancelledError,
    TrainingTimeoutError,
)
from src.domain.entities.model import Architecture, default_architecture
from src.domain.entities.model_metadata import ModelMetadata
from src.domain.entities.session import ForecastingSession
from src.domain.entities.training_job import TrainingProgress
from src.domain.ports.training_orchestrator import CancellationToken
from src.domain.services.model_validator import validate_training_parameters

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[TrainingProgress], None]

DEFAULT_EPOCHS = 100
DEFAULT_VALIDATION_SPLIT = 0.2
DEFAULT_PROGRESS_INTERVAL = 20
MAX_BATCH_SIZE = 32
# Fewer points leave a degenerate train/validation split.
MIN_EXTRA_POINTS = 5


def chronological_split_index(samples: int, validation_split: float) -> int:
    """Index of the first held-out window; the tail is the validation set."""
    return max(1, int(math.floor(samples * (1.0 - validation_split))))


@dataclass
class TrainingHistory:
    """Per-epoch losses from one fit."""

    epochs_trained: int
    history: Dict[str, List[float]] = field(default_factory=dict)


class EpochControlCallback(Callback):
    """
    Reports coarse progress and stops training on cancellation or timeout.

    Runs in the training thread; the checks happen at epoch boundaries only.
    """

    def __init__(
        self,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.progress_interval = max(1, progress_interval)
        self.on_progress = on_progress
        self.cancel_token = cancel_token
        self.deadline = deadline
        self.clock = clock
        self.epochs_completed = 0
        self.cancelled = False
        self.timed_out = False

    def on_epoch_end(self, epoch, logs=None):
        logs = logs or {}
        self.epochs_completed = epoch + 1

        if self.on_progress is not None and epoch % self.progress_interval == 0:
            self.on_progress(
                TrainingProgress(
                    epoch=epoch + 1,
                    loss=float(logs.get("loss", float("nan"))),
                    mae=float(logs.get("mae", float("nan"))),
                    val_loss=_optional_float(logs.get("val_loss")),
                    val_mae=_optional_float(logs.get("val_mae")),
                )
            )

        if self.cancel_token is not None and self.cancel_token.is_set():
            self.cancelled = True
            self.model.stop_training = True
        elif self.deadline is not None and self.clock() >= self.deadline:
            self.timed_out = True
            self.model.stop_training = True


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


class ModelTrainingUseCase:
    """Use case for training forecasting networks end to end."""

    def __init__(
        self,
        persistence: ModelPersistenceUseCase,
        prediction: ModelPredictionUseCase,
        model_factory: KerasModelFactory,
        preprocessing: Optional[DataPreprocessingUseCase] = None,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the model training use case.

        Args:
            persistence: Stores the trained model and its metadata
            prediction: Inference used for evaluation after training
            model_factory: Builds networks from architecture descriptors
            preprocessing: Data preparation chain (default lookback 3)
            progress_interval: Epochs between progress reports
            timeout_seconds: Wall-clock ceiling for one fit, None to disable
        """
        self.persistence = persistence
        self.prediction = prediction
        self.model_factory = model_factory
        self.preprocessing = preprocessing or DataPreprocessingUseCase()
        self.progress_interval = progress_interval
        self.timeout_seconds = timeout_seconds

    async def execute(
        self,
        session: ForecastingSession,
        records: Sequence[Any],
        architecture: Optional[Architecture] = None,
        epochs: int = DEFAULT_EPOCHS,
        validation_split: float = DEFAULT_VALIDATION_SPLIT,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        prepared: Optional[PreparedSeries] = None,
    ) -> ModelMetadata:
        """
        Train a model for the session's architecture and make it current.

        Args:
            session: Session whose architecture is trained and updated
            records: Upstream ``{year, male, female}`` rows
            architecture: Layer layout; the canonical one when omitted
            epochs: Number of training epochs
            validation_split: Fraction of windows held out at the end
            on_progress: Receives coarse progress snapshots
            cancel_token: Checked at every epoch boundary
            prepared: Output of ``ensure_trainable`` for ``records``, when the
                caller already has it

        Returns:
            Metadata of the trained model

        Raises:
            InsufficientDataError: When the series is too short
            ModelValidationError: When the configuration is invalid
            TrainingCancelledError: When cancelled between epochs
            TrainingTimeoutError: When the wall-clock ceiling is reached
            PersistenceError: When the trained model cannot be stored
        """
        descriptor = self.validate_request(
            session, architecture, epochs=epochs, validation_split=validation_split
        )

        logger.info(
            "training.start",
            architecture=descriptor.tag.value,
            records=len(records),
            epochs=epochs,
            validation_split=validation_split,
        )

        if prepared is None:
            prepared = await asyncio.to_thread(self.ensure_trainable, records)

        start_time = time.monotonic()
        model, history = await asyncio.to_thread(
            self._fit,
            descriptor,
            prepared.x,
            prepared.y,
            epochs,
            validation_split,
            on_progress,
            cancel_token,
        )
        training_duration = time.monotonic() - start_time

        metadata = await asyncio.to_thread(
            self._evaluate,
            model,
            descriptor,
            prepared,
            epochs,
            validation_split,
        )

        metadata.best_accuracy = session.best_with(metadata.metrics.accuracy)
        await self.persistence.save(model, metadata)
        session.activate(model, metadata)

        logger.info(
            "training.completed",
            architecture=descriptor.tag.value,
            epochs_trained=history.epochs_trained,
            training_duration=training_duration,
            accuracy=metadata.metrics.accuracy,
            best_accuracy=session.best_accuracy,
        )
        return metadata

    def validate_request(
        self,
        session: ForecastingSession,
        architecture: Optional[Architecture] = None,
        epochs: int = DEFAULT_EPOCHS,
        validation_split: float = DEFAULT_VALIDATION_SPLIT,
    ) -> Architecture:
        """
        Resolve the descriptor for a run and check every setting.

        Returns:
            The descriptor to train, the canonical one when none was given

        Raises:
            ModelValidationError: When the descriptor targets another
                architecture or a layer or hyperparameter is invalid
        """
        descriptor = architecture or default_architecture(session.architecture)
        if descriptor.tag != session.architecture:
            raise ModelValidationError(
                "Architecture descriptor does not match the session.",
                details={
                    "session": session.architecture.value,
                    "descriptor": descriptor.tag.value,
                },
            )

        validate_training_parameters(
            lookback=self.preprocessing.lookback,
            epochs=epochs,
            validation_split=validation_split,
            learning_rate=self.model_factory.learning_rate,
        )
        self.model_factory.validate(descriptor)
        return descriptor

    def ensure_trainable(self, records: Sequence[Any]) -> PreparedSeries:
        """
        Prepare ``records`` and check there is enough history to train.

        Raises:
            InsufficientDataError: With fewer than ``lookback + 5`` cleaned years
        """
        prepared = self.preprocessing.execute(records)
        required = self.preprocessing.lookback + MIN_EXTRA_POINTS
        if len(prepared.series) < required:
            logger.warning(
                "training.insufficient_data",
                available=len(prepared.series),
                required=required,
            )
            raise InsufficientDataError(
                available=len(prepared.series), required=required
            )
        return prepared

    def _fit(
        self,
        descriptor: Architecture,
        x: np.ndarray,
        y: np.ndarray,
        epochs: int,
        validation_split: float,
        on_progress: Optional[ProgressCallback],
        cancel_token: Optional[CancellationToken],
    ):
        model = self.model_factory.build(
            descriptor, lookback=x.shape[1], n_features=x.shape[2]
        )
        inputs = self.model_factory.shape_inputs(descriptor.tag, x)
        history = self.train(
            model,
            inputs,
            y,
            epochs=epochs,
            validation_split=validation_split,
            on_epoch_progress=on_progress,
            cancel_token=cancel_token,
        )
        return model, history

    def train(
        self,
        model: Any,
        inputs: np.ndarray,
        targets: np.ndarray,
        epochs: int = DEFAULT_EPOCHS,
        validation_split: float = DEFAULT_VALIDATION_SPLIT,
        on_epoch_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> TrainingHistory:
        """
        Fit a compiled model, holding out the last windows for validation.

        Blocking; callers run it off the event loop.
        """
        samples = len(inputs)
        split_index = chronological_split_index(samples, validation_split)
        x_train, x_val = inputs[:split_index], inputs[split_index:]
        y_train, y_val = targets[:split_index], targets[split_index:]

        deadline = (
            time.monotonic() + self.timeout_seconds if self.timeout_seconds else None
        )
        control = EpochControlCallback(
            progress_interval=self.progress_interval,
            on_progress=on_epoch_progress,
            cancel_token=cancel_token,
            deadline=deadline,
        )

        batch_size = min(MAX_BATCH_SIZE, samples)
        logger.info(
            "training.fit.start",
            epochs=epochs,
            batch_size=batch_size,
            train_sequences=len(x_train),
            val_sequences=len(x_val),
        )

        history = model.fit(
            x_train,
            y_train,
            epochs=epochs,
            batch_size=batch_size,
            validation_data=(x_val, y_val) if len(x_val) else None,
            callbacks=[control],
            shuffle=False,  # Important for time series
            verbose=0,
        )

        if control.cancelled:
            logger.info("training.cancelled", epochs_completed=control.epochs_completed)
            raise TrainingCancelledError(epochs_completed=control.epochs_completed)
        if control.timed_out:
            logger.warning(
                "training.timeout",
                timeout_seconds=self.timeout_seconds,
                epochs_completed=control.epochs_completed,
            )
            raise TrainingTimeoutError(
                timeout_seconds=self.timeout_seconds,
                epochs_completed=control.epochs_completed,
            )

        return TrainingHistory(
            epochs_trained=control.epochs_completed,
            history={
                key: [float(value) for value in values]
                for key, values in history.history.items()
            },
        )

    def _evaluate(
        self,
        model: Any,
        descriptor: Architecture,
        prepared: PreparedSeries,
        epochs: int,
        validation_split: float,
    ) -> ModelMetadata:
        """Predict every window, score the run and assemble its metadata."""

        preprocessing = self.preprocessing
        target = preprocessing.target_name
        bounds = prepared.bounds[target]

        normalized_predictions = self.prediction.predict(
            model, descriptor.tag, prepared.x
        )
        predictions = [
            preprocessing.denormalize(value, bounds.min, bounds.max)
            for value in normalized_predictions
        ]
        actual_values = [
            preprocessing.denormalize(value, bounds.min, bounds.max)
            for value in prepared.y
        ]

        split_index = chronological_split_index(len(actual_values), validation_split)
        validation_results = self.prediction.validation_report(
            actual=actual_values,
            predicted=predictions,
            series=prepared.series,
            lookback=preprocessing.lookback,
            split_index=split_index,
        )

        metrics = compute_metrics(actual_values, predictions)
        validation_metrics = metrics_or_none(
            actual_values[split_index:], predictions[split_index:]
        )

        logger.info(
            "training.evaluation.completed",
            architecture=descriptor.tag.value,
            metrics=metrics.to_dict(),
            validation_metrics=(
                validation_metrics.to_dict() if validation_metrics else None
            ),
        )

        return ModelMetadata(
            model_type=descriptor.tag,
            lookback=preprocessing.lookback,
            features=list(preprocessing.feature_names),
            target=target,
            bounds=dict(prepared.bounds),
            last_year=prepared.series[-1].year,
            last_data=list(prepared.series[-preprocessing.lookback :]),
            metrics=metrics,
            trained_at=datetime.now(timezone.utc).isoformat(),
            validation_results=validation_results,
            validation_metrics=validation_metrics,
            architecture=descriptor.describe(),
            epochs=epochs,
            validation_split=validation_split,
            data_points=len(prepared.series),
        )
