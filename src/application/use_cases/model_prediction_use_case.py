"""
Application Use Case - Model Prediction

Provides inference over trained forecasting networks. The use case
orchestrates:
  * Batched inference over prepared windows
  * The validation table comparing held-out actuals with predictions
  * Iterative multi-step forecast rollout seeded from training metadata
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Dict, List, Sequence

import numpy as np
import structlog

from src.application.use_cases.data_preprocessing_use_case import (
    DataPreprocessingUseCase,
)
from src.application.use_cases.model_factory import KerasModelFactory
from src.domain.entities.errors import InsufficientHistoryError, ModelNotFoundError
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.model_metadata import ModelMetadata
from src.domain.entities.prediction import ForecastPoint, ValidationResult
from src.domain.entities.session import ForecastingSession
from src.domain.entities.time_series import YearlyObservation

logger = structlog.get_logger(__name__)

MIN_FORECAST_HORIZON = 1
MAX_FORECAST_HORIZON = 10


def display_round(value: float) -> int:
    """Round half up, the way counts are shown to users."""
    return int(math.floor(value + 0.5))


class ModelPredictionUseCase:
    """Coordinates inference and forecast rollout for trained models."""

    def __init__(self, model_factory: KerasModelFactory):
        self.model_factory = model_factory

    def predict(
        self, model: Any, architecture: ArchitectureTag, windows: np.ndarray
    ) -> np.ndarray:
        """Return one normalized prediction per input window."""
        windows = np.asarray(windows, dtype=np.float32)
        if len(windows) == 0:
            return np.empty((0,), dtype=np.float64)

        inputs = self.model_factory.shape_inputs(architecture, windows)
        output = model.predict(inputs, verbose=0)
        return np.asarray(output, dtype=np.float64).reshape(-1)

    def validation_report(
        self,
        actual: Sequence[float],
        predicted: Sequence[float],
        series: Sequence[YearlyObservation],
        lookback: int,
        split_index: int,
    ) -> List[ValidationResult]:
        """
        Build the validation table for the held-out tail.

        ``actual`` and ``predicted`` are denormalized values aligned with the
        windows of ``series``; window ``i`` targets ``series[i + lookback]``,
        which supplies the year label.
        """
        rows: List[ValidationResult] = []
        for i in range(split_index, len(actual)):
            data_index = i + lookback
            if data_index >= len(series):
                break
            rows.append(
                ValidationResult(
                    year=series[data_index].year,
                    actual=display_round(actual[i]),
                    predicted=display_round(predicted[i]),
                    error=display_round(predicted[i] - actual[i]),
                )
            )
        return rows

    async def forecast(
        self, session: ForecastingSession, horizon: int
    ) -> List[ForecastPoint]:
        """
        Forecast ``horizon`` years past the last training year.

        Raises:
            ValueError: If ``horizon`` is outside 1..10
            ModelNotFoundError: If the session holds no model
            InsufficientHistoryError: If the seed window is too short
        """
        if not MIN_FORECAST_HORIZON <= horizon <= MAX_FORECAST_HORIZON:
            raise ValueError(
                f"Forecast horizon must be between {MIN_FORECAST_HORIZON} and "
                f"{MAX_FORECAST_HORIZON}, got {horizon}"
            )
        if not session.has_model:
            raise ModelNotFoundError(session.architecture.value)

        logger.info(
            "prediction.forecast.start",
            architecture=session.architecture.value,
            horizon=horizon,
            last_year=session.metadata.last_year,
        )

        points = await asyncio.to_thread(
            self.rollout, session.model, session.metadata, horizon
        )

        logger.info(
            "prediction.forecast.completed",
            architecture=session.architecture.value,
            horizon=horizon,
            first_year=points[0].year,
            last_year=points[-1].year,
        )
        return points

    def rollout(
        self, model: Any, metadata: ModelMetadata, horizon: int
    ) -> List[ForecastPoint]:
        """
        Iterative multi-step forecast.

        Each step normalizes the current window with the bounds captured at
        training time, predicts one value, emits it rounded and clamped to
        zero, then slides the window using the unrounded value so rounding
        error does not compound across steps.
        """
        lookback = metadata.lookback
        features = list(metadata.features)
        target_bounds = metadata.target_bounds()

        seed = list(metadata.last_data)
        if len(seed) < lookback:
            raise InsufficientHistoryError(available=len(seed), lookback=lookback)

        window: List[Dict[str, float]] = [
            {name: float(getattr(row, name)) for name in features}
            for row in seed[-lookback:]
        ]

        points: List[ForecastPoint] = []
        for step in range(1, horizon + 1):
            normalized = [
                [
                    DataPreprocessingUseCase.scale(row[name], metadata.bounds[name])
                    for name in features
                ]
                for row in window
            ]
            x = np.array([normalized], dtype=np.float32)
            normalized_prediction = float(
                self.predict(model, metadata.model_type, x)[0]
            )
            value = max(
                0.0,
                DataPreprocessingUseCase.denormalize(
                    normalized_prediction, target_bounds.min, target_bounds.max
                ),
            )

            points.append(
                ForecastPoint(
                    year=metadata.last_year + step,
                    emigrants=display_round(value),
                )
            )

            next_row = dict(window[-1])
            next_row[metadata.target] = value
            window = window[1:] + [next_row]

        return points
