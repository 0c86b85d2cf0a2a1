from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from src.application.use_cases.model_factory import KerasModelFactory
from src.application.use_cases.model_prediction_use_case import (
    ModelPredictionUseCase,
    display_round,
)
from src.domain.entities.errors import InsufficientHistoryError, ModelNotFoundError
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.session import ForecastingSession
from src.domain.entities.time_series import YearlyObservation


@pytest.fixture()
def use_case() -> ModelPredictionUseCase:
    return ModelPredictionUseCase(model_factory=KerasModelFactory())


@pytest.mark.parametrize(
    "value, expected", [(2.5, 3), (2.49, 2), (-2.5, -2), (-2.51, -3), (0.0, 0)]
)
def test_display_round_rounds_half_up(value, expected) -> None:
    assert display_round(value) == expected


def test_predict_flattens_windows_for_mlp(use_case, constant_model) -> None:
    windows = np.zeros((2, 3, 1), dtype=np.float32)

    output = use_case.predict(constant_model, ArchitectureTag.MLP, windows)

    assert constant_model.calls[0].shape == (2, 3)
    assert output.shape == (2,)
    assert output.dtype == np.float64


def test_predict_empty_windows_skips_model(use_case, constant_model) -> None:
    output = use_case.predict(
        constant_model, ArchitectureTag.LSTM, np.empty((0, 3, 1), dtype=np.float32)
    )

    assert output.shape == (0,)
    assert constant_model.calls == []


def test_validation_report_labels_rows_with_target_years(use_case) -> None:
    series = [YearlyObservation(year=2000 + i, emigrants=float(i)) for i in range(10)]
    actual = [float(i + 3) for i in range(7)]
    predicted = [value + 0.6 for value in actual]

    rows = use_case.validation_report(
        actual=actual, predicted=predicted, series=series, lookback=3, split_index=5
    )

    assert [row.year for row in rows] == [2008, 2009]
    assert rows[0].actual == 8
    assert rows[0].predicted == 9
    assert rows[0].error == 1


def test_rollout_emits_consecutive_years(use_case, sample_metadata, constant_model):
    points = use_case.rollout(constant_model, sample_metadata, horizon=5)

    assert [point.year for point in points] == [2021, 2022, 2023, 2024, 2025]
    assert all(point.emigrants == 150 for point in points)
    assert all(point.is_forecast for point in points)


def test_rollout_slides_window_with_predictions(
    use_case, sample_metadata, constant_model
) -> None:
    use_case.rollout(constant_model, sample_metadata, horizon=2)

    first, second = constant_model.calls
    np.testing.assert_allclose(first[0, :, 0], [0.5, 0.6, 0.7], rtol=1e-6)
    np.testing.assert_allclose(second[0, :, 0], [0.6, 0.7, 0.5], rtol=1e-6)


def test_rollout_clamps_negative_predictions(
    use_case, sample_metadata, constant_model
) -> None:
    constant_model.value = -3.0

    points = use_case.rollout(constant_model, sample_metadata, horizon=3)

    assert [point.emigrants for point in points] == [0, 0, 0]
    # The clamped value feeds the next window.
    np.testing.assert_allclose(constant_model.calls[1][0, -1, 0], -1.0, rtol=1e-6)


def test_rollout_requires_lookback_history(
    use_case, sample_metadata, constant_model
) -> None:
    metadata = replace(sample_metadata, last_data=sample_metadata.last_data[:2])

    with pytest.raises(InsufficientHistoryError):
        use_case.rollout(constant_model, metadata, horizon=1)


@pytest.mark.asyncio
async def test_forecast_uses_session_model(
    use_case, sample_metadata, constant_model
) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)
    session.activate(constant_model, sample_metadata)

    points = await use_case.forecast(session, horizon=10)

    assert len(points) == 10
    assert points[-1].year == 2030


@pytest.mark.asyncio
@pytest.mark.parametrize("horizon", [0, 11])
async def test_forecast_rejects_out_of_range_horizon(use_case, horizon) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)

    with pytest.raises(ValueError, match="between 1 and 10"):
        await use_case.forecast(session, horizon=horizon)


@pytest.mark.asyncio
async def test_forecast_requires_model(use_case) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.MLP)

    with pytest.raises(ModelNotFoundError):
        await use_case.forecast(session, horizon=3)
