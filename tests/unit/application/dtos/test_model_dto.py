from __future__ import annotations

from src.application.dtos.model_dto import ModelSummaryDTO
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.session import ForecastingSession


def test_summary_without_model() -> None:
    session = ForecastingSession(architecture=ArchitectureTag.MLP)

    summary = ModelSummaryDTO.from_session(session)

    assert summary.has_model is False
    assert summary.metrics is None
    assert summary.validation_results == []


def test_summary_with_model(sample_metadata) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)
    session.activate(object(), sample_metadata)

    summary = ModelSummaryDTO.from_session(session)

    assert summary.has_model is True
    assert summary.lookback == 3
    assert summary.last_year == 2020
    assert summary.metrics.accuracy == sample_metadata.metrics.accuracy
    assert summary.best_accuracy == sample_metadata.metrics.accuracy
    assert len(summary.validation_results) == len(sample_metadata.validation_results)
