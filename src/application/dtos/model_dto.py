"""
Model DTOs - Application Layer

This module defines Data Transfer Objects (DTOs) describing the model held by
a forecasting session and the outcome of lifecycle actions (load, upload,
delete).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.application.dtos.training_dto import MetricsDTO
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.prediction import ValidationResult
from src.domain.entities.session import ForecastingSession


class ValidationRowDTO(BaseModel):
    """Actual vs. predicted emigrants for one held-out year."""

    year: int
    actual: int
    predicted: int
    error: int

    @classmethod
    def from_entity(cls, row: ValidationResult) -> "ValidationRowDTO":
        return cls(**row.to_dict())


class ModelSummaryDTO(BaseModel):
    """DTO summarizing the current model of one architecture."""

    architecture: ArchitectureTag
    has_model: bool
    trained_at: Optional[str] = None
    lookback: Optional[int] = None
    last_year: Optional[int] = None
    epochs: Optional[int] = None
    data_points: Optional[int] = None
    layers: Optional[Dict[str, Any]] = None
    metrics: Optional[MetricsDTO] = None
    validation_metrics: Optional[MetricsDTO] = None
    validation_results: List[ValidationRowDTO] = Field(default_factory=list)
    best_accuracy: Optional[float] = Field(
        None, description="Best accuracy seen by this session"
    )

    @classmethod
    def from_session(cls, session: ForecastingSession) -> "ModelSummaryDTO":
        metadata = session.metadata
        if not session.has_model or metadata is None:
            return cls(
                architecture=session.architecture,
                has_model=False,
                best_accuracy=session.best_accuracy,
            )
        return cls(
            architecture=session.architecture,
            has_model=True,
            trained_at=metadata.trained_at,
            lookback=metadata.lookback,
            last_year=metadata.last_year,
            epochs=metadata.epochs,
            data_points=metadata.data_points,
            layers=metadata.architecture,
            metrics=MetricsDTO.from_entity(metadata.metrics),
            validation_metrics=MetricsDTO.from_entity(metadata.validation_metrics),
            validation_results=[
                ValidationRowDTO.from_entity(row) for row in metadata.validation_results
            ],
            best_accuracy=session.best_accuracy,
        )


class ActionResultDTO(BaseModel):
    """Outcome of a model lifecycle action."""

    architecture: ArchitectureTag
    message: str
    accuracy: Optional[float] = None
