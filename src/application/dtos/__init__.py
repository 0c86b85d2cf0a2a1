"""
DTOs Package - Application Layer

This package contains Data Transfer Objects (DTOs) used for data exchange
between the application layer and the presentation layer.
"""

from .model_dto import ActionResultDTO, ModelSummaryDTO, ValidationRowDTO
from .prediction_dto import ForecastPointDTO, ForecastRequestDTO, ForecastResponseDTO
from .training_dto import (
    CancelTrainingResponseDTO,
    DenseLayerDTO,
    MetricsDTO,
    RecurrentLayerDTO,
    SexBreakdownRecordDTO,
    TrainingJobDTO,
    TrainingProgressDTO,
    TrainingRequestDTO,
)

__all__ = [
    "ActionResultDTO",
    "ModelSummaryDTO",
    "ValidationRowDTO",
    "ForecastPointDTO",
    "ForecastRequestDTO",
    "ForecastResponseDTO",
    "CancelTrainingResponseDTO",
    "DenseLayerDTO",
    "MetricsDTO",
    "RecurrentLayerDTO",
    "SexBreakdownRecordDTO",
    "TrainingJobDTO",
    "TrainingProgressDTO",
    "TrainingRequestDTO",
]
