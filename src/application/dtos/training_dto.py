"""
Application DTOs - Training

This module contains Data Transfer Objects (DTOs) for training operations.
DTOs are used to transfer data between layers and define the API contracts.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities.model import (
    Architecture,
    ArchitectureTag,
    DenseLayerConfig,
    FeedForwardArchitecture,
    RecurrentArchitecture,
    RecurrentLayerConfig,
)
from src.domain.entities.training_job import (
    Metrics,
    TrainingJob,
    TrainingProgress,
    TrainingStatus,
)


class SexBreakdownRecordDTO(BaseModel):
    """One upstream row; values are loosely typed and cleaned server-side."""

    year: Union[int, str, None] = Field(..., description="Calendar year")
    male: Union[float, str, None] = Field(None, description="Male emigrants")
    female: Union[float, str, None] = Field(None, description="Female emigrants")


class RecurrentLayerDTO(BaseModel):
    """DTO describing a recurrent layer configuration."""

    units: int = Field(..., description="Number of LSTM units", gt=0)
    dropout: float = Field(
        0.025, description="Input dropout rate of the layer", ge=0.0, lt=1.0
    )


class DenseLayerDTO(BaseModel):
    """DTO describing a dense layer configuration."""

    units: int = Field(..., description="Number of neurons", gt=0)
    activation: str = Field("relu", description="Activation function", min_length=1)
    dropout: float = Field(
        0.2, description="Dropout applied after the layer", ge=0.0, lt=1.0
    )


class TrainingRequestDTO(BaseModel):
    """DTO for training request."""

    records: List[SexBreakdownRecordDTO] = Field(
        ..., min_length=1, description="Yearly male/female emigrant counts"
    )
    epochs: int = Field(default=100, ge=1, le=5000, description="Training epochs")
    validation_split: float = Field(
        default=0.2,
        gt=0.0,
        lt=1.0,
        description="Fraction of the latest windows held out for validation",
    )
    recurrent_layers: Optional[List[RecurrentLayerDTO]] = Field(
        default=None, description="Override of the LSTM layer widths"
    )
    dense_layers: Optional[List[DenseLayerDTO]] = Field(
        default=None, description="Override of the MLP hidden layers"
    )

    def to_architecture(self, tag: ArchitectureTag) -> Optional[Architecture]:
        """Custom layer layout for ``tag``, or None to use the canonical one."""
        if tag == ArchitectureTag.LSTM and self.recurrent_layers:
            return RecurrentArchitecture(
                layers=[
                    RecurrentLayerConfig(units=layer.units, dropout=layer.dropout)
                    for layer in self.recurrent_layers
                ]
            )
        if tag == ArchitectureTag.MLP and self.dense_layers:
            return FeedForwardArchitecture(
                layers=[
                    DenseLayerConfig(
                        units=layer.units,
                        activation=layer.activation,
                        dropout=layer.dropout,
                    )
                    for layer in self.dense_layers
                ]
            )
        return None

    model_config = {
        "json_schema_extra": {
            "example": {
                "records": [
                    {"year": 2015, "male": 48000, "female": 52000},
                    {"year": 2016, "male": 50000, "female": 53000},
                ],
                "epochs": 100,
                "validation_split": 0.2,
            }
        }
    }


class MetricsDTO(BaseModel):
    """DTO for accuracy metrics."""

    mae: float
    rmse: float
    mape: float
    r2: float
    accuracy: float

    @classmethod
    def from_entity(cls, metrics: Optional[Metrics]) -> Optional["MetricsDTO"]:
        if metrics is None:
            return None
        return cls(**metrics.to_dict())


class TrainingProgressDTO(BaseModel):
    """DTO for a training progress snapshot."""

    epoch: int
    loss: float
    mae: float
    val_loss: Optional[float] = None
    val_mae: Optional[float] = None

    @classmethod
    def from_entity(
        cls, progress: Optional[TrainingProgress]
    ) -> Optional["TrainingProgressDTO"]:
        if progress is None:
            return None
        return cls(
            epoch=progress.epoch,
            loss=progress.loss,
            mae=progress.mae,
            val_loss=progress.val_loss,
            val_mae=progress.val_mae,
        )


class TrainingJobDTO(BaseModel):
    """DTO for training job status and details."""

    id: UUID
    architecture: ArchitectureTag
    status: TrainingStatus
    epochs: int

    progress: Optional[TrainingProgressDTO] = None
    metrics: Optional[MetricsDTO] = None

    error: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None

    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    @classmethod
    def from_entity(cls, job: TrainingJob) -> "TrainingJobDTO":
        return cls(
            id=job.id,
            architecture=job.architecture,
            status=job.status,
            epochs=job.epochs,
            progress=TrainingProgressDTO.from_entity(job.progress),
            metrics=MetricsDTO.from_entity(job.metrics),
            error=job.error,
            error_details=job.error_details,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
            duration_seconds=job.get_duration(),
        )


class CancelTrainingResponseDTO(BaseModel):
    """DTO for a cancellation request outcome."""

    training_job_id: Optional[UUID] = None
    message: str
