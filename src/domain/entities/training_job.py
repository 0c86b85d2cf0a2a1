"""
Domain Entities - Training Job

This module defines the core domain entities related to training runs:
the accuracy metrics a run produces, the coarse progress it reports and the
job record that tracks a background run from start to terminal state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from src.domain.entities.model import ArchitectureTag


class TrainingStatus(str, Enum):
    """Status of a training job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            TrainingStatus.COMPLETED,
            TrainingStatus.FAILED,
            TrainingStatus.CANCELLED,
        )


@dataclass(frozen=True)
class Metrics:
    """Accuracy metrics derived from one (actual, predicted) pair of series."""

    mae: float
    rmse: float
    mape: float
    r2: float
    accuracy: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "mae": self.mae,
            "rmse": self.rmse,
            "mape": self.mape,
            "r2": self.r2,
            "accuracy": self.accuracy,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Metrics":
        return cls(
            mae=float(payload["mae"]),
            rmse=float(payload["rmse"]),
            mape=float(payload["mape"]),
            r2=float(payload["r2"]),
            accuracy=float(payload["accuracy"]),
        )


@dataclass(frozen=True)
class TrainingProgress:
    """Snapshot reported at coarse epoch intervals."""

    epoch: int
    loss: float
    mae: float
    val_loss: Optional[float] = None
    val_mae: Optional[float] = None


@dataclass
class TrainingJob:
    """Represents a background training run for one architecture."""

    architecture: ArchitectureTag
    id: UUID = field(default_factory=uuid4)
    status: TrainingStatus = TrainingStatus.PENDING
    epochs: int = 100

    progress: Optional[TrainingProgress] = None
    metrics: Optional[Metrics] = None

    error: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def mark_running(self) -> None:
        self.status = TrainingStatus.RUNNING
        self.started_at = datetime.now(timezone.utc)

    def mark_completed(self, metrics: Metrics) -> None:
        self.status = TrainingStatus.COMPLETED
        self.metrics = metrics
        self.finished_at = datetime.now(timezone.utc)

    def mark_failed(
        self, error: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.status = TrainingStatus.FAILED
        self.error = error
        self.error_details = details
        self.finished_at = datetime.now(timezone.utc)

    def mark_cancelled(self, reason: str = "Training cancelled") -> None:
        self.status = TrainingStatus.CANCELLED
        self.error = reason
        self.finished_at = datetime.now(timezone.utc)

    def get_duration(self) -> Optional[float]:
        """Wall-clock duration in seconds, once the job has started."""
        if not self.started_at:
            return None
        end = self.finished_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()
