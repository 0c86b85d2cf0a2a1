"""
Domain Entities Package

This package contains the core domain entities and business logic.
"""

from .errors import (
    DomainError,
    InsufficientDataError,
    InsufficientHistoryError,
    InvalidModelFileError,
    ModelNotFoundError,
    ModelValidationError,
    PersistenceError,
    TrainingCancelledError,
    TrainingInProgressError,
    TrainingTimeoutError,
)
from .model import (
    Architecture,
    ArchitectureTag,
    DenseLayerConfig,
    FeedForwardArchitecture,
    RecurrentArchitecture,
    RecurrentLayerConfig,
    default_architecture,
)
from .model_metadata import ModelMetadata, NormalizationBounds
from .prediction import ForecastPoint, ValidationResult
from .session import ForecastingSession, SessionRegistry
from .time_series import SexBreakdownRecord, YearlyObservation
from .training_job import Metrics, TrainingJob, TrainingProgress, TrainingStatus

__all__ = [
    "Architecture",
    "ArchitectureTag",
    "RecurrentArchitecture",
    "RecurrentLayerConfig",
    "FeedForwardArchitecture",
    "DenseLayerConfig",
    "default_architecture",
    "ModelMetadata",
    "NormalizationBounds",
    "ForecastPoint",
    "ValidationResult",
    "ForecastingSession",
    "SessionRegistry",
    "SexBreakdownRecord",
    "YearlyObservation",
    "Metrics",
    "TrainingJob",
    "TrainingProgress",
    "TrainingStatus",
    "DomainError",
    "InsufficientDataError",
    "InsufficientHistoryError",
    "InvalidModelFileError",
    "ModelNotFoundError",
    "ModelValidationError",
    "PersistenceError",
    "TrainingCancelledError",
    "TrainingInProgressError",
    "TrainingTimeoutError",
]
