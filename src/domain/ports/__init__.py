"""Domain ports package."""

from .model_codec import IModelCodec
from .training_orchestrator import (
    CancellationToken,
    ITrainingOrchestrator,
    TrainingWork,
)

__all__ = ["CancellationToken", "IModelCodec", "ITrainingOrchestrator", "TrainingWork"]
