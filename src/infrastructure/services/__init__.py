"""Infrastructure services package."""

from .keras_model_codec import KerasModelCodec
from .training_orchestrator import AsyncioTrainingOrchestrator

__all__ = ["KerasModelCodec", "AsyncioTrainingOrchestrator"]
