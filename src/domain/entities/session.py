"""Domain entity holding the model currently in use for one architecture."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.domain.entities.model import ArchitectureTag
from src.domain.entities.model_metadata import ModelMetadata


@dataclass
class ForecastingSession:
    """Explicit context passed to training, forecasting and persistence.

    ``model`` is an opaque handle owned by the numeric backend; it is always
    replaced together with ``metadata`` so the two never come from different
    training runs.
    """

    architecture: ArchitectureTag
    model: Optional[Any] = None
    metadata: Optional[ModelMetadata] = None
    best_accuracy: Optional[float] = None

    @property
    def has_model(self) -> bool:
        return self.model is not None and self.metadata is not None

    def best_with(self, accuracy: float) -> float:
        """Best accuracy once a run scoring ``accuracy`` is counted."""
        if self.best_accuracy is None:
            return accuracy
        return max(self.best_accuracy, accuracy)

    def activate(self, model: Any, metadata: ModelMetadata) -> None:
        """Make a model current and track the best accuracy seen so far.

        A best accuracy stored with the metadata is restored as well, so the
        record survives a restart.
        """
        self.model = model
        self.metadata = metadata
        self.best_accuracy = self.best_with(metadata.metrics.accuracy)
        if metadata.best_accuracy is not None:
            self.best_accuracy = self.best_with(metadata.best_accuracy)

    def clear(self) -> None:
        """Drop the current model; the best accuracy record is kept."""
        self.model = None
        self.metadata = None


class SessionRegistry:
    """One session per architecture, owned by the composition root."""

    def __init__(self) -> None:
        self._sessions: Dict[ArchitectureTag, ForecastingSession] = {
            tag: ForecastingSession(architecture=tag) for tag in ArchitectureTag
        }

    def get(self, architecture: ArchitectureTag) -> ForecastingSession:
        return self._sessions[architecture]
