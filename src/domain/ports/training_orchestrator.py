"""Domain port for background training dispatch."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol
from uuid import UUID

from src.domain.entities.model import ArchitectureTag
from src.domain.entities.training_job import Metrics, TrainingJob


class CancellationToken(Protocol):
    """Signal checked by a training run between epochs."""

    def is_set(self) -> bool: ...


TrainingWork = Callable[[TrainingJob, CancellationToken], Awaitable[Metrics]]


class ITrainingOrchestrator(Protocol):
    """Defines how training runs are moved off the request path."""

    async def dispatch_training_job(
        self, job: TrainingJob, work: TrainingWork
    ) -> TrainingJob:
        """Start ``work`` in the background and return the tracked job.

        Raises:
            TrainingInProgressError: If the architecture is already training.
        """
        ...

    def get_latest_job(self, architecture: ArchitectureTag) -> Optional[TrainingJob]:
        """Return the most recent job for an architecture, if any."""
        ...

    async def cancel(self, architecture: ArchitectureTag) -> Optional[UUID]:
        """Request cancellation of the running job; returns its id if any."""
        ...
