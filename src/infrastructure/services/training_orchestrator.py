"""In-process implementation of the training orchestrator port."""

from __future__ import annotations

import asyncio
import threading
from typing import Dict, Optional
from uuid import UUID

from src.domain.entities.errors import (
    DomainError,
    TrainingCancelledError,
    TrainingInProgressError,
)
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.training_job import TrainingJob
from src.domain.ports.training_orchestrator import ITrainingOrchestrator, TrainingWork
from src.shared import get_logger

logger = get_logger(__name__)


class AsyncioTrainingOrchestrator(ITrainingOrchestrator):
    """Run training jobs as background asyncio tasks, one per architecture."""

    def __init__(self) -> None:
        self._jobs: Dict[ArchitectureTag, TrainingJob] = {}
        self._tasks: Dict[ArchitectureTag, asyncio.Task] = {}
        self._cancel_events: Dict[ArchitectureTag, threading.Event] = {}

    def is_running(self, architecture: ArchitectureTag) -> bool:
        task = self._tasks.get(architecture)
        return task is not None and not task.done()

    async def dispatch_training_job(
        self, job: TrainingJob, work: TrainingWork
    ) -> TrainingJob:
        architecture = job.architecture
        if self.is_running(architecture):
            raise TrainingInProgressError(architecture.value)

        cancel_event = threading.Event()
        self._jobs[architecture] = job
        self._cancel_events[architecture] = cancel_event
        self._tasks[architecture] = asyncio.create_task(
            self._run(job, work, cancel_event),
            name=f"training-{architecture.value.lower()}-{job.id}",
        )

        logger.info(
            "training_orchestrator.dispatch",
            training_job_id=str(job.id),
            architecture=architecture.value,
            epochs=job.epochs,
        )
        return job

    async def _run(
        self, job: TrainingJob, work: TrainingWork, cancel_event: threading.Event
    ) -> None:
        job.mark_running()
        try:
            metrics = await work(job, cancel_event)
        except TrainingCancelledError as exc:
            job.mark_cancelled(exc.message)
            logger.info(
                "training_orchestrator.cancelled",
                training_job_id=str(job.id),
                epochs_completed=exc.details.get("epochs_completed"),
            )
        except DomainError as exc:
            job.mark_failed(exc.message, exc.details)
            logger.warning(
                "training_orchestrator.failed",
                training_job_id=str(job.id),
                error=exc.message,
                error_type=type(exc).__name__,
            )
        except asyncio.CancelledError:
            job.mark_cancelled("Training interrupted by shutdown")
            raise
        except Exception as exc:  # the task is the last place this is observed
            job.mark_failed(f"Training failed: {exc}")
            logger.exception(
                "training_orchestrator.crashed",
                training_job_id=str(job.id),
                error=str(exc),
            )
        else:
            job.mark_completed(metrics)
            logger.info(
                "training_orchestrator.completed",
                training_job_id=str(job.id),
                duration=job.get_duration(),
                accuracy=metrics.accuracy,
            )

    def get_latest_job(self, architecture: ArchitectureTag) -> Optional[TrainingJob]:
        return self._jobs.get(architecture)

    async def cancel(self, architecture: ArchitectureTag) -> Optional[UUID]:
        if not self.is_running(architecture):
            return None

        self._cancel_events[architecture].set()
        job = self._jobs[architecture]
        logger.info(
            "training_orchestrator.cancel_requested",
            training_job_id=str(job.id),
            architecture=architecture.value,
        )
        return job.id

    async def wait(self, architecture: ArchitectureTag) -> Optional[TrainingJob]:
        """Wait for the current job of an architecture to reach a terminal state."""
        task = self._tasks.get(architecture)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self._jobs.get(architecture)

    async def shutdown(self) -> None:
        """Signal every running job to stop and wait for them."""
        for architecture, event in self._cancel_events.items():
            if self.is_running(architecture):
                event.set()
        pending = [task for task in self._tasks.values() if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
