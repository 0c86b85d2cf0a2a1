"""
Application Use Cases - Training Management

This module contains use cases for managing background training jobs:
starting a run for an architecture, reporting its status and progress, and
requesting its cancellation.
"""

import asyncio
from typing import Any, Optional, Sequence
from uuid import UUID

import structlog

from src.application.use_cases.model_training_use_case import (
    DEFAULT_EPOCHS,
    DEFAULT_VALIDATION_SPLIT,
    ModelTrainingUseCase,
)
from src.domain.entities.errors import TrainingInProgressError
from src.domain.entities.model import Architecture
from src.domain.entities.session import ForecastingSession
from src.domain.entities.training_job import Metrics, TrainingJob, TrainingProgress
from src.domain.ports.training_orchestrator import (
    CancellationToken,
    ITrainingOrchestrator,
)

logger = structlog.get_logger(__name__)


class TrainingManagementUseCase:
    """Use case for managing training jobs."""

    def __init__(
        self,
        training_use_case: ModelTrainingUseCase,
        training_orchestrator: ITrainingOrchestrator,
    ):
        self.training_use_case = training_use_case
        self.training_orchestrator = training_orchestrator

    async def start_training(
        self,
        session: ForecastingSession,
        records: Sequence[Any],
        epochs: int = DEFAULT_EPOCHS,
        validation_split: float = DEFAULT_VALIDATION_SPLIT,
        architecture: Optional[Architecture] = None,
    ) -> TrainingJob:
        """
        Start a background training job for the session's architecture.

        Settings and the series are checked here, before a job is created,
        so a rejected request never reaches the background.

        Raises:
            InsufficientDataError: When the series is too short
            ModelValidationError: When the architecture or a hyperparameter
                is invalid
            TrainingInProgressError: When the architecture is already training
        """
        latest = self.training_orchestrator.get_latest_job(session.architecture)
        if latest is not None and not latest.status.is_terminal:
            raise TrainingInProgressError(session.architecture.value)

        descriptor = self.training_use_case.validate_request(
            session, architecture, epochs=epochs, validation_split=validation_split
        )
        records = list(records)
        prepared = await asyncio.to_thread(
            self.training_use_case.ensure_trainable, records
        )

        job = TrainingJob(architecture=session.architecture, epochs=epochs)

        async def work(job: TrainingJob, cancel_token: CancellationToken) -> Metrics:
            def on_progress(progress: TrainingProgress) -> None:
                job.progress = progress

            metadata = await self.training_use_case.execute(
                session,
                records,
                architecture=descriptor,
                epochs=epochs,
                validation_split=validation_split,
                on_progress=on_progress,
                cancel_token=cancel_token,
                prepared=prepared,
            )
            return metadata.metrics

        logger.info(
            "training_management.start",
            training_job_id=str(job.id),
            architecture=session.architecture.value,
            records=len(records),
            epochs=epochs,
        )
        return await self.training_orchestrator.dispatch_training_job(job, work)

    def get_latest_job(self, session: ForecastingSession) -> Optional[TrainingJob]:
        return self.training_orchestrator.get_latest_job(session.architecture)

    async def cancel_training(self, session: ForecastingSession) -> Optional[UUID]:
        """Request cancellation; returns the id of the job being cancelled."""
        job_id = await self.training_orchestrator.cancel(session.architecture)
        logger.info(
            "training_management.cancel",
            architecture=session.architecture.value,
            training_job_id=str(job_id) if job_id else None,
        )
        return job_id
