"""
Dependency container injection module - Main Layer

This module implements the dependency injection container
to simplify the management and lifecycle of dependencies
in the application.
"""

from contextlib import asynccontextmanager

from dependency_injector import containers, providers
from pymongo import MongoClient

from src.application.use_cases.data_preprocessing_use_case import (
    DataPreprocessingUseCase,
)
from src.application.use_cases.model_factory import KerasModelFactory
from src.application.use_cases.model_persistence_use_case import (
    ModelPersistenceUseCase,
)
from src.application.use_cases.model_prediction_use_case import ModelPredictionUseCase
from src.application.use_cases.model_training_use_case import ModelTrainingUseCase
from src.application.use_cases.training_management_use_case import (
    TrainingManagementUseCase,
)
from src.domain.entities.session import SessionRegistry
from src.infrastructure.repositories.filesystem_model_artifacts_repository import (
    FilesystemModelArtifactsRepository,
)
from src.infrastructure.repositories.gridfs_model_artifacts_repository import (
    GridFSModelArtifactsRepository,
)
from src.infrastructure.services.keras_model_codec import KerasModelCodec
from src.infrastructure.services.training_orchestrator import (
    AsyncioTrainingOrchestrator,
)
from src.shared import EnumStorageBackend, get_logger

from .config import AppSettings

logger = get_logger(__name__)


def _backend_key(backend) -> str:
    return backend.value if hasattr(backend, "value") else str(backend)


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependecy-injector."""

    wiring_config = containers.WiringConfiguration(packages=["..presentation"])

    # Settings
    config = providers.Configuration()

    # Domain state
    sessions = providers.Singleton(SessionRegistry)

    # Infrastructure
    mongo_client = providers.Singleton(MongoClient, config.database.mongo_uri)

    filesystem_artifacts_repository = providers.Singleton(
        FilesystemModelArtifactsRepository,
        base_directory=config.storage.directory,
    )

    gridfs_artifacts_repository = providers.Singleton(
        GridFSModelArtifactsRepository,
        mongo_client=mongo_client,
        database_name=config.database.database_name,
        collection=config.database.gridfs_collection,
    )

    model_artifacts_repository = providers.Selector(
        providers.Callable(_backend_key, config.storage.backend),
        filesystem=filesystem_artifacts_repository,
        gridfs=gridfs_artifacts_repository,
    )

    model_codec = providers.Singleton(
        KerasModelCodec,
        learning_rate=config.forecast.learning_rate,
    )

    model_factory = providers.Singleton(
        KerasModelFactory,
        learning_rate=config.forecast.learning_rate,
    )

    training_orchestrator = providers.Singleton(AsyncioTrainingOrchestrator)

    # Application (use cases)
    data_preprocessing_use_case = providers.Factory(
        DataPreprocessingUseCase,
        lookback=config.forecast.lookback,
    )

    model_prediction_use_case = providers.Factory(
        ModelPredictionUseCase,
        model_factory=model_factory,
    )

    model_persistence_use_case = providers.Factory(
        ModelPersistenceUseCase,
        artifacts_repository=model_artifacts_repository,
        codec=model_codec,
    )

    model_training_use_case = providers.Factory(
        ModelTrainingUseCase,
        persistence=model_persistence_use_case,
        prediction=model_prediction_use_case,
        model_factory=model_factory,
        preprocessing=data_preprocessing_use_case,
        progress_interval=config.forecast.progress_interval,
        timeout_seconds=config.forecast.training_timeout_seconds,
    )

    training_management_use_case = providers.Factory(
        TrainingManagementUseCase,
        training_use_case=model_training_use_case,
        training_orchestrator=training_orchestrator,
    )


# -------------------------
# Global Container Instance
# -------------------------
_app_container: AppContainer | None = None


def init_container(settings: AppSettings) -> AppContainer:
    """Initialize global container with application settings."""

    global _app_container

    container = AppContainer()
    container.config.from_pydantic(settings)
    _app_container = container
    return container


def get_container() -> AppContainer:
    """Get the initialized global container."""

    if _app_container is None:
        raise RuntimeError("Container has not been initialized yet")

    return _app_container


@asynccontextmanager
async def app_lifespan():
    """
    Centralized lifecycle management for external resources.

    Background training is cancelled on shutdown; the MongoDB client is only
    created, and therefore only closed, when artifacts live in GridFS.
    """
    container = get_container()
    backend = _backend_key(container.config.storage.backend())
    orchestrator = container.training_orchestrator()

    try:
        logger.info("container.resources.initialized", storage_backend=backend)
        yield container

    finally:
        logger.info("container.training.shutdown")
        await orchestrator.shutdown()

        if backend == EnumStorageBackend.GRIDFS.value:
            logger.info("container.mongo.close")
            container.mongo_client().close()

        logger.info("container.resources.shutdown")
