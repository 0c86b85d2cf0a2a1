"""
Use Cases Package - Application Layer

This package contains use cases that implement the business logic
of the application. Use cases orchestrate the flow of data to and from
the entities and implement the business rules of the application.
"""

from .data_preprocessing_use_case import DataPreprocessingUseCase, compute_metrics
from .model_factory import KerasModelFactory
from .model_persistence_use_case import ModelPersistenceUseCase, PortableModelFile
from .model_prediction_use_case import ModelPredictionUseCase
from .model_training_use_case import ModelTrainingUseCase
from .training_management_use_case import TrainingManagementUseCase

__all__ = [
    "DataPreprocessingUseCase",
    "compute_metrics",
    "KerasModelFactory",
    "ModelPersistenceUseCase",
    "PortableModelFile",
    "ModelPredictionUseCase",
    "ModelTrainingUseCase",
    "TrainingManagementUseCase",
]
