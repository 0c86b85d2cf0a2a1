"""
Repositories Package

This package contains interfaces defining repository contracts
for data access operations. Specific implementations are provided
by the infrastructure layer.
"""

from .model_artifacts_repository import (
    METADATA_ARTIFACT,
    MODEL_ARTIFACT,
    IModelArtifactsRepository,
    ModelArtifact,
)

__all__ = [
    "IModelArtifactsRepository",
    "ModelArtifact",
    "MODEL_ARTIFACT",
    "METADATA_ARTIFACT",
]
