"""
Model Artifacts Repository Interface

This module defines the interface for model artifacts storage following
the repository pattern. It abstracts the data access operations for
model artifacts (serialized network, training metadata), decoupling them
from specific storage implementations like the local filesystem or GridFS.

Artifacts are keyed by architecture tag: each architecture owns at most one
current entry per artifact type.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from src.domain.entities.model import ArchitectureTag

MODEL_ARTIFACT = "model"
METADATA_ARTIFACT = "metadata"


class ModelArtifact:
    """Represents a model artifact with its metadata."""

    def __init__(
        self,
        artifact_id: str,
        artifact_type: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
        filename: Optional[str] = None,
    ):
        """
        Initialize a model artifact.

        Args:
            artifact_id: Unique identifier for the artifact
            artifact_type: Type of artifact (model, metadata)
            content: Binary content of the artifact
            metadata: Additional storage metadata for the artifact
            filename: Original filename of the artifact
        """
        self.artifact_id = artifact_id
        self.artifact_type = artifact_type
        self.content = content
        self.metadata = metadata or {}
        self.filename = filename


class IModelArtifactsRepository(ABC):
    """Interface for Model Artifacts repository implementations."""

    @abstractmethod
    async def save_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> str:
        """
        Save a model artifact, replacing the current one of the same type.

        Args:
            architecture: Architecture the artifact belongs to
            artifact_type: Type of artifact (model, metadata)
            content: Binary content of the artifact
            metadata: Additional storage metadata for the artifact
            filename: Original filename of the artifact

        Returns:
            Unique identifier for the saved artifact

        Raises:
            PersistenceError: If the store cannot be written
        """
        pass

    @abstractmethod
    async def get_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
    ) -> Optional[ModelArtifact]:
        """
        Retrieve the current artifact of a type for an architecture.

        Returns:
            ModelArtifact if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete_artifact(
        self, architecture: ArchitectureTag, artifact_type: str
    ) -> bool:
        """
        Delete one artifact.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def delete_model_artifacts(self, architecture: ArchitectureTag) -> int:
        """
        Delete all artifacts for an architecture.

        Returns:
            Number of artifacts deleted
        """
        pass

    @abstractmethod
    async def list_model_artifacts(
        self, architecture: ArchitectureTag
    ) -> Dict[str, str]:
        """
        List the artifacts stored for an architecture.

        Returns:
            Dictionary mapping artifact types to their IDs
        """
        pass
