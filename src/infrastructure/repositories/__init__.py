"""
Repositories Package - Infrastructure Layer

This package contains concrete implementations of the repository
interfaces defined in the domain layer. These implementations
handle the details of data persistence.
"""

from .filesystem_model_artifacts_repository import FilesystemModelArtifactsRepository
from .gridfs_model_artifacts_repository import GridFSModelArtifactsRepository

__all__ = ["FilesystemModelArtifactsRepository", "GridFSModelArtifactsRepository"]
