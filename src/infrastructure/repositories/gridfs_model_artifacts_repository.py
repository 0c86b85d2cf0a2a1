"""
GridFS Model Artifacts Repository - Infrastructure Layer

This module implements the ModelArtifactsRepository interface using MongoDB
GridFS as the underlying storage system, for deployments that keep trained
networks in a shared database instead of on local disk.
"""

import asyncio
from typing import Any, Dict, List, Optional

import gridfs
import structlog
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from src.domain.entities.errors import PersistenceError
from src.domain.entities.model import ArchitectureTag
from src.domain.repositories.model_artifacts_repository import (
    IModelArtifactsRepository,
    ModelArtifact,
)

logger = structlog.get_logger(__name__)


class GridFSModelArtifactsRepository(IModelArtifactsRepository):
    """MongoDB GridFS implementation of the ModelArtifactsRepository."""

    def __init__(
        self,
        mongo_client: MongoClient,
        database_name: str,
        collection: str = "forecast_model_artifacts",
    ):
        """
        Initialize the GridFS model artifacts repository.

        Args:
            mongo_client: MongoDB client connection
            database_name: Name of the database to use
            collection: GridFS bucket name
        """
        self.db: Database = mongo_client[database_name]
        self.fs = gridfs.GridFS(self.db, collection=collection)

    @staticmethod
    def _query(
        architecture: ArchitectureTag, artifact_type: Optional[str] = None
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"metadata.architecture": architecture.value}
        if artifact_type is not None:
            query["metadata.artifact_type"] = artifact_type
        return query

    async def save_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> str:
        """
        Save a model artifact to GridFS.

        The new file is stored before older files of the same type are
        removed, so the artifact is never absent in between.
        """

        def _put() -> str:
            file_metadata = {
                "architecture": architecture.value,
                "artifact_type": artifact_type,
                "content_type": self._get_content_type(artifact_type),
                **(metadata or {}),
            }
            file_id = self.fs.put(
                content,
                filename=filename or f"{architecture.value.lower()}_{artifact_type}",
                metadata=file_metadata,
            )
            for previous in self.fs.find(self._query(architecture, artifact_type)):
                if previous._id != file_id:
                    self.fs.delete(previous._id)
            return str(file_id)

        try:
            file_id = await asyncio.to_thread(_put)
        except PyMongoError as e:
            logger.error(
                "artifacts.gridfs.save_failed",
                architecture=architecture.value,
                artifact_type=artifact_type,
                error=str(e),
            )
            raise PersistenceError(
                f"Failed to save artifact: {e}",
                {"architecture": architecture.value, "artifact_type": artifact_type},
            ) from e

        logger.info(
            "artifacts.gridfs.saved",
            architecture=architecture.value,
            artifact_type=artifact_type,
            file_id=file_id,
            size_bytes=len(content),
        )
        return file_id

    async def get_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
    ) -> Optional[ModelArtifact]:
        def _get() -> Optional[ModelArtifact]:
            cursor = (
                self.fs.find(self._query(architecture, artifact_type))
                .sort("uploadDate", -1)
                .limit(1)
            )
            grid_out = next(cursor, None)
            if not grid_out:
                return None

            return ModelArtifact(
                artifact_id=str(grid_out._id),
                artifact_type=artifact_type,
                content=grid_out.read(),
                metadata=dict(grid_out.metadata) if grid_out.metadata else None,
                filename=grid_out.filename,
            )

        try:
            artifact = await asyncio.to_thread(_get)
        except PyMongoError as e:
            logger.error(
                "artifacts.gridfs.read_failed",
                architecture=architecture.value,
                artifact_type=artifact_type,
                error=str(e),
            )
            raise PersistenceError(f"Failed to retrieve artifact: {e}") from e

        if artifact is None:
            logger.debug(
                "artifacts.gridfs.not_found",
                architecture=architecture.value,
                artifact_type=artifact_type,
            )
        return artifact

    def _delete_matching(self, query: Dict[str, Any]) -> List[str]:
        deleted: List[str] = []
        for grid_out in self.fs.find(query):
            self.fs.delete(grid_out._id)
            deleted.append(
                (grid_out.metadata or {}).get("artifact_type", str(grid_out._id))
            )
        return deleted

    async def delete_artifact(
        self, architecture: ArchitectureTag, artifact_type: str
    ) -> bool:
        try:
            deleted = await asyncio.to_thread(
                self._delete_matching, self._query(architecture, artifact_type)
            )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to delete artifact: {e}") from e

        if deleted:
            logger.info(
                "artifacts.gridfs.deleted",
                architecture=architecture.value,
                artifact_type=artifact_type,
            )
        return bool(deleted)

    async def delete_model_artifacts(self, architecture: ArchitectureTag) -> int:
        try:
            deleted = await asyncio.to_thread(
                self._delete_matching, self._query(architecture)
            )
        except PyMongoError as e:
            logger.error(
                "artifacts.gridfs.delete_failed",
                architecture=architecture.value,
                error=str(e),
            )
            raise PersistenceError(f"Failed to delete artifacts: {e}") from e

        deleted_count = len(set(deleted))
        logger.info(
            "artifacts.gridfs.deleted_all",
            architecture=architecture.value,
            count=deleted_count,
        )
        return deleted_count

    async def list_model_artifacts(
        self, architecture: ArchitectureTag
    ) -> Dict[str, str]:
        def _list() -> Dict[str, str]:
            result: Dict[str, str] = {}
            for artifact in self.fs.find(self._query(architecture)).sort(
                "uploadDate", -1
            ):
                artifact_type = (artifact.metadata or {}).get("artifact_type", "unknown")
                if artifact_type in result:
                    continue  # keep the most recent artifact per type
                result[artifact_type] = str(artifact._id)
            return result

        try:
            return await asyncio.to_thread(_list)
        except PyMongoError as e:
            raise PersistenceError(f"Failed to list artifacts: {e}") from e

    def _get_content_type(self, artifact_type: str) -> str:
        """Get MIME type based on artifact type."""
        content_types = {
            "model": "application/json",
            "metadata": "application/json",
        }
        return content_types.get(artifact_type, "application/octet-stream")
