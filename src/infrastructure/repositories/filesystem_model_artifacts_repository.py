"""
Filesystem Model Artifacts Repository - Infrastructure Layer

This module implements the ModelArtifactsRepository interface on a local
directory. Each architecture owns a sub-directory holding one content file
and one small JSON descriptor per artifact type. Files are written to a
temporary name and moved into place, so readers see either the old or the
new artifact and never a partial one.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

from src.domain.entities.errors import PersistenceError
from src.domain.entities.model import ArchitectureTag
from src.domain.repositories.model_artifacts_repository import (
    IModelArtifactsRepository,
    ModelArtifact,
)

logger = structlog.get_logger(__name__)

_CONTENT_SUFFIX = ".bin"
_INFO_SUFFIX = ".info.json"


class FilesystemModelArtifactsRepository(IModelArtifactsRepository):
    """Local directory implementation of the ModelArtifactsRepository."""

    def __init__(self, base_directory: str):
        """
        Initialize the filesystem model artifacts repository.

        Args:
            base_directory: Root directory for stored artifacts; created on
                first write
        """
        self.base_directory = Path(base_directory)

    def _architecture_dir(self, architecture: ArchitectureTag) -> Path:
        return self.base_directory / architecture.value.lower()

    def _content_path(self, architecture: ArchitectureTag, artifact_type: str) -> Path:
        return self._architecture_dir(architecture) / f"{artifact_type}{_CONTENT_SUFFIX}"

    def _info_path(self, architecture: ArchitectureTag, artifact_type: str) -> Path:
        return self._architecture_dir(architecture) / f"{artifact_type}{_INFO_SUFFIX}"

    @staticmethod
    def _atomic_write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def save_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> str:
        artifact_id = f"{architecture.value.lower()}/{artifact_type}/{uuid4().hex}"
        info = {
            "artifact_id": artifact_id,
            "artifact_type": artifact_type,
            "architecture": architecture.value,
            "filename": filename or f"{architecture.value.lower()}_{artifact_type}",
            "metadata": metadata or {},
        }

        def _write() -> None:
            self._atomic_write(self._content_path(architecture, artifact_type), content)
            self._atomic_write(
                self._info_path(architecture, artifact_type),
                json.dumps(info, default=str).encode("utf-8"),
            )

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(
                "artifacts.filesystem.save_failed",
                architecture=architecture.value,
                artifact_type=artifact_type,
                error=str(e),
            )
            raise PersistenceError(
                f"Failed to save artifact: {e}",
                {"architecture": architecture.value, "artifact_type": artifact_type},
            ) from e

        logger.info(
            "artifacts.filesystem.saved",
            architecture=architecture.value,
            artifact_type=artifact_type,
            artifact_id=artifact_id,
            size_bytes=len(content),
        )
        return artifact_id

    async def get_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
    ) -> Optional[ModelArtifact]:
        content_path = self._content_path(architecture, artifact_type)
        info_path = self._info_path(architecture, artifact_type)

        def _read():
            if not content_path.exists():
                return None
            content = content_path.read_bytes()
            info = (
                json.loads(info_path.read_text(encoding="utf-8"))
                if info_path.exists()
                else {}
            )
            return content, info

        try:
            result = await asyncio.to_thread(_read)
        except (OSError, ValueError) as e:
            logger.error(
                "artifacts.filesystem.read_failed",
                architecture=architecture.value,
                artifact_type=artifact_type,
                error=str(e),
            )
            raise PersistenceError(f"Failed to retrieve artifact: {e}") from e

        if result is None:
            logger.debug(
                "artifacts.filesystem.not_found",
                architecture=architecture.value,
                artifact_type=artifact_type,
            )
            return None

        content, info = result
        return ModelArtifact(
            artifact_id=info.get("artifact_id", str(content_path)),
            artifact_type=artifact_type,
            content=content,
            metadata=info.get("metadata"),
            filename=info.get("filename"),
        )

    async def delete_artifact(
        self, architecture: ArchitectureTag, artifact_type: str
    ) -> bool:
        paths = (
            self._content_path(architecture, artifact_type),
            self._info_path(architecture, artifact_type),
        )

        def _delete() -> bool:
            existed = paths[0].exists()
            for path in paths:
                path.unlink(missing_ok=True)
            return existed

        try:
            deleted = await asyncio.to_thread(_delete)
        except OSError as e:
            raise PersistenceError(f"Failed to delete artifact: {e}") from e

        if deleted:
            logger.info(
                "artifacts.filesystem.deleted",
                architecture=architecture.value,
                artifact_type=artifact_type,
            )
        return deleted

    async def delete_model_artifacts(self, architecture: ArchitectureTag) -> int:
        artifacts = await self.list_model_artifacts(architecture)
        deleted_count = 0
        for artifact_type in artifacts:
            if await self.delete_artifact(architecture, artifact_type):
                deleted_count += 1
        return deleted_count

    async def list_model_artifacts(
        self, architecture: ArchitectureTag
    ) -> Dict[str, str]:
        directory = self._architecture_dir(architecture)

        def _list() -> Dict[str, str]:
            if not directory.is_dir():
                return {}
            result: Dict[str, str] = {}
            for path in sorted(directory.glob(f"*{_CONTENT_SUFFIX}")):
                artifact_type = path.name[: -len(_CONTENT_SUFFIX)]
                info_path = self._info_path(architecture, artifact_type)
                artifact_id = str(path)
                if info_path.exists():
                    artifact_id = json.loads(info_path.read_text(encoding="utf-8")).get(
                        "artifact_id", artifact_id
                    )
                result[artifact_type] = artifact_id
            return result

        try:
            return await asyncio.to_thread(_list)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to list artifacts: {e}") from e
