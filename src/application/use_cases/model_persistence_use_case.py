"""
Application Use Case - Model Persistence

Stores and restores trained networks together with their metadata. Two
artifacts exist per architecture: the encoded network and the metadata JSON.
They are written model-first so that a reader never pairs metadata with
weights from another run. A portable single-file form supports download and
re-upload across sessions.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple
from uuid import uuid4

import structlog

from src.domain.entities.errors import (
    InvalidModelFileError,
    ModelNotFoundError,
    PersistenceError,
)
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.model_metadata import ModelMetadata
from src.domain.entities.session import ForecastingSession
from src.domain.ports.model_codec import IModelCodec
from src.domain.repositories.model_artifacts_repository import (
    METADATA_ARTIFACT,
    MODEL_ARTIFACT,
    IModelArtifactsRepository,
)

logger = structlog.get_logger(__name__)

PORTABLE_FORMAT_VERSION = "1.0"
_PORTABLE_REQUIRED_KEYS = ("modelTopology", "weightSpecs", "weightData", "metadata")


def _input_shape_errors(model: Any, metadata: ModelMetadata) -> List[str]:
    """Compare the network input with the windows the metadata describes."""
    input_shape = getattr(model, "input_shape", None)
    if not isinstance(input_shape, (tuple, list)):
        return []

    n_features = len(metadata.features)
    if metadata.model_type == ArchitectureTag.MLP:
        expected: Tuple[int, ...] = (metadata.lookback * n_features,)
    else:
        expected = (metadata.lookback, n_features)

    actual = tuple(input_shape[1:])
    if actual != expected:
        return [f"model expects inputs of shape {actual}, metadata implies {expected}"]
    return []


@dataclass(frozen=True)
class PortableModelFile:
    """A downloadable model file."""

    filename: str
    content: bytes


class ModelPersistenceUseCase:
    """Save, load, export, import and delete models per architecture."""

    def __init__(
        self, artifacts_repository: IModelArtifactsRepository, codec: IModelCodec
    ):
        self.artifacts_repository = artifacts_repository
        self.codec = codec

    async def save(self, model: Any, metadata: ModelMetadata) -> None:
        """
        Persist a network and its metadata.

        Raises:
            PersistenceError: If either write fails. A failed metadata write
                removes the model entry written just before it; the metadata
                error is the one raised even when that removal fails too.
        """
        architecture = metadata.model_type
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        # Shared by both artifacts so a reader can tell a mixed pair.
        run_id = uuid4().hex

        try:
            model_bytes = json.dumps(self.codec.encode(model)).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Failed to encode {architecture.value} model: {exc}",
                {"architecture": architecture.value},
            ) from exc
        metadata_bytes = json.dumps(metadata.to_dict(), indent=2).encode("utf-8")

        model_artifact_id = await self.artifacts_repository.save_artifact(
            architecture=architecture,
            artifact_type=MODEL_ARTIFACT,
            content=model_bytes,
            metadata={
                "format": "json",
                "size": len(model_bytes),
                "timestamp": timestamp,
                "run_id": run_id,
            },
            filename=f"{architecture.value.lower()}_{timestamp}_model.json",
        )

        try:
            metadata_artifact_id = await self.artifacts_repository.save_artifact(
                architecture=architecture,
                artifact_type=METADATA_ARTIFACT,
                content=metadata_bytes,
                metadata={
                    "format": "json",
                    "size": len(metadata_bytes),
                    "timestamp": timestamp,
                    "run_id": run_id,
                },
                filename=f"{architecture.value.lower()}_{timestamp}_metadata.json",
            )
        except PersistenceError as exc:
            logger.error(
                "persistence.save.metadata_failed",
                architecture=architecture.value,
                error=str(exc),
            )
            try:
                await self.artifacts_repository.delete_artifact(
                    architecture, MODEL_ARTIFACT
                )
            except PersistenceError as rollback_exc:
                logger.error(
                    "persistence.save.rollback_failed",
                    architecture=architecture.value,
                    error=str(rollback_exc),
                )
            raise exc

        logger.info(
            "persistence.save.completed",
            architecture=architecture.value,
            model_artifact_id=model_artifact_id,
            metadata_artifact_id=metadata_artifact_id,
        )

    async def load(self, architecture: ArchitectureTag) -> Tuple[Any, ModelMetadata]:
        """
        Read both artifacts for an architecture.

        Raises:
            ModelNotFoundError: If either artifact is missing
            PersistenceError: If a stored artifact cannot be decoded or the
                two artifacts come from different runs
        """
        model_artifact = await self.artifacts_repository.get_artifact(
            architecture, MODEL_ARTIFACT
        )
        metadata_artifact = await self.artifacts_repository.get_artifact(
            architecture, METADATA_ARTIFACT
        )
        if model_artifact is None or metadata_artifact is None:
            logger.warning(
                "persistence.load.not_found",
                architecture=architecture.value,
                has_model=model_artifact is not None,
                has_metadata=metadata_artifact is not None,
            )
            raise ModelNotFoundError(architecture.value)

        model_run = (model_artifact.metadata or {}).get("run_id")
        metadata_run = (metadata_artifact.metadata or {}).get("run_id")
        if model_run and metadata_run and model_run != metadata_run:
            logger.error(
                "persistence.load.run_mismatch",
                architecture=architecture.value,
                model_run=model_run,
                metadata_run=metadata_run,
            )
            raise PersistenceError(
                f"Stored {architecture.value} model and metadata come from "
                "different training runs",
                {"architecture": architecture.value},
            )

        try:
            metadata = ModelMetadata.from_dict(
                json.loads(metadata_artifact.content.decode("utf-8"))
            )
            model = self.codec.decode(
                json.loads(model_artifact.content.decode("utf-8"))
            )
        except (UnicodeDecodeError, ValueError) as exc:
            raise PersistenceError(
                f"Stored {architecture.value} model is unreadable: {exc}",
                {"architecture": architecture.value},
            ) from exc

        logger.info(
            "persistence.load.completed",
            architecture=architecture.value,
            trained_at=metadata.trained_at,
        )
        return model, metadata

    def export_portable(self, model: Any, metadata: ModelMetadata) -> PortableModelFile:
        """Produce a self-contained JSON file for download."""
        now = datetime.now(timezone.utc)
        document: Dict[str, Any] = {
            "modelType": metadata.model_type.value,
            "version": PORTABLE_FORMAT_VERSION,
            "timestamp": now.isoformat(),
            **self.codec.encode(model),
            "metadata": metadata.to_dict(),
        }
        filename = f"{metadata.model_type.value.lower()}_model_{now:%Y-%m-%d}.json"

        logger.info(
            "persistence.export.completed",
            architecture=metadata.model_type.value,
            filename=filename,
        )
        return PortableModelFile(
            filename=filename, content=json.dumps(document).encode("utf-8")
        )

    async def import_portable(
        self, content: bytes, expected: ArchitectureTag
    ) -> Tuple[Any, ModelMetadata]:
        """
        Validate, rebuild and re-persist an uploaded model file.

        Nothing is written unless every check passes.

        Raises:
            InvalidModelFileError: ``reason`` tells a wrong-architecture file
                apart from a corrupt or incomplete one
        """
        try:
            document = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise InvalidModelFileError(
                "Invalid model file structure: not a JSON document",
                reason=InvalidModelFileError.CORRUPT,
            ) from exc

        if not isinstance(document, dict):
            raise InvalidModelFileError(
                "Invalid model file structure", reason=InvalidModelFileError.CORRUPT
            )

        if str(document.get("modelType", "")).upper() != expected.value:
            raise InvalidModelFileError(
                f"This is not a valid {expected.value} model file",
                reason=InvalidModelFileError.WRONG_ARCHITECTURE,
                details={"model_type": document.get("modelType")},
            )

        missing = [key for key in _PORTABLE_REQUIRED_KEYS if not document.get(key)]
        if missing:
            raise InvalidModelFileError(
                "Invalid model file structure",
                reason=InvalidModelFileError.CORRUPT,
                details={"missing": missing},
            )

        try:
            metadata = ModelMetadata.from_dict(document["metadata"])
        except ValueError as exc:
            raise InvalidModelFileError(
                f"Invalid model file structure: {exc}",
                reason=InvalidModelFileError.CORRUPT,
            ) from exc

        if metadata.model_type != expected:
            raise InvalidModelFileError(
                f"This is not a valid {expected.value} model file",
                reason=InvalidModelFileError.WRONG_ARCHITECTURE,
                details={"model_type": metadata.model_type.value},
            )

        try:
            model = self.codec.decode(document)
        except ValueError as exc:
            raise InvalidModelFileError(
                f"Invalid model file structure: {exc}",
                reason=InvalidModelFileError.CORRUPT,
            ) from exc

        problems = metadata.consistency_errors() + _input_shape_errors(model, metadata)
        if problems:
            logger.warning(
                "persistence.import.inconsistent",
                architecture=expected.value,
                problems=problems,
            )
            raise InvalidModelFileError(
                "Invalid model file structure: metadata does not match the model",
                reason=InvalidModelFileError.CORRUPT,
                details={"errors": problems},
            )

        await self.save(model, metadata)

        logger.info(
            "persistence.import.completed",
            architecture=expected.value,
            version=document.get("version"),
            trained_at=metadata.trained_at,
        )
        return model, metadata

    async def delete(self, architecture: ArchitectureTag) -> int:
        """Remove both artifacts; deleting an absent model is not an error."""
        deleted = await self.artifacts_repository.delete_model_artifacts(architecture)
        logger.info(
            "persistence.delete.completed",
            architecture=architecture.value,
            deleted=deleted,
        )
        return deleted

    async def load_into(self, session: ForecastingSession) -> ModelMetadata:
        """Load the persisted model and make it current for the session."""
        model, metadata = await self.load(session.architecture)
        session.activate(model, metadata)
        return metadata

    async def import_into(
        self, session: ForecastingSession, content: bytes
    ) -> ModelMetadata:
        """Import an uploaded file and make it current for the session."""
        model, metadata = await self.import_portable(content, session.architecture)
        session.activate(model, metadata)
        return metadata

    async def export_session(self, session: ForecastingSession) -> PortableModelFile:
        """Export the session model; weight extraction runs off the event loop."""
        if not session.has_model:
            raise ModelNotFoundError(session.architecture.value)
        return await asyncio.to_thread(
            self.export_portable, session.model, session.metadata
        )

    async def delete_for(self, session: ForecastingSession) -> int:
        """Delete the persisted model and reset the session."""
        deleted = await self.delete(session.architecture)
        session.clear()
        return deleted
