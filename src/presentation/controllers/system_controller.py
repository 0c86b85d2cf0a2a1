"""System endpoints exposing service health."""

from datetime import datetime, timezone

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Request

from src.application.dtos.health_dto import SystemHealthDTO
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.session import SessionRegistry
from src.shared import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health", response_model=SystemHealthDTO)
@inject
async def health(
    request: Request,
    sessions: SessionRegistry = Depends(Provide["sessions"]),
    version: str = Depends(Provide["config.app.version"]),
    storage_backend=Depends(Provide["config.storage.backend"]),
) -> SystemHealthDTO:
    """Return the service status and which architectures can forecast."""
    started_at = getattr(request.app.state, "started_at", None)
    uptime = None
    if started_at is not None:
        uptime = (datetime.now(timezone.utc) - started_at).total_seconds()

    models = {tag.value: sessions.get(tag).has_model for tag in ArchitectureTag}
    logger.debug("health.check.success", models=models)

    return SystemHealthDTO(
        version=version,
        storage_backend=getattr(storage_backend, "value", str(storage_backend)),
        uptime_seconds=uptime,
        models=models,
    )
