"""DTOs for the service health response."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class SystemHealthDTO(BaseModel):
    """DTO representing the /health response payload."""

    status: str = Field(default="up", description="Overall service status")
    version: str = Field(description="Application version")
    storage_backend: str = Field(description="Where trained models are persisted")
    uptime_seconds: Optional[float] = Field(
        default=None, description="Seconds since the application started"
    )
    models: Dict[str, bool] = Field(
        default_factory=dict,
        description="Whether each architecture has a model ready to forecast",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "up",
                "version": "1.0.0",
                "storage_backend": "filesystem",
                "uptime_seconds": 3600.5,
                "models": {"LSTM": True, "MLP": False},
            }
        }
    }
