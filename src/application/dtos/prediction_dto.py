"""
Application DTOs - Prediction

DTOs exchanged by the forecast endpoint.
"""

from typing import List

from pydantic import BaseModel, Field

from src.domain.entities.model import ArchitectureTag
from src.domain.entities.prediction import ForecastPoint


class ForecastRequestDTO(BaseModel):
    """DTO for a forecast request."""

    horizon: int = Field(
        default=5, ge=1, le=10, description="Number of years to forecast"
    )


class ForecastPointDTO(BaseModel):
    """One forecasted year."""

    year: int
    emigrants: int = Field(..., ge=0)
    is_forecast: bool = True

    @classmethod
    def from_entity(cls, point: ForecastPoint) -> "ForecastPointDTO":
        return cls(
            year=point.year, emigrants=point.emigrants, is_forecast=point.is_forecast
        )


class ForecastResponseDTO(BaseModel):
    """DTO for a forecast rollout."""

    architecture: ArchitectureTag
    last_year: int = Field(..., description="Last observed year of the training data")
    forecasts: List[ForecastPointDTO]
    message: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "architecture": "LSTM",
                "last_year": 2020,
                "forecasts": [
                    {"year": 2021, "emigrants": 151234, "is_forecast": True},
                    {"year": 2022, "emigrants": 153010, "is_forecast": True},
                ],
                "message": "Generated 2 year LSTM forecast",
            }
        }
    }
