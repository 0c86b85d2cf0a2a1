"""Domain entities for forecast output and validation reporting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class ForecastPoint:
    """One year of a forecast rollout."""

    year: int
    emigrants: int
    is_forecast: bool = True


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Actual vs. predicted emigrants for one held-out year."""

    year: int
    actual: int
    predicted: int
    error: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "actual": self.actual,
            "predicted": self.predicted,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ValidationResult":
        return cls(
            year=int(payload["year"]),
            actual=int(round(float(payload["actual"]))),
            predicted=int(round(float(payload["predicted"]))),
            error=int(round(float(payload["error"]))),
        )
