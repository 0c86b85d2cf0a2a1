"""
Domain Entities - Model Metadata

Training metadata must travel with the weights it describes: forecasting
reuses the normalization bounds and the last known observations captured at
training time. The JSON form keeps the key names of the browser application
so that previously downloaded model files remain importable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.domain.entities.model import ArchitectureTag
from src.domain.entities.prediction import ValidationResult
from src.domain.entities.time_series import YearlyObservation
from src.domain.entities.training_job import Metrics


@dataclass(frozen=True)
class NormalizationBounds:
    """Min/max of one feature over the training series."""

    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass
class ModelMetadata:
    """Everything besides the weights that a forecast needs."""

    model_type: ArchitectureTag
    lookback: int
    features: List[str]
    target: str
    bounds: Dict[str, NormalizationBounds]
    last_year: int
    last_data: List[YearlyObservation]
    metrics: Metrics
    trained_at: str
    validation_results: List[ValidationResult] = field(default_factory=list)

    validation_metrics: Optional[Metrics] = None
    architecture: Optional[Dict[str, Any]] = None
    epochs: Optional[int] = None
    validation_split: Optional[float] = None
    data_points: Optional[int] = None
    # Best accuracy of any run for this architecture when this one was saved.
    best_accuracy: Optional[float] = None

    def target_bounds(self) -> NormalizationBounds:
        return self.bounds[self.target]

    def consistency_errors(self) -> List[str]:
        """Reasons this metadata cannot drive a forecast; empty when usable."""
        errors: List[str] = []
        if self.lookback <= 0:
            errors.append(f"lookback must be positive, got {self.lookback}")
        if not self.features:
            errors.append("features must not be empty")
        for name in dict.fromkeys([self.target, *self.features]):
            if name not in self.bounds:
                errors.append(f"no normalization bounds for '{name}'")
        if len(self.last_data) < self.lookback:
            errors.append(
                f"lastData holds {len(self.last_data)} rows, "
                f"lookback needs {self.lookback}"
            )
        return errors

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "modelType": self.model_type.value,
            "lookback": self.lookback,
            "features": list(self.features),
            "target": self.target,
            "mins": {name: b.min for name, b in self.bounds.items()},
            "maxs": {name: b.max for name, b in self.bounds.items()},
            "lastYear": self.last_year,
            "lastData": [
                {"year": row.year, "emigrants": row.emigrants}
                for row in self.last_data
            ],
            "metrics": self.metrics.to_dict(),
            "trainedAt": self.trained_at,
            "validationResults": [row.to_dict() for row in self.validation_results],
        }
        if self.validation_metrics is not None:
            payload["validationMetrics"] = self.validation_metrics.to_dict()
        if self.architecture is not None:
            payload["architecture"] = self.architecture
        if self.epochs is not None:
            payload["epochs"] = self.epochs
        if self.validation_split is not None:
            payload["validationSplit"] = self.validation_split
        if self.data_points is not None:
            payload["dataPoints"] = self.data_points
        if self.best_accuracy is not None:
            payload["bestAccuracy"] = self.best_accuracy
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ModelMetadata":
        """Rebuild metadata from its JSON form.

        Raises:
            ValueError: If a required key is missing or malformed.
        """
        try:
            mins = payload["mins"]
            maxs = payload["maxs"]
            bounds = {
                name: NormalizationBounds(min=float(mins[name]), max=float(maxs[name]))
                for name in mins
            }
            validation_metrics = payload.get("validationMetrics")
            return cls(
                model_type=ArchitectureTag.parse(payload["modelType"]),
                lookback=int(payload["lookback"]),
                features=[str(name) for name in payload["features"]],
                target=str(payload["target"]),
                bounds=bounds,
                last_year=int(payload["lastYear"]),
                last_data=[
                    YearlyObservation(
                        year=int(row["year"]), emigrants=float(row["emigrants"])
                    )
                    for row in payload["lastData"]
                ],
                metrics=Metrics.from_dict(payload["metrics"]),
                trained_at=str(payload["trainedAt"]),
                validation_results=[
                    ValidationResult.from_dict(row)
                    for row in payload.get("validationResults") or []
                ],
                validation_metrics=(
                    Metrics.from_dict(validation_metrics)
                    if validation_metrics
                    else None
                ),
                architecture=payload.get("architecture"),
                epochs=(
                    int(payload["epochs"]) if payload.get("epochs") is not None else None
                ),
                validation_split=(
                    float(payload["validationSplit"])
                    if payload.get("validationSplit") is not None
                    else None
                ),
                data_points=(
                    int(payload["dataPoints"])
                    if payload.get("dataPoints") is not None
                    else None
                ),
                best_accuracy=(
                    float(payload["bestAccuracy"])
                    if payload.get("bestAccuracy") is not None
                    else None
                ),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed model metadata: {exc!r}") from exc
