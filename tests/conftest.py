from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.domain.entities.errors import PersistenceError  # noqa: E402
from src.domain.entities.model import ArchitectureTag  # noqa: E402
from src.domain.entities.model_metadata import (  # noqa: E402
    ModelMetadata,
    NormalizationBounds,
)
from src.domain.entities.prediction import ValidationResult  # noqa: E402
from src.domain.entities.time_series import YearlyObservation  # noqa: E402
from src.domain.entities.training_job import Metrics  # noqa: E402
from src.domain.repositories.model_artifacts_repository import (  # noqa: E402
    IModelArtifactsRepository,
    ModelArtifact,
)


@pytest.fixture()
def sample_records() -> List[Dict[str, Any]]:
    """Twelve years of sex-split counts, deliberately out of order."""
    rows = [
        {"year": 1990 + i, "male": 40000 + 1500 * i, "female": 45000 + 1200 * i}
        for i in range(12)
    ]
    return rows[6:] + rows[:6]


@pytest.fixture()
def sample_metrics() -> Metrics:
    return Metrics(mae=1200.0, rmse=1500.0, mape=2.5, r2=0.91, accuracy=97.5)


@pytest.fixture()
def sample_metadata(sample_metrics: Metrics) -> ModelMetadata:
    return ModelMetadata(
        model_type=ArchitectureTag.LSTM,
        lookback=3,
        features=["emigrants"],
        target="emigrants",
        bounds={"emigrants": NormalizationBounds(min=100.0, max=200.0)},
        last_year=2020,
        last_data=[
            YearlyObservation(year=2018, emigrants=150.0),
            YearlyObservation(year=2019, emigrants=160.0),
            YearlyObservation(year=2020, emigrants=170.0),
        ],
        metrics=sample_metrics,
        trained_at="2024-05-01T10:00:00+00:00",
        validation_results=[
            ValidationResult(year=2020, actual=170, predicted=168, error=-2)
        ],
        validation_metrics=sample_metrics,
        architecture={"kind": "recurrent", "layers": [{"units": 4, "dropout": 0.0}]},
        epochs=10,
        validation_split=0.2,
        data_points=12,
    )


class ConstantModel:
    """Stands in for a Keras model, returning one value per input row."""

    def __init__(self, value: float = 0.5):
        self.value = value
        self.calls: List[np.ndarray] = []

    def predict(self, inputs: np.ndarray, verbose: int = 0) -> np.ndarray:
        self.calls.append(np.asarray(inputs))
        return np.full((len(inputs), 1), self.value, dtype=np.float32)


@pytest.fixture()
def constant_model() -> ConstantModel:
    return ConstantModel()


class InMemoryArtifactsRepository(IModelArtifactsRepository):
    """Dictionary-backed artifact store with optional injected failures."""

    def __init__(self) -> None:
        self.items: Dict[tuple, ModelArtifact] = {}
        self.fail_on: Optional[str] = None
        self.saves: List[str] = []

    async def save_artifact(
        self,
        architecture: ArchitectureTag,
        artifact_type: str,
        content: bytes,
        metadata: Optional[Dict[str, Any]] = None,
        filename: Optional[str] = None,
    ) -> str:
        if self.fail_on == artifact_type:
            raise PersistenceError(f"cannot write {artifact_type}")
        artifact_id = f"{architecture.value}/{artifact_type}/{len(self.saves)}"
        self.items[(architecture, artifact_type)] = ModelArtifact(
            artifact_id=artifact_id,
            artifact_type=artifact_type,
            content=content,
            metadata=metadata,
            filename=filename,
        )
        self.saves.append(artifact_type)
        return artifact_id

    async def get_artifact(
        self, architecture: ArchitectureTag, artifact_type: str
    ) -> Optional[ModelArtifact]:
        return self.items.get((architecture, artifact_type))

    async def delete_artifact(
        self, architecture: ArchitectureTag, artifact_type: str
    ) -> bool:
        return self.items.pop((architecture, artifact_type), None) is not None

    async def delete_model_artifacts(self, architecture: ArchitectureTag) -> int:
        keys = [key for key in self.items if key[0] == architecture]
        for key in keys:
            del self.items[key]
        return len(keys)

    async def list_model_artifacts(
        self, architecture: ArchitectureTag
    ) -> Dict[str, str]:
        return {
            artifact_type: artifact.artifact_id
            for (arch, artifact_type), artifact in self.items.items()
            if arch == architecture
        }


@pytest.fixture()
def memory_repository() -> InMemoryArtifactsRepository:
    return InMemoryArtifactsRepository()
