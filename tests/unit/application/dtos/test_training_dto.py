from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.application.dtos.training_dto import (
    MetricsDTO,
    TrainingJobDTO,
    TrainingRequestDTO,
)
from src.domain.entities.model import (
    ArchitectureTag,
    FeedForwardArchitecture,
    RecurrentArchitecture,
)
from src.domain.entities.training_job import TrainingJob, TrainingStatus


def _records():
    return [{"year": 2000, "male": 10, "female": 12}]


def test_training_request_dto_defaults() -> None:
    dto = TrainingRequestDTO(records=_records())

    assert dto.epochs == 100
    assert dto.validation_split == 0.2
    assert dto.to_architecture(ArchitectureTag.LSTM) is None
    assert dto.to_architecture(ArchitectureTag.MLP) is None


def test_training_request_accepts_loose_record_values() -> None:
    dto = TrainingRequestDTO(
        records=[{"year": "2001", "male": "1,200", "female": None}]
    )

    assert dto.records[0].male == "1,200"
    assert dto.records[0].female is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"records": []},
        {"epochs": 0},
        {"validation_split": 0.0},
        {"validation_split": 1.0},
        {"recurrent_layers": [{"units": 0}]},
        {"dense_layers": [{"units": 8, "dropout": 1.0}]},
    ],
)
def test_training_request_rejects_invalid_values(overrides) -> None:
    payload = {"records": _records(), **overrides}

    with pytest.raises(ValidationError):
        TrainingRequestDTO(**payload)


def test_to_architecture_builds_layer_overrides() -> None:
    dto = TrainingRequestDTO(
        records=_records(),
        recurrent_layers=[{"units": 64}, {"units": 32, "dropout": 0.1}],
        dense_layers=[{"units": 16, "activation": "tanh"}],
    )

    recurrent = dto.to_architecture(ArchitectureTag.LSTM)
    dense = dto.to_architecture(ArchitectureTag.MLP)

    assert isinstance(recurrent, RecurrentArchitecture)
    assert [layer.units for layer in recurrent.layers] == [64, 32]
    assert recurrent.layers[0].dropout == 0.025
    assert isinstance(dense, FeedForwardArchitecture)
    assert dense.layers[0].activation == "tanh"
    assert dense.layers[0].dropout == 0.2


def test_training_job_dto_from_entity(sample_metrics) -> None:
    job = TrainingJob(architecture=ArchitectureTag.MLP, epochs=40)
    job.mark_running()
    job.mark_completed(sample_metrics)

    dto = TrainingJobDTO.from_entity(job)

    assert dto.status is TrainingStatus.COMPLETED
    assert dto.metrics == MetricsDTO(**sample_metrics.to_dict())
    assert dto.duration_seconds is not None
    assert dto.model_dump()["architecture"] == ArchitectureTag.MLP
