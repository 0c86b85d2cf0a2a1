from __future__ import annotations

import pytest

from src.domain.entities.errors import ModelValidationError
from src.domain.entities.model import (
    DenseLayerConfig,
    FeedForwardArchitecture,
    RecurrentArchitecture,
    RecurrentLayerConfig,
)
from src.domain.services.model_validator import (
    validate_architecture,
    validate_training_parameters,
)


def test_validate_architecture_accepts_defaults() -> None:
    validate_architecture(RecurrentArchitecture())
    validate_architecture(FeedForwardArchitecture())


def test_validate_architecture_reports_recurrent_errors() -> None:
    architecture = RecurrentArchitecture(
        layers=[RecurrentLayerConfig(units=0, dropout=1.0)]
    )

    with pytest.raises(ModelValidationError) as exc:
        validate_architecture(architecture)

    details = exc.value.details["errors"]
    assert "Recurrent layer #1" in details[0]
    assert any("dropout" in item for item in details)


def test_validate_architecture_reports_dense_errors() -> None:
    architecture = FeedForwardArchitecture(
        layers=[DenseLayerConfig(units=-1, activation=" ", dropout=-0.1)]
    )

    with pytest.raises(ModelValidationError) as exc:
        validate_architecture(architecture)

    details = exc.value.details["errors"]
    assert len(details) == 3
    assert any("activation" in item for item in details)


def test_validate_architecture_requires_layers() -> None:
    with pytest.raises(ModelValidationError):
        validate_architecture(RecurrentArchitecture(layers=[]))
    with pytest.raises(ModelValidationError):
        validate_architecture(FeedForwardArchitecture(layers=[]))


def test_validate_training_parameters() -> None:
    validate_training_parameters(
        lookback=3, epochs=100, validation_split=0.2, learning_rate=0.001
    )

    with pytest.raises(ModelValidationError) as exc:
        validate_training_parameters(
            lookback=0, epochs=0, validation_split=1.0, learning_rate=0.0
        )

    assert len(exc.value.details["errors"]) == 4
