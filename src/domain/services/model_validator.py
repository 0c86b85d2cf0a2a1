"""Domain service helpers for validating architectures and training settings."""

from typing import List

from src.domain.entities.errors import ModelValidationError
from src.domain.entities.model import (
    Architecture,
    DenseLayerConfig,
    FeedForwardArchitecture,
    RecurrentLayerConfig,
)


def _validate_recurrent_layers(
    layers: List[RecurrentLayerConfig], errors: List[str]
) -> None:
    if not layers:
        errors.append("Model must have at least one recurrent layer configured.")
        return

    for idx, layer in enumerate(layers, start=1):
        prefix = f"Recurrent layer #{idx}"
        if layer.units <= 0:
            errors.append(f"{prefix} must have more than 0 units.")
        if not 0.0 <= layer.dropout < 1.0:
            errors.append(
                f"{prefix} dropout must be between 0 (inclusive) and 1 (exclusive)."
            )


def _validate_dense_layers(layers: List[DenseLayerConfig], errors: List[str]) -> None:
    if not layers:
        errors.append("Model must have at least one dense layer configured.")
        return

    for idx, layer in enumerate(layers, start=1):
        prefix = f"Dense layer #{idx}"
        if layer.units <= 0:
            errors.append(f"{prefix} must have more than 0 units.")
        if not 0.0 <= layer.dropout < 1.0:
            errors.append(
                f"{prefix} dropout must be between 0 (inclusive) and 1 (exclusive)."
            )
        if not layer.activation or not layer.activation.strip():
            errors.append(f"{prefix} must define a non-empty activation function.")


def validate_architecture(architecture: Architecture) -> None:
    """Validate the layer layout of an architecture descriptor.

    Raises:
        ModelValidationError: If one or more validation rules fail.
    """

    errors: List[str] = []

    if isinstance(architecture, FeedForwardArchitecture):
        _validate_dense_layers(architecture.layers, errors)
    else:
        _validate_recurrent_layers(architecture.layers, errors)

    if errors:
        raise ModelValidationError(
            "Model architecture is invalid.", details={"errors": errors}
        )


def validate_training_parameters(
    lookback: int, epochs: int, validation_split: float, learning_rate: float
) -> None:
    """Validate the scalar hyperparameters of a training run."""

    errors: List[str] = []

    if lookback <= 0:
        errors.append("Lookback window must be greater than 0.")
    if epochs <= 0:
        errors.append("Number of epochs must be greater than 0.")
    if not 0.0 < validation_split < 1.0:
        errors.append(
            "Validation split must be between 0 (exclusive) and 1 (exclusive)."
        )
    if not 0.0 < learning_rate <= 1.0:
        errors.append("Learning rate must be greater than 0 and at most 1.")

    if errors:
        raise ModelValidationError(
            "Training configuration is invalid.", details={"errors": errors}
        )
