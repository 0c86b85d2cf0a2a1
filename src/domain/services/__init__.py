"""Domain services package."""

from .model_validator import validate_architecture, validate_training_parameters

__all__ = ["validate_architecture", "validate_training_parameters"]
