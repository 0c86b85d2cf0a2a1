"""
Domain Errors

This module defines custom error classes for domain-specific exceptions.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ModelValidationError(DomainError):
    """Raised when an architecture or training configuration is invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InsufficientDataError(DomainError):
    """Raised when the series is too short to train a model."""

    def __init__(
        self,
        available: int,
        required: int,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Need at least {required} years of data for training. "
            f"Currently have {available}."
        )
        super().__init__(
            message,
            {"available": available, "required": required, **(details or {})},
        )


class ModelNotFoundError(DomainError):
    """Raised when no trained or persisted model is available."""

    def __init__(self, architecture: str, details: Optional[Dict[str, Any]] = None):
        message = (
            f"No {architecture} model found. Train, load or upload a model first."
        )
        super().__init__(message, {"architecture": architecture, **(details or {})})


class InsufficientHistoryError(DomainError):
    """Raised when the forecast seed window is shorter than the lookback."""

    def __init__(self, available: int, lookback: int):
        message = f"Need at least {lookback} years of data, got {available}."
        super().__init__(message, {"available": available, "lookback": lookback})


class InvalidModelFileError(DomainError):
    """Raised when a portable model file cannot be imported."""

    WRONG_ARCHITECTURE = "wrong_architecture"
    CORRUPT = "corrupt"

    def __init__(
        self, message: str, reason: str, details: Optional[Dict[str, Any]] = None
    ):
        self.reason = reason
        super().__init__(message, {"reason": reason, **(details or {})})


class TrainingTimeoutError(DomainError):
    """Raised when training exceeds the configured wall-clock ceiling."""

    def __init__(self, timeout_seconds: float, epochs_completed: int):
        message = (
            f"Training exceeded {timeout_seconds:g}s after "
            f"{epochs_completed} epochs"
        )
        super().__init__(
            message,
            {"timeout_seconds": timeout_seconds, "epochs_completed": epochs_completed},
        )


class TrainingCancelledError(DomainError):
    """Raised when training is stopped by an external cancellation signal."""

    def __init__(self, epochs_completed: int):
        super().__init__(
            f"Training cancelled after {epochs_completed} epochs",
            {"epochs_completed": epochs_completed},
        )


class TrainingInProgressError(DomainError):
    """Raised when a second training run is requested for a busy architecture."""

    def __init__(self, architecture: str):
        super().__init__(
            f"A {architecture} training run is already in progress",
            {"architecture": architecture},
        )


class PersistenceError(DomainError):
    """Raised when the model store cannot be written or read."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
