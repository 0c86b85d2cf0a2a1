"""
Application Use Cases - Model Factory

Builds compiled Keras networks from architecture descriptors so that a
single training pipeline can serve every supported architecture.
"""

from __future__ import annotations

import numpy as np
import structlog
from tensorflow.keras import activations  # type: ignore
from tensorflow.keras.layers import LSTM, Dense, Dropout, Input  # type: ignore
from tensorflow.keras.models import Sequential  # type: ignore
from tensorflow.keras.optimizers import Adam  # type: ignore

from src.domain.entities.errors import ModelValidationError
from src.domain.entities.model import (
    Architecture,
    ArchitectureTag,
    FeedForwardArchitecture,
    RecurrentArchitecture,
)
from src.domain.services.model_validator import validate_architecture

logger = structlog.get_logger(__name__)

DEFAULT_LEARNING_RATE = 0.001


class KerasModelFactory:
    """Turns architecture descriptors into compiled ``Sequential`` models."""

    def __init__(self, learning_rate: float = DEFAULT_LEARNING_RATE):
        self.learning_rate = learning_rate

    def build(
        self, architecture: Architecture, lookback: int, n_features: int
    ) -> Sequential:
        """Build and compile the network described by ``architecture``."""

        self.validate(architecture)

        if isinstance(architecture, FeedForwardArchitecture):
            model = self._build_feed_forward(architecture, lookback, n_features)
        else:
            model = self._build_recurrent(architecture, lookback, n_features)

        model.compile(
            optimizer=Adam(learning_rate=self.learning_rate),
            loss="mean_squared_error",
            metrics=["mae"],
        )

        logger.info(
            "model_factory.built",
            architecture=architecture.tag.value,
            total_params=model.count_params(),
            lookback=lookback,
            n_features=n_features,
            layers=architecture.describe()["layers"],
        )

        return model

    def validate(self, architecture: Architecture) -> None:
        """
        Check a descriptor without building it.

        Layout rules come from the domain validator; activation names are
        resolved through Keras so unknown identifiers fail here rather than
        during a background fit.

        Raises:
            ModelValidationError: If the layout or an activation is invalid
        """
        validate_architecture(architecture)

        if not isinstance(architecture, FeedForwardArchitecture):
            return

        errors = []
        for idx, layer_cfg in enumerate(architecture.layers, start=1):
            try:
                activations.get(layer_cfg.activation)
            except ValueError:
                errors.append(
                    f"Dense layer #{idx} uses unknown activation "
                    f"'{layer_cfg.activation}'."
                )
        if errors:
            raise ModelValidationError(
                "Model architecture is invalid.", details={"errors": errors}
            )

    def _build_recurrent(
        self, architecture: RecurrentArchitecture, lookback: int, n_features: int
    ) -> Sequential:
        model = Sequential()
        model.add(Input(shape=(lookback, n_features)))

        for i, layer_cfg in enumerate(architecture.layers):
            return_sequences = i < len(architecture.layers) - 1
            model.add(
                LSTM(
                    layer_cfg.units,
                    return_sequences=return_sequences,
                    dropout=layer_cfg.dropout,
                )
            )

        model.add(Dense(1))
        return model

    def _build_feed_forward(
        self, architecture: FeedForwardArchitecture, lookback: int, n_features: int
    ) -> Sequential:
        model = Sequential()
        model.add(Input(shape=(lookback * n_features,)))

        for layer_cfg in architecture.layers:
            model.add(Dense(layer_cfg.units, activation=layer_cfg.activation))
            if layer_cfg.dropout > 0:
                model.add(Dropout(layer_cfg.dropout))

        model.add(Dense(1))
        return model

    @staticmethod
    def shape_inputs(architecture_tag: ArchitectureTag, x: np.ndarray) -> np.ndarray:
        """
        Reshape windows for the network input.

        Recurrent models consume ``(samples, lookback, features)`` windows;
        feed-forward models consume each window flattened to one vector.
        """
        x = np.asarray(x, dtype=np.float32)
        if architecture_tag == ArchitectureTag.MLP:
            return x.reshape((x.shape[0], -1))
        return x
