"""
Domain Entities - Model

This module defines the architecture descriptors of the two supported
forecasting networks. A descriptor is a tagged variant: the tag identifies
which shape a set of weights belongs to, the layers describe how to build it.
Both descriptors are plain data, free of any numeric backend.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union


class ArchitectureTag(str, Enum):
    """Label identifying which model shape a set of weights belongs to."""

    LSTM = "LSTM"
    MLP = "MLP"

    @classmethod
    def parse(cls, value: Union[str, "ArchitectureTag"]) -> "ArchitectureTag":
        """Resolve a tag from user input, ignoring case."""
        if isinstance(value, ArchitectureTag):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            supported = ", ".join(tag.value for tag in cls)
            raise ValueError(
                f"Unsupported architecture '{value}'. Expected one of: {supported}"
            ) from None


@dataclass
class RecurrentLayerConfig:
    """Configuration for an individual recurrent layer."""

    units: int
    dropout: float = 0.025


@dataclass
class DenseLayerConfig:
    """Configuration for an individual dense layer."""

    units: int
    activation: str = "relu"
    dropout: float = 0.2


# Widths used by the production forecast path. The older build helper used
# 50/50; both remain reachable through ``RecurrentArchitecture(layers=...)``.
DEFAULT_RECURRENT_UNITS = (104, 52)


@dataclass
class RecurrentArchitecture:
    """Stacked recurrent layers feeding a single linear output unit."""

    layers: List[RecurrentLayerConfig] = field(
        default_factory=lambda: [
            RecurrentLayerConfig(units=units) for units in DEFAULT_RECURRENT_UNITS
        ]
    )

    @property
    def tag(self) -> ArchitectureTag:
        return ArchitectureTag.LSTM

    def describe(self) -> Dict[str, Any]:
        return {
            "kind": "recurrent",
            "layers": [
                {"units": layer.units, "dropout": layer.dropout}
                for layer in self.layers
            ],
        }


@dataclass
class FeedForwardArchitecture:
    """Dense layers over the flattened lookback window."""

    layers: List[DenseLayerConfig] = field(
        default_factory=lambda: [
            DenseLayerConfig(units=128, activation="elu", dropout=0.2),
            DenseLayerConfig(units=128, activation="tanh", dropout=0.2),
        ]
    )

    @property
    def tag(self) -> ArchitectureTag:
        return ArchitectureTag.MLP

    def describe(self) -> Dict[str, Any]:
        return {
            "kind": "feed_forward",
            "layers": [
                {
                    "units": layer.units,
                    "activation": layer.activation,
                    "dropout": layer.dropout,
                }
                for layer in self.layers
            ],
        }


Architecture = Union[RecurrentArchitecture, FeedForwardArchitecture]


def default_architecture(tag: ArchitectureTag) -> Architecture:
    """Return the canonical descriptor for an architecture tag."""
    if tag == ArchitectureTag.LSTM:
        return RecurrentArchitecture()
    return FeedForwardArchitecture()
