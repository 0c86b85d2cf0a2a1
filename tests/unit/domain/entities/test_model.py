from __future__ import annotations

import pytest

from src.domain.entities.model import (
    ArchitectureTag,
    FeedForwardArchitecture,
    RecurrentArchitecture,
    default_architecture,
)


@pytest.mark.parametrize("value", ["lstm", "LSTM", " Lstm "])
def test_architecture_tag_parse_ignores_case(value: str) -> None:
    assert ArchitectureTag.parse(value) is ArchitectureTag.LSTM


def test_architecture_tag_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Unsupported architecture"):
        ArchitectureTag.parse("gru")


def test_default_recurrent_architecture_layers() -> None:
    architecture = RecurrentArchitecture()

    assert architecture.tag is ArchitectureTag.LSTM
    assert [layer.units for layer in architecture.layers] == [104, 52]
    assert all(layer.dropout == 0.025 for layer in architecture.layers)


def test_default_feed_forward_architecture_layers() -> None:
    architecture = FeedForwardArchitecture()

    assert architecture.tag is ArchitectureTag.MLP
    assert architecture.describe() == {
        "kind": "feed_forward",
        "layers": [
            {"units": 128, "activation": "elu", "dropout": 0.2},
            {"units": 128, "activation": "tanh", "dropout": 0.2},
        ],
    }


def test_default_architecture_matches_tag() -> None:
    assert isinstance(default_architecture(ArchitectureTag.LSTM), RecurrentArchitecture)
    assert isinstance(
        default_architecture(ArchitectureTag.MLP), FeedForwardArchitecture
    )
