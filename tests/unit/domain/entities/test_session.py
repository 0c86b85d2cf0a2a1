from __future__ import annotations

from dataclasses import replace

from src.domain.entities.model import ArchitectureTag
from src.domain.entities.session import ForecastingSession, SessionRegistry


def test_activate_tracks_best_accuracy(sample_metadata) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)
    assert not session.has_model

    session.activate(object(), sample_metadata)
    assert session.has_model
    assert session.best_accuracy == 97.5

    worse = replace(
        sample_metadata, metrics=replace(sample_metadata.metrics, accuracy=80.0)
    )
    session.activate(object(), worse)
    assert session.metadata is worse
    assert session.best_accuracy == 97.5


def test_clear_keeps_best_accuracy(sample_metadata) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)
    session.activate(object(), sample_metadata)

    session.clear()

    assert session.model is None
    assert session.metadata is None
    assert session.best_accuracy == 97.5


def test_activate_restores_stored_best_accuracy(sample_metadata) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)
    reloaded = replace(sample_metadata, best_accuracy=99.1)

    session.activate(object(), reloaded)

    assert session.best_accuracy == 99.1
    assert session.best_with(99.5) == 99.5
    assert session.best_with(50.0) == 99.1


def test_registry_holds_one_session_per_architecture() -> None:
    registry = SessionRegistry()

    lstm = registry.get(ArchitectureTag.LSTM)
    assert registry.get(ArchitectureTag.LSTM) is lstm
    assert registry.get(ArchitectureTag.MLP) is not lstm
    assert registry.get(ArchitectureTag.MLP).architecture is ArchitectureTag.MLP
