from __future__ import annotations

import json

import pytest

from src.application.use_cases.data_preprocessing_use_case import (
    DataPreprocessingUseCase,
)
from src.application.use_cases.model_factory import KerasModelFactory
from src.application.use_cases.model_persistence_use_case import (
    ModelPersistenceUseCase,
)
from src.application.use_cases.model_prediction_use_case import ModelPredictionUseCase
from src.application.use_cases.model_training_use_case import ModelTrainingUseCase
from src.domain.entities.errors import InvalidModelFileError
from src.domain.entities.model import (
    ArchitectureTag,
    DenseLayerConfig,
    FeedForwardArchitecture,
    RecurrentArchitecture,
    RecurrentLayerConfig,
)
from src.domain.entities.session import ForecastingSession
from src.infrastructure.repositories.filesystem_model_artifacts_repository import (
    FilesystemModelArtifactsRepository,
)
from src.infrastructure.services.keras_model_codec import KerasModelCodec


@pytest.fixture()
def persistence(tmp_path) -> ModelPersistenceUseCase:
    return ModelPersistenceUseCase(
        artifacts_repository=FilesystemModelArtifactsRepository(str(tmp_path)),
        codec=KerasModelCodec(),
    )


@pytest.fixture()
def training(persistence) -> ModelTrainingUseCase:
    factory = KerasModelFactory()
    return ModelTrainingUseCase(
        persistence=persistence,
        prediction=ModelPredictionUseCase(factory),
        model_factory=factory,
        preprocessing=DataPreprocessingUseCase(lookback=3),
    )


@pytest.mark.asyncio
async def test_train_save_load_and_forecast(training, persistence, sample_records):
    session = ForecastingSession(architecture=ArchitectureTag.MLP)
    small = FeedForwardArchitecture(
        layers=[DenseLayerConfig(units=4, activation="tanh", dropout=0.0)]
    )

    metadata = await training.execute(
        session, sample_records, architecture=small, epochs=3
    )

    assert session.has_model
    assert metadata.last_year == 2001
    assert [row.year for row in metadata.last_data] == [1999, 2000, 2001]
    assert metadata.data_points == 12

    restored = ForecastingSession(architecture=ArchitectureTag.MLP)
    loaded = await persistence.load_into(restored)
    assert loaded.last_year == metadata.last_year

    prediction = ModelPredictionUseCase(KerasModelFactory())
    original = await prediction.forecast(session, 4)
    reloaded = await prediction.forecast(restored, 4)

    assert [point.year for point in original] == [2002, 2003, 2004, 2005]
    assert [point.emigrants for point in original] == [
        point.emigrants for point in reloaded
    ]
    assert all(point.emigrants >= 0 for point in original)


@pytest.mark.asyncio
async def test_download_and_upload_round_trip(training, persistence, sample_records):
    session = ForecastingSession(architecture=ArchitectureTag.LSTM)
    small = RecurrentArchitecture(
        layers=[RecurrentLayerConfig(units=4), RecurrentLayerConfig(units=2)]
    )
    await training.execute(session, sample_records, architecture=small, epochs=2)

    portable = await persistence.export_session(session)
    assert portable.filename.endswith(".json")
    assert json.loads(portable.content)["metadata"]["modelType"] == "LSTM"

    await persistence.delete_for(session)
    assert not session.has_model

    metadata = await persistence.import_into(session, portable.content)
    assert session.has_model
    assert metadata.lookback == 3

    mlp = ForecastingSession(architecture=ArchitectureTag.MLP)
    with pytest.raises(InvalidModelFileError) as exc:
        await persistence.import_into(mlp, portable.content)
    assert exc.value.reason == InvalidModelFileError.WRONG_ARCHITECTURE
