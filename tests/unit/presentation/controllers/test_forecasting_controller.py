from __future__ import annotations

from typing import cast

import pytest
from fastapi import HTTPException

from src.application.dtos.prediction_dto import ForecastRequestDTO
from src.application.dtos.training_dto import DenseLayerDTO, TrainingRequestDTO
from src.application.use_cases.model_factory import KerasModelFactory
from src.application.use_cases.model_persistence_use_case import (
    ModelPersistenceUseCase,
    PortableModelFile,
)
from src.application.use_cases.model_prediction_use_case import (
    ModelPredictionUseCase,
)
from src.application.use_cases.model_training_use_case import ModelTrainingUseCase
from src.application.use_cases.training_management_use_case import (
    TrainingManagementUseCase,
)
from src.domain.entities.errors import (
    InsufficientDataError,
    InsufficientHistoryError,
    InvalidModelFileError,
    ModelNotFoundError,
    ModelValidationError,
    PersistenceError,
    TrainingInProgressError,
)
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.prediction import ForecastPoint
from src.domain.entities.session import ForecastingSession, SessionRegistry
from src.domain.entities.training_job import TrainingJob
from src.infrastructure.services.training_orchestrator import (
    AsyncioTrainingOrchestrator,
)
from src.presentation.controllers.forecasting_controller import (
    cancel_training,
    delete_model,
    download_model,
    forecast,
    get_model_summary,
    get_training_job,
    load_model,
    resolve_session,
    start_training,
    upload_model,
)


class _StubTrainingManagement:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.job: TrainingJob | None = None
        self.calls = []

    async def start_training(self, session, records, **kwargs):
        if self.error is not None:
            raise self.error
        self.calls.append((records, kwargs))
        self.job = TrainingJob(architecture=session.architecture, epochs=kwargs["epochs"])
        return self.job

    def get_latest_job(self, session):
        return self.job

    async def cancel_training(self, session):
        return self.job.id if self.job is not None else None


class _StubPrediction:
    def __init__(self, error: Exception | None = None):
        self.error = error

    async def forecast(self, session, horizon):
        if self.error is not None:
            raise self.error
        start = session.metadata.last_year + 1
        return [ForecastPoint(year=start + i, emigrants=1000 + i) for i in range(horizon)]


class _StubPersistence:
    def __init__(self, metadata, error: Exception | None = None):
        self.metadata = metadata
        self.error = error
        self.imported = None

    async def load_into(self, session):
        if self.error is not None:
            raise self.error
        session.activate(object(), self.metadata)
        return self.metadata

    async def import_into(self, session, content):
        if self.error is not None:
            raise self.error
        self.imported = content
        session.activate(object(), self.metadata)
        return self.metadata

    async def export_session(self, session):
        if self.error is not None:
            raise self.error
        return PortableModelFile(filename="lstm_model.json", content=b'{"a": 1}')

    async def delete_for(self, session):
        if self.error is not None:
            raise self.error
        session.clear()
        return 2


class _Upload:
    def __init__(self, filename: str, content: bytes = b"{}"):
        self.filename = filename
        self._content = content

    async def read(self) -> bytes:
        return self._content


def _training(stub) -> TrainingManagementUseCase:
    return cast(TrainingManagementUseCase, stub)


def _prediction(stub) -> ModelPredictionUseCase:
    return cast(ModelPredictionUseCase, stub)


def _persistence(stub) -> ModelPersistenceUseCase:
    return cast(ModelPersistenceUseCase, stub)


@pytest.fixture()
def session() -> ForecastingSession:
    return ForecastingSession(architecture=ArchitectureTag.LSTM)


def test_resolve_session_accepts_lowercase_path() -> None:
    sessions = SessionRegistry()

    resolved = resolve_session(architecture="mlp", sessions=sessions)

    assert resolved is sessions.get(ArchitectureTag.MLP)


def test_resolve_session_rejects_unknown_architecture() -> None:
    with pytest.raises(HTTPException) as exc:
        resolve_session(architecture="gru", sessions=SessionRegistry())
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_start_training_returns_job(session, sample_records) -> None:
    stub = _StubTrainingManagement()
    request = TrainingRequestDTO(records=sample_records, epochs=50)

    response = await start_training(
        request=request,
        session=session,
        training_management_use_case=_training(stub),
    )

    assert response.architecture is ArchitectureTag.LSTM
    assert response.epochs == 50
    records, kwargs = stub.calls[0]
    assert len(records) == len(sample_records)
    assert kwargs["architecture"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status_code",
    [
        (InsufficientDataError(available=3, required=8), 400),
        (TrainingInProgressError("LSTM"), 409),
        (ModelValidationError("bad layer"), 422),
        (RuntimeError("boom"), 500),
    ],
)
async def test_start_training_maps_errors(
    session, sample_records, error, status_code
) -> None:
    with pytest.raises(HTTPException) as exc:
        await start_training(
            request=TrainingRequestDTO(records=sample_records),
            session=session,
            training_management_use_case=_training(_StubTrainingManagement(error)),
        )
    assert exc.value.status_code == status_code


@pytest.mark.asyncio
async def test_start_training_with_unknown_activation_returns_422(
    sample_records,
) -> None:
    session = ForecastingSession(architecture=ArchitectureTag.MLP)
    orchestrator = AsyncioTrainingOrchestrator()
    training = ModelTrainingUseCase(
        persistence=None, prediction=None, model_factory=KerasModelFactory()
    )
    request = TrainingRequestDTO(
        records=sample_records,
        dense_layers=[DenseLayerDTO(units=4, activation="not_an_activation")],
    )

    with pytest.raises(HTTPException) as exc:
        await start_training(
            request=request,
            session=session,
            training_management_use_case=TrainingManagementUseCase(
                training, orchestrator
            ),
        )

    assert exc.value.status_code == 422
    assert exc.value.detail["errors"] == [
        "Dense layer #1 uses unknown activation 'not_an_activation'."
    ]
    assert orchestrator.get_latest_job(ArchitectureTag.MLP) is None


@pytest.mark.asyncio
async def test_insufficient_data_detail_carries_counts(session, sample_records) -> None:
    error = InsufficientDataError(available=3, required=8)

    with pytest.raises(HTTPException) as exc:
        await start_training(
            request=TrainingRequestDTO(records=sample_records),
            session=session,
            training_management_use_case=_training(_StubTrainingManagement(error)),
        )

    assert exc.value.detail["available"] == 3
    assert exc.value.detail["required"] == 8
    assert "Need at least 8" in exc.value.detail["message"]


@pytest.mark.asyncio
async def test_get_training_job_not_found(session) -> None:
    with pytest.raises(HTTPException) as exc:
        await get_training_job(
            session=session,
            training_management_use_case=_training(_StubTrainingManagement()),
        )
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_cancel_training_with_and_without_job(session, sample_records) -> None:
    stub = _StubTrainingManagement()

    idle = await cancel_training(
        session=session, training_management_use_case=_training(stub)
    )
    assert idle.training_job_id is None
    assert idle.message == "No LSTM training is running"

    await stub.start_training(session, sample_records, epochs=5)
    requested = await cancel_training(
        session=session, training_management_use_case=_training(stub)
    )
    assert requested.training_job_id == stub.job.id
    assert requested.message == "Cancellation requested"


@pytest.mark.asyncio
async def test_forecast_returns_points(session, sample_metadata) -> None:
    session.activate(object(), sample_metadata)

    response = await forecast(
        request=ForecastRequestDTO(horizon=3),
        session=session,
        model_prediction_use_case=_prediction(_StubPrediction()),
    )

    assert response.last_year == 2020
    assert [point.year for point in response.forecasts] == [2021, 2022, 2023]
    assert response.message == "Generated 3 year LSTM forecast"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status_code",
    [
        (ModelNotFoundError("LSTM"), 404),
        (InsufficientHistoryError(available=2, lookback=3), 400),
        (ValueError("Horizon must be between 1 and 10"), 400),
        (RuntimeError("boom"), 500),
    ],
)
async def test_forecast_maps_errors(session, error, status_code) -> None:
    with pytest.raises(HTTPException) as exc:
        await forecast(
            request=ForecastRequestDTO(horizon=3),
            session=session,
            model_prediction_use_case=_prediction(_StubPrediction(error)),
        )
    assert exc.value.status_code == status_code


@pytest.mark.asyncio
async def test_load_model_reports_accuracy(session, sample_metadata) -> None:
    response = await load_model(
        session=session,
        model_persistence_use_case=_persistence(_StubPersistence(sample_metadata)),
    )

    assert response.accuracy == sample_metadata.metrics.accuracy
    assert response.message == "LSTM model loaded successfully"


@pytest.mark.asyncio
async def test_load_model_without_saved_model(session, sample_metadata) -> None:
    stub = _StubPersistence(sample_metadata, ModelNotFoundError("LSTM"))

    with pytest.raises(HTTPException) as exc:
        await load_model(session=session, model_persistence_use_case=_persistence(stub))
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_get_model_summary(session, sample_metadata) -> None:
    empty = await get_model_summary(session=session)
    assert empty.has_model is False

    session.activate(object(), sample_metadata)
    summary = await get_model_summary(session=session)
    assert summary.has_model is True
    assert summary.metrics.accuracy == sample_metadata.metrics.accuracy


@pytest.mark.asyncio
async def test_download_model_returns_attachment(session, sample_metadata) -> None:
    response = await download_model(
        session=session,
        model_persistence_use_case=_persistence(_StubPersistence(sample_metadata)),
    )

    assert response.media_type == "application/json"
    assert response.body == b'{"a": 1}'
    assert (
        response.headers["content-disposition"]
        == 'attachment; filename="lstm_model.json"'
    )


@pytest.mark.asyncio
async def test_upload_model_rejects_non_json_filename(session, sample_metadata) -> None:
    stub = _StubPersistence(sample_metadata)

    with pytest.raises(HTTPException) as exc:
        await upload_model(
            file=_Upload("model.h5"),
            session=session,
            model_persistence_use_case=_persistence(stub),
        )

    assert exc.value.status_code == 400
    assert stub.imported is None


@pytest.mark.asyncio
async def test_upload_model_imports_content(session, sample_metadata) -> None:
    stub = _StubPersistence(sample_metadata)

    response = await upload_model(
        file=_Upload("LSTM_MODEL.JSON", b'{"model": true}'),
        session=session,
        model_persistence_use_case=_persistence(stub),
    )

    assert stub.imported == b'{"model": true}'
    assert response.message == "LSTM model uploaded successfully"
    assert session.has_model


@pytest.mark.asyncio
async def test_upload_model_with_wrong_architecture(session, sample_metadata) -> None:
    error = InvalidModelFileError(
        "This is an MLP model file", InvalidModelFileError.WRONG_ARCHITECTURE
    )

    with pytest.raises(HTTPException) as exc:
        await upload_model(
            file=_Upload("mlp_model.json"),
            session=session,
            model_persistence_use_case=_persistence(
                _StubPersistence(sample_metadata, error)
            ),
        )

    assert exc.value.status_code == 400
    assert exc.value.detail["reason"] == "wrong_architecture"


@pytest.mark.asyncio
async def test_delete_model(session, sample_metadata) -> None:
    session.activate(object(), sample_metadata)

    response = await delete_model(
        session=session,
        model_persistence_use_case=_persistence(_StubPersistence(sample_metadata)),
    )

    assert response.message == "LSTM model deleted successfully"
    assert not session.has_model


@pytest.mark.asyncio
async def test_delete_model_storage_failure(session, sample_metadata) -> None:
    stub = _StubPersistence(sample_metadata, PersistenceError("disk full"))

    with pytest.raises(HTTPException) as exc:
        await delete_model(session=session, model_persistence_use_case=_persistence(stub))
    assert exc.value.status_code == 500
