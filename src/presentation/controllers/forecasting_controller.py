"""
Forecasting Router - Presentation Layer

This module defines the FastAPI router for the per-architecture forecasting
actions: train, forecast, load, upload, download and delete, plus training
status and cancellation.
"""

from typing import Dict, Type

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Path,
    Response,
    UploadFile,
    status,
)

from src.application.dtos.model_dto import ActionResultDTO, ModelSummaryDTO
from src.application.dtos.prediction_dto import (
    ForecastPointDTO,
    ForecastRequestDTO,
    ForecastResponseDTO,
)
from src.application.dtos.training_dto import (
    CancelTrainingResponseDTO,
    TrainingJobDTO,
    TrainingRequestDTO,
)
from src.application.use_cases.model_persistence_use_case import (
    ModelPersistenceUseCase,
)
from src.application.use_cases.model_prediction_use_case import (
    ModelPredictionUseCase,
)
from src.application.use_cases.training_management_use_case import (
    TrainingManagementUseCase,
)
from src.domain.entities.errors import (
    DomainError,
    InsufficientDataError,
    InsufficientHistoryError,
    InvalidModelFileError,
    ModelNotFoundError,
    ModelValidationError,
    PersistenceError,
    TrainingInProgressError,
)
from src.domain.entities.model import ArchitectureTag
from src.domain.entities.session import ForecastingSession, SessionRegistry

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/forecasting/{architecture}", tags=["Forecasting"])

_STATUS_BY_ERROR: Dict[Type[DomainError], int] = {
    InsufficientDataError: status.HTTP_400_BAD_REQUEST,
    InsufficientHistoryError: status.HTTP_400_BAD_REQUEST,
    InvalidModelFileError: status.HTTP_400_BAD_REQUEST,
    ModelValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ModelNotFoundError: status.HTTP_404_NOT_FOUND,
    TrainingInProgressError: status.HTTP_409_CONFLICT,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _to_http_exception(error: DomainError) -> HTTPException:
    status_code = next(
        (
            code
            for error_type, code in _STATUS_BY_ERROR.items()
            if isinstance(error, error_type)
        ),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    detail = {"message": error.message, **error.details} if error.details else error.message
    return HTTPException(status_code=status_code, detail=detail)


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@inject
def resolve_session(
    architecture: str = Path(..., description="Model architecture (lstm or mlp)"),
    sessions: SessionRegistry = Depends(Provide["sessions"]),
) -> ForecastingSession:
    """Map the path parameter to the session of that architecture."""
    try:
        tag = ArchitectureTag.parse(architecture)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return sessions.get(tag)


@router.post(
    "/train",
    response_model=TrainingJobDTO,
    status_code=status.HTTP_202_ACCEPTED,
)
@inject
async def start_training(
    request: TrainingRequestDTO,
    session: ForecastingSession = Depends(resolve_session),
    training_management_use_case: TrainingManagementUseCase = Depends(
        Provide["training_management_use_case"]
    ),
) -> TrainingJobDTO:
    """
    Start training a model in the background.

    Poll `GET /training` for progress; the trained model becomes current for
    forecasting once the job completes.
    """
    try:
        job = await training_management_use_case.start_training(
            session,
            request.records,
            epochs=request.epochs,
            validation_split=request.validation_split,
            architecture=request.to_architecture(session.architecture),
        )
        return TrainingJobDTO.from_entity(job)
    except DomainError as e:
        logger.warning(
            "forecasting.train.rejected",
            architecture=session.architecture.value,
            error=e.message,
        )
        raise _to_http_exception(e)
    except Exception as e:
        logger.error(
            "forecasting.train.failed",
            architecture=session.architecture.value,
            error=str(e),
        )
        raise _internal_error()


@router.get("/training", response_model=TrainingJobDTO)
@inject
async def get_training_job(
    session: ForecastingSession = Depends(resolve_session),
    training_management_use_case: TrainingManagementUseCase = Depends(
        Provide["training_management_use_case"]
    ),
) -> TrainingJobDTO:
    """Return the latest training job of the architecture with its progress."""
    job = training_management_use_case.get_latest_job(session)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {session.architecture.value} training job found",
        )
    return TrainingJobDTO.from_entity(job)


@router.delete("/training", response_model=CancelTrainingResponseDTO)
@inject
async def cancel_training(
    session: ForecastingSession = Depends(resolve_session),
    training_management_use_case: TrainingManagementUseCase = Depends(
        Provide["training_management_use_case"]
    ),
) -> CancelTrainingResponseDTO:
    """Request cancellation; training stops at the next epoch boundary."""
    job_id = await training_management_use_case.cancel_training(session)
    if job_id is None:
        return CancelTrainingResponseDTO(
            message=f"No {session.architecture.value} training is running"
        )
    return CancelTrainingResponseDTO(
        training_job_id=job_id,
        message="Cancellation requested",
    )


@router.post("/forecast", response_model=ForecastResponseDTO)
@inject
async def forecast(
    request: ForecastRequestDTO,
    session: ForecastingSession = Depends(resolve_session),
    model_prediction_use_case: ModelPredictionUseCase = Depends(
        Provide["model_prediction_use_case"]
    ),
) -> ForecastResponseDTO:
    """Forecast the next `horizon` years with the current model."""
    try:
        points = await model_prediction_use_case.forecast(session, request.horizon)
    except DomainError as e:
        raise _to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(
            "forecasting.forecast.failed",
            architecture=session.architecture.value,
            error=str(e),
        )
        raise _internal_error()

    return ForecastResponseDTO(
        architecture=session.architecture,
        last_year=session.metadata.last_year,
        forecasts=[ForecastPointDTO.from_entity(point) for point in points],
        message=(
            f"Generated {len(points)} year {session.architecture.value} forecast"
        ),
    )


@router.post("/load", response_model=ActionResultDTO)
@inject
async def load_model(
    session: ForecastingSession = Depends(resolve_session),
    model_persistence_use_case: ModelPersistenceUseCase = Depends(
        Provide["model_persistence_use_case"]
    ),
) -> ActionResultDTO:
    """Load the persisted model of the architecture into the session."""
    try:
        metadata = await model_persistence_use_case.load_into(session)
    except DomainError as e:
        raise _to_http_exception(e)
    except Exception as e:
        logger.error(
            "forecasting.load.failed",
            architecture=session.architecture.value,
            error=str(e),
        )
        raise _internal_error()

    return ActionResultDTO(
        architecture=session.architecture,
        message=f"{session.architecture.value} model loaded successfully",
        accuracy=metadata.metrics.accuracy,
    )


@router.get("/model", response_model=ModelSummaryDTO)
@inject
async def get_model_summary(
    session: ForecastingSession = Depends(resolve_session),
) -> ModelSummaryDTO:
    """Metrics and validation results of the current model."""
    return ModelSummaryDTO.from_session(session)


@router.get(
    "/download",
    response_class=Response,
    responses={200: {"content": {"application/json": {}}}},
)
@inject
async def download_model(
    session: ForecastingSession = Depends(resolve_session),
    model_persistence_use_case: ModelPersistenceUseCase = Depends(
        Provide["model_persistence_use_case"]
    ),
) -> Response:
    """Download the current model as one portable JSON file."""
    try:
        portable = await model_persistence_use_case.export_session(session)
    except DomainError as e:
        raise _to_http_exception(e)
    except Exception as e:
        logger.error(
            "forecasting.download.failed",
            architecture=session.architecture.value,
            error=str(e),
        )
        raise _internal_error()

    return Response(
        content=portable.content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{portable.filename}"'},
    )


@router.post("/upload", response_model=ActionResultDTO)
@inject
async def upload_model(
    file: UploadFile = File(..., description="Model file exported by /download"),
    session: ForecastingSession = Depends(resolve_session),
    model_persistence_use_case: ModelPersistenceUseCase = Depends(
        Provide["model_persistence_use_case"]
    ),
) -> ActionResultDTO:
    """Import a previously downloaded model file and make it current."""
    if file.filename and not file.filename.lower().endswith(".json"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload a .json model file",
        )

    content = await file.read()
    try:
        metadata = await model_persistence_use_case.import_into(session, content)
    except DomainError as e:
        logger.warning(
            "forecasting.upload.rejected",
            architecture=session.architecture.value,
            filename=file.filename,
            error=e.message,
        )
        raise _to_http_exception(e)
    except Exception as e:
        logger.error(
            "forecasting.upload.failed",
            architecture=session.architecture.value,
            error=str(e),
        )
        raise _internal_error()

    return ActionResultDTO(
        architecture=session.architecture,
        message=f"{session.architecture.value} model uploaded successfully",
        accuracy=metadata.metrics.accuracy,
    )


@router.delete("/model", response_model=ActionResultDTO)
@inject
async def delete_model(
    session: ForecastingSession = Depends(resolve_session),
    model_persistence_use_case: ModelPersistenceUseCase = Depends(
        Provide["model_persistence_use_case"]
    ),
) -> ActionResultDTO:
    """Delete the persisted model and reset the session; safe to repeat."""
    try:
        await model_persistence_use_case.delete_for(session)
    except DomainError as e:
        raise _to_http_exception(e)
    except Exception as e:
        logger.error(
            "forecasting.delete.failed",
            architecture=session.architecture.value,
            error=str(e),
        )
        raise _internal_error()

    return ActionResultDTO(
        architecture=session.architecture,
        message=f"{session.architecture.value} model deleted successfully",
    )
