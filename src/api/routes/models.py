"""
Model listing, status and upload API routes.
"""

import os
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, Request, status
from starlette.datastructures import UploadFile

from src.api.dependencies import get_model_service
from src.api.models import ErrorResponseModel, ModelReferenceModel, ModelStatusResponseModel
from src.services.model_service import ModelService
from src.utils.exceptions import ValidationError
from src.utils.logging import api_logger

router = APIRouter(prefix="/api", tags=["models"])

MODEL_FILE_FIELD = "model-file"
ZIP_ENTRYPOINT_FIELD = "model-zip-entrypoint"


def upload_size(upload: UploadFile) -> int:
    """Size of a spooled upload, measured without reading it into memory."""
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


async def iter_upload(upload: UploadFile, chunk_size: int) -> AsyncIterator[bytes]:
    await upload.seek(0)
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


@router.get(
    "/models",
    response_model=List[ModelReferenceModel],
    responses={
        500: {"model": ErrorResponseModel, "description": "Object storage unavailable"}
    },
    summary="List models",
    description="List every design uploaded to the bucket."
)
async def list_models(
    model_service: ModelService = Depends(get_model_service)
) -> List[ModelReferenceModel]:
    api_logger.debug("Listing available models")
    try:
        models = await model_service.list_models()
    except Exception as e:
        api_logger.error(f"Error listing models: {str(e)}", event="list_models_failed", exc_info=True)
        raise

    api_logger.info("Models listed successfully", metadata={"count": len(models)})
    return [ModelReferenceModel(name=m.name, urn=m.urn) for m in models]


@router.get(
    "/models/{urn}/status",
    response_model=ModelStatusResponseModel,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponseModel, "description": "Invalid URN"},
        500: {"model": ErrorResponseModel, "description": "Derivative service unavailable"}
    },
    summary="Get model status",
    description="Translation status of a model, or `n/a` when no manifest exists yet."
)
async def get_model_status(
    urn: str,
    model_service: ModelService = Depends(get_model_service)
) -> dict:
    try:
        result = await model_service.get_model_status(urn)
    except ValidationError:
        api_logger.warning("Invalid URN parameter provided", metadata={"urn": urn})
        raise
    except Exception as e:
        api_logger.error(f"Error getting model status: {str(e)}", urn=urn, event="status_failed", exc_info=True)
        raise

    api_logger.debug(
        "Model status retrieved",
        urn=urn,
        metadata={"status": result["status"], "progress": result.get("progress")}
    )
    return result


@router.post(
    "/models",
    response_model=ModelReferenceModel,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponseModel, "description": "Missing, unsupported or oversized file"},
        500: {"model": ErrorResponseModel, "description": "Upload or translation failed"}
    },
    summary="Upload model",
    description=(
        "Upload a design as multipart field `model-file` and start its translation. "
        "For zip archives, `model-zip-entrypoint` names the main design inside the archive."
    )
)
async def upload_model(
    request: Request,
    model_service: ModelService = Depends(get_model_service)
) -> ModelReferenceModel:
    form = await request.form()
    upload = form.get(MODEL_FILE_FIELD)
    filename: Optional[str] = None

    try:
        if not isinstance(upload, UploadFile) or not upload.filename:
            raise ValidationError(f'The required field "{MODEL_FILE_FIELD}" is missing.', field=MODEL_FILE_FIELD)

        filename = upload.filename
        entrypoint = form.get(ZIP_ENTRYPOINT_FIELD)
        if not isinstance(entrypoint, str) or not entrypoint.strip():
            entrypoint = None

        size = upload_size(upload)
        model = await model_service.upload_model(
            filename,
            iter_upload(upload, model_service.upload_config.chunk_size),
            size,
            zip_entrypoint=entrypoint.strip() if entrypoint else None
        )
    except ValidationError as e:
        api_logger.warning(f"Upload rejected: {e.message}", metadata={"filename": filename})
        raise
    except Exception as e:
        api_logger.error(
            f"Error uploading model: {str(e)}",
            event="upload_failed",
            metadata={"filename": filename},
            exc_info=True
        )
        raise
    finally:
        await form.close()

    return ModelReferenceModel(name=model.name, urn=model.urn)
