"""
Upload, translate and status workflow built on top of the APS clients.
"""

import os
import time
from typing import Any, Dict, List, Optional

from src.config.config import UploadConfig, config
from src.models.interfaces import Manifest, ModelReference, urnify
from src.services.metrics_service import MetricsCollectionService, metrics_service
from src.services.model_derivative import ModelDerivativeClient
from src.services.object_store import ObjectStoreClient, UploadContent
from src.utils.exceptions import ValidationError
from src.utils.logging import api_logger as logger

NOT_TRANSLATED = {"status": "n/a"}


def file_extension(filename: str) -> str:
    return os.path.splitext(filename.lower())[1]


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):.0f}MB"


class ModelService:
    """Coordinates the object store and the translation service."""

    def __init__(self, object_store: ObjectStoreClient, derivative: ModelDerivativeClient,
                 upload_config: Optional[UploadConfig] = None,
                 metrics: Optional[MetricsCollectionService] = None):
        self.object_store = object_store
        self.derivative = derivative
        self.upload_config = upload_config or config.upload
        self.metrics = metrics or metrics_service

    async def list_models(self) -> List[ModelReference]:
        objects = await self.object_store.list_objects()
        return [ModelReference.from_object(obj) for obj in objects]

    async def get_model_status(self, urn: str) -> Dict[str, Any]:
        """Flattened manifest status, or ``{"status": "n/a"}`` when nothing was translated yet."""
        if not isinstance(urn, str) or not urn.strip():
            raise ValidationError("Invalid URN parameter", field="urn")

        manifest = await self.derivative.get_status(urn.strip())
        if manifest is None:
            return dict(NOT_TRANSLATED)

        return {
            "status": manifest.status,
            "progress": manifest.progress,
            "messages": manifest.messages
        }

    def validate_upload(self, filename: Optional[str], size: int) -> str:
        """Reject uploads before anything reaches the network; returns the extension."""
        if not filename:
            raise ValidationError('The required field "model-file" is missing.', field="model-file")

        extension = file_extension(filename)
        allowed = self.upload_config.allowed_extensions
        if extension not in allowed:
            raise ValidationError(
                f"Unsupported file type: {extension or '(none)'}. Allowed types: {', '.join(allowed)}",
                field="model-file",
                details={"extension": extension}
            )

        limit = self.upload_config.max_file_size_bytes
        if size > limit:
            raise ValidationError(
                f"File size exceeds {format_size(limit)} limit.",
                field="model-file",
                details={"size": size, "max_size": limit}
            )
        return extension

    async def upload_model(self, filename: str, content: UploadContent, size: int,
                           zip_entrypoint: Optional[str] = None) -> ModelReference:
        """Validate, upload and immediately start translating a design file."""
        try:
            self.validate_upload(filename, size)
        except ValidationError as e:
            logger.warning(
                f"Upload rejected: {e.message}",
                event="upload_rejected",
                metadata={"filename": filename, "size": size}
            )
            self.metrics.record_upload("rejected")
            raise

        start = time.perf_counter()
        logger.info("File upload started", event="upload_started", metadata={"filename": filename, "size": size})

        try:
            obj = await self.object_store.upload_object(filename, content, size)
            urn = urnify(obj["objectId"])
            await self.derivative.start_translation(urn, zip_entrypoint or None)
        except Exception:
            self.metrics.record_upload("failed")
            raise

        model = ModelReference(name=obj["objectKey"], urn=urn)
        self.metrics.record_upload("success")
        logger.upload_completed(model.name, model.urn, size, round((time.perf_counter() - start) * 1000, 2))
        return model

    async def wait_for_model(self, urn: str) -> Manifest:
        return await self.derivative.wait_for_translation(urn)


def create_model_service(token_provider, http_client=None) -> ModelService:
    """Wire the object store and translation clients around a shared token provider."""
    object_store = ObjectStoreClient(token_provider, http_client=http_client)
    derivative = ModelDerivativeClient(token_provider, http_client=http_client)
    return ModelService(object_store, derivative)
