"""
Services package for the APS model viewer backend.
"""

from .aps_auth import TokenProvider
from .object_store import ObjectStoreClient, derive_object_key
from .model_derivative import ModelDerivativeClient
from .model_service import ModelService, create_model_service
from .metrics_service import MetricsCollectionService, metrics_service

__all__ = [
    "TokenProvider",
    "ObjectStoreClient",
    "derive_object_key",
    "ModelDerivativeClient",
    "ModelService",
    "create_model_service",
    "MetricsCollectionService",
    "metrics_service"
]
