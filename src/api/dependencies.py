"""
FastAPI dependencies for the model viewer API.
"""

from fastapi import Request

from src.services.aps_auth import TokenProvider
from src.services.metrics_service import MetricsCollectionService, metrics_service
from src.services.model_service import ModelService


def get_token_provider(request: Request) -> TokenProvider:
    """Token provider created in the application lifespan."""
    return request.app.state.token_provider


def get_model_service(request: Request) -> ModelService:
    """Model workflow service created in the application lifespan."""
    return request.app.state.model_service


def get_metrics_service() -> MetricsCollectionService:
    return metrics_service
