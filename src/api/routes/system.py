"""
System API routes for health checks and metrics.
"""

import time

from fastapi import APIRouter, Depends, Response

from src.api.dependencies import get_metrics_service
from src.api.models import HealthCheckResponseModel
from src.config.config import config
from src.services.metrics_service import MetricsCollectionService

router = APIRouter(tags=["system"])

VERSION = "1.0.0"

# Service start time for uptime calculation
SERVICE_START_TIME = time.time()


@router.get(
    "/api/health",
    response_model=HealthCheckResponseModel,
    summary="Health check",
    description="Report service status and whether APS credentials are configured."
)
async def health_check() -> HealthCheckResponseModel:
    credentials_configured = config.aps.has_credentials
    return HealthCheckResponseModel(
        status="healthy" if credentials_configured else "degraded",
        version=VERSION,
        environment=config.environment.value,
        uptime_seconds=round(time.time() - SERVICE_START_TIME, 2),
        credentials_configured=credentials_configured,
        bucket=config.aps.bucket
    )


@router.get("/metrics", include_in_schema=False)
async def metrics(
    metrics_service: MetricsCollectionService = Depends(get_metrics_service)
) -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=metrics_service.export(), media_type=metrics_service.content_type)
