"""
Pydantic models for API request/response validation.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class AccessTokenResponseModel(BaseModel):
    """Viewer token handed to the browser."""

    access_token: str = Field(..., description="Bearer token with viewables:read scope")
    expires_in: int = Field(..., description="Remaining validity in seconds")


class ModelReferenceModel(BaseModel):
    """A design stored in the bucket."""

    name: str = Field(..., description="Object key of the uploaded file")
    urn: str = Field(..., description="Base64 URN addressing the design in the derivative service")


class ModelStatusResponseModel(BaseModel):
    """Translation status flattened from the vendor manifest."""

    status: str = Field(..., description="pending, inprogress, success, failed, timeout or n/a")
    progress: Optional[str] = Field(None, description="Vendor progress string, e.g. '45% complete'")
    messages: Optional[List[Any]] = Field(None, description="Diagnostics from all derivatives")


class ErrorDetailModel(BaseModel):
    code: Optional[str] = None
    message: str
    stack: Optional[str] = None


class ErrorResponseModel(BaseModel):
    """Model for error responses."""

    error: ErrorDetailModel


class HealthCheckResponseModel(BaseModel):
    """Model for health check response."""

    status: str = Field(..., description="Overall service status")
    version: str
    environment: str
    uptime_seconds: float
    credentials_configured: bool
    bucket: Optional[str] = None
