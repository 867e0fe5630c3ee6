"""
Utilities package for the APS model viewer backend.
"""

from .logging import (
    ViewerLogger,
    api_logger,
    aps_logger
)

from .exceptions import (
    ViewerServiceException,
    ValidationError,
    AuthenticationError,
    UpstreamServiceError,
    TranslationFailedError,
    TranslationTimeoutError,
    ConfigurationError,
    create_error_response
)

__all__ = [
    "ViewerLogger",
    "api_logger",
    "aps_logger",
    "ViewerServiceException",
    "ValidationError",
    "AuthenticationError",
    "UpstreamServiceError",
    "TranslationFailedError",
    "TranslationTimeoutError",
    "ConfigurationError",
    "create_error_response"
]
