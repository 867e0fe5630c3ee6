"""
Custom exceptions for the APS model viewer.
"""

import traceback
from typing import Any, Dict, List, Optional


class ViewerServiceException(Exception):
    """Base exception for model viewer errors."""

    status_code = 500

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "SYSTEM_ERROR"
        self.details = details or {}


class ValidationError(ViewerServiceException):
    """Exception for request validation errors."""

    status_code = 400

    def __init__(self, message: str, field: str = None, details: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field


class AuthenticationError(ViewerServiceException):
    """Exception for token issuance failures."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Dict[str, Any] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class UpstreamServiceError(ViewerServiceException):
    """Exception for failing or unreachable vendor endpoints."""

    def __init__(self, message: str, operation: str = None, upstream_status: int = None,
                 details: Dict[str, Any] = None):
        details = details or {}
        details.update({"operation": operation, "upstream_status": upstream_status})
        super().__init__(message, "UPSTREAM_SERVICE_ERROR", details)
        self.operation = operation
        self.upstream_status = upstream_status


class TranslationFailedError(ViewerServiceException):
    """Exception for a translation job the vendor reported as failed."""

    def __init__(self, urn: str, messages: List[Any] = None, status: str = "failed"):
        message = f"Translation failed for model: {urn}"
        details = {"urn": urn, "status": status, "messages": messages or []}
        super().__init__(message, "TRANSLATION_FAILED", details)
        self.urn = urn
        self.messages = messages or []


class TranslationTimeoutError(ViewerServiceException):
    """Exception for translation polling that ran out of attempts."""

    status_code = 504

    def __init__(self, urn: str, attempts: int, interval_seconds: float):
        message = f"Translation did not finish after {attempts} status checks: {urn}"
        details = {
            "urn": urn,
            "attempts": attempts,
            "interval_seconds": interval_seconds
        }
        super().__init__(message, "TRANSLATION_TIMEOUT", details)
        self.urn = urn


class ConfigurationError(ViewerServiceException):
    """Exception for configuration errors."""

    def __init__(self, message: str, config_key: str = None, details: Dict[str, Any] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)
        self.config_key = config_key


GENERIC_MESSAGES = {
    400: "Bad Request",
    401: "Authentication failed",
    404: "Not Found",
    504: "Gateway Timeout",
}


def create_error_response(exception: Exception, status_code: int,
                          include_debug: bool = False) -> Dict[str, Any]:
    """Create the `{error: {message}}` body returned to clients.

    Validation messages are always user-facing. Anything else is replaced with a
    generic message unless ``include_debug`` is set, in which case the raw message
    and the stack trace are returned as well.
    """
    if isinstance(exception, ViewerServiceException):
        code = exception.error_code
        message = exception.message
    else:
        code = "INTERNAL_SERVER_ERROR"
        message = str(exception) or exception.__class__.__name__

    if not include_debug and not isinstance(exception, ValidationError):
        message = GENERIC_MESSAGES.get(status_code, "Internal Server Error")

    response = {
        "error": {
            "code": code,
            "message": message
        }
    }

    if include_debug:
        response["error"]["stack"] = "".join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        )

    return response
