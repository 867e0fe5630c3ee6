"""
FastAPI middleware for the model viewer API.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import api_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        start_time = time.time()
        method = request.method
        path = request.url.path

        api_logger.info(
            f"HTTP Request: {method} {path}",
            event="request_started",
            metadata={
                "correlation_id": correlation_id,
                "method": method,
                "url": str(request.url),
                "client_ip": request.client.host if request.client else "unknown",
                "user_agent": request.headers.get("user-agent", "unknown")
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            api_logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                event="request_failed",
                metrics={"processing_time_ms": round(process_time * 1000, 2)},
                metadata={"correlation_id": correlation_id, "method": method, "url": path},
                exc_info=True
            )
            raise

        process_time = time.time() - start_time
        api_logger.info(
            f"HTTP Response: {method} {path} - {response.status_code}",
            event="request_completed",
            metrics={
                "processing_time_ms": round(process_time * 1000, 2),
                "status_code": response.status_code
            },
            metadata={"correlation_id": correlation_id, "method": method, "url": path}
        )

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # No Content-Security-Policy: the viewer loads scripts, styles and workers from the APS CDN
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if "server" in response.headers:
            del response.headers["server"]

        return response


def setup_middleware(app):
    """Setup all middleware for the FastAPI app."""
    # Last added is executed first
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
