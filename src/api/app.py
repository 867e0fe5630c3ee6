"""
FastAPI application factory and configuration.
"""

import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware import setup_middleware
from src.api.routes import auth_router, models_router, system_router
from src.config.config import config
from src.services.aps_auth import TokenProvider
from src.services.model_service import create_model_service
from src.utils.exceptions import ViewerServiceException, create_error_response
from src.utils.logging import api_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    api_logger.info(
        "Server started successfully",
        metadata={"port": config.server.port, "env": config.environment.value}
    )
    if not config.aps.has_credentials:
        api_logger.warning("APS_CLIENT_ID / APS_CLIENT_SECRET are not set; APS calls will fail")

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.aps.http_timeout),
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=100)
    )
    app.state.token_provider = TokenProvider(http_client=http_client)
    app.state.model_service = create_model_service(app.state.token_provider, http_client=http_client)

    yield

    api_logger.info("Shutting down model viewer service")
    try:
        await http_client.aclose()
        api_logger.info("Server closed successfully")
    except Exception as e:
        api_logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


def _error_headers(request: Request) -> dict:
    return {"X-Correlation-ID": getattr(request.state, "correlation_id", "unknown")}


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    production = config.environment.value == "production"

    app = FastAPI(
        title="APS Model Viewer",
        description="""
        Upload CAD/BIM designs to Autodesk Platform Services, track their translation
        and view the results in the browser.
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if not production else None,
        redoc_url="/redoc" if not production else None,
        openapi_url="/openapi.json" if not production else None
    )

    setup_middleware(app)

    app.include_router(auth_router)
    app.include_router(models_router)
    app.include_router(system_router)

    @app.exception_handler(ViewerServiceException)
    async def viewer_exception_handler(request: Request, exc: ViewerServiceException):
        """Handle application exceptions."""
        status_code = exc.status_code
        log = api_logger.warning if status_code < 500 else api_logger.error
        log(
            f"{exc.error_code}: {exc.message}",
            event="request_error",
            metadata={
                "error_code": exc.error_code,
                "details": exc.details,
                "path": request.url.path,
                "method": request.method,
                "correlation_id": getattr(request.state, "correlation_id", None)
            }
        )

        return JSONResponse(
            status_code=status_code,
            content=create_error_response(exc, status_code, include_debug=config.is_development),
            headers=_error_headers(request)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        api_logger.warning(
            f"Request validation error: {str(exc)}",
            metadata={"path": request.url.path, "method": request.method, "errors": exc.errors()}
        )

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": exc.errors()
                }
            },
            headers=_error_headers(request)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions, including unknown routes and missing static files."""
        unknown_api_route = request.url.path.startswith("/api") and exc.status_code in (
            status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED
        )
        if unknown_api_route:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"error": {"code": "HTTP_404", "message": "API endpoint not found"}},
                headers=_error_headers(request)
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": f"HTTP_{exc.status_code}", "message": exc.detail}},
            headers={**dict(exc.headers or {}), **_error_headers(request)}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        api_logger.error(
            f"Unhandled Error: {str(exc)}",
            metadata={
                "path": request.url.path,
                "method": request.method,
                "query": dict(request.query_params),
                "correlation_id": getattr(request.state, "correlation_id", None)
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=create_error_response(
                exc, status.HTTP_500_INTERNAL_SERVER_ERROR, include_debug=config.is_development
            ),
            headers=_error_headers(request)
        )

    # Static frontend goes last so it never shadows API routes
    static_dir = config.server.static_dir
    if os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        api_logger.warning("Static directory not found; frontend disabled", metadata={"static_dir": static_dir})

    return app


# Create the application instance
app = create_app()
