"""
Authentication API routes.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_token_provider
from src.api.models import AccessTokenResponseModel, ErrorResponseModel
from src.services.aps_auth import TokenProvider
from src.utils.exceptions import AuthenticationError
from src.utils.logging import api_logger

router = APIRouter(prefix="/api", tags=["auth"])


@router.get(
    "/auth/token",
    response_model=AccessTokenResponseModel,
    responses={
        401: {"model": ErrorResponseModel, "description": "Token could not be issued"}
    },
    summary="Get viewer token",
    description="Issue a short-lived, read-only access token for the browser viewer."
)
async def get_viewer_token(
    token_provider: TokenProvider = Depends(get_token_provider)
) -> AccessTokenResponseModel:
    """Return a viewer token; any failure is reported as 401."""
    api_logger.debug("Requesting viewer token from APS")
    try:
        token = await token_provider.get_viewer_token()
    except AuthenticationError as e:
        api_logger.error(f"Failed to get viewer token: {e.message}", event="token_failed", exc_info=True)
        raise
    except Exception as e:
        api_logger.error(f"Failed to get viewer token: {str(e)}", event="token_failed", exc_info=True)
        raise AuthenticationError(f"Failed to get viewer token: {str(e)}") from e

    api_logger.info("Viewer token retrieved successfully", event="token_issued")
    return AccessTokenResponseModel(
        access_token=token.access_token,
        expires_in=token.remaining_seconds()
    )
