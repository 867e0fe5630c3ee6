"""
Token provider for the APS authentication service.
"""

from typing import Dict, List

from src.models.interfaces import AccessToken
from src.services.aps_client import APSClient
from src.utils.exceptions import AuthenticationError, UpstreamServiceError
from src.utils.logging import aps_logger as logger


class TokenProvider(APSClient):
    """Issues two-legged access tokens and caches them until they expire."""

    token_path = "/authentication/v2/token"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._tokens: Dict[str, AccessToken] = {}

    async def get_internal_token(self) -> AccessToken:
        """Token for bucket and data operations performed by the server."""
        return await self._get_token(self.config.internal_scopes)

    async def get_viewer_token(self) -> AccessToken:
        """Read-only token handed to the browser viewer."""
        return await self._get_token(self.config.viewer_scopes)

    async def _get_token(self, scopes: List[str]) -> AccessToken:
        scope = " ".join(scopes)
        cached = self._tokens.get(scope)
        if cached and not cached.is_expired:
            return cached

        token = await self._request_token(scope)
        self._tokens[scope] = token
        return token

    async def _request_token(self, scope: str) -> AccessToken:
        if not self.config.has_credentials:
            logger.error("APS client credentials are not configured", event="token_failed")
            raise AuthenticationError("APS client credentials are not configured")

        logger.debug("Requesting access token", metadata={"scope": scope})
        try:
            response = await self._send(
                "authenticate", "POST", self.url(self.token_path),
                auth=(self.config.client_id, self.config.client_secret),
                data={"grant_type": "client_credentials", "scope": scope},
                headers={"Accept": "application/json"}
            )
            payload = response.json()
            token = AccessToken(
                access_token=payload["access_token"],
                expires_in=int(payload["expires_in"])
            )
        except UpstreamServiceError as e:
            raise AuthenticationError(
                f"Failed to obtain access token: {e.message}",
                details={"upstream_status": e.upstream_status}
            ) from e
        except (ValueError, KeyError) as e:
            logger.error(f"Malformed token response: {e}", event="token_failed")
            raise AuthenticationError("Malformed token response from APS") from e

        logger.info(
            "Access token issued",
            event="token_issued",
            metadata={"scope": scope, "expires_in": token.expires_in}
        )
        return token
