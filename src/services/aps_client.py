"""
Shared HTTP plumbing for talking to Autodesk Platform Services.
"""

from typing import Dict, Iterable, Optional

import httpx

from src.config.config import APSConfig, config
from src.services.metrics_service import MetricsCollectionService, metrics_service
from src.utils.exceptions import AuthenticationError, UpstreamServiceError
from src.utils.logging import aps_logger as logger


class APSClient:
    """Base class owning the async HTTP client and error translation."""

    def __init__(self, aps_config: Optional[APSConfig] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 metrics: Optional[MetricsCollectionService] = None):
        self.config = aps_config or config.aps
        self.http_client = http_client
        self._owns_http_client = http_client is None
        self.metrics = metrics or metrics_service

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get HTTP client for vendor requests."""
        if not self.http_client:
            self.http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.http_timeout),
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=100)
            )
        return self.http_client

    async def close(self):
        if self.http_client and self._owns_http_client:
            await self.http_client.aclose()
            self.http_client = None

    def url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def _send(self, operation: str, method: str, url: str,
                    allowed_statuses: Iterable[int] = (), urn: Optional[str] = None,
                    **kwargs) -> httpx.Response:
        """Send a request, raising UpstreamServiceError for transport errors and non-2xx replies.

        Statuses listed in ``allowed_statuses`` are returned to the caller untouched.
        """
        http_client = await self._get_http_client()

        with self.metrics.track_aps_call(operation):
            try:
                response = await http_client.request(method, url, **kwargs)
            except httpx.TimeoutException as e:
                logger.aps_call_failed(operation, None, "request timed out", urn=urn)
                raise UpstreamServiceError(
                    f"APS {operation} timed out", operation=operation
                ) from e
            except httpx.RequestError as e:
                logger.aps_call_failed(operation, None, str(e), urn=urn)
                raise UpstreamServiceError(
                    f"APS {operation} request failed: {e}", operation=operation
                ) from e

            if response.status_code in allowed_statuses:
                return response

            if not response.is_success:
                logger.aps_call_failed(operation, response.status_code, response.text[:500], urn=urn)
                raise UpstreamServiceError(
                    f"APS {operation} returned HTTP {response.status_code}",
                    operation=operation,
                    upstream_status=response.status_code,
                    details={"response": response.text[:500]}
                )

        return response


class AuthorizedAPSClient(APSClient):
    """APS client that signs requests with an internal (server-side) token."""

    def __init__(self, token_provider, aps_config: Optional[APSConfig] = None,
                 http_client: Optional[httpx.AsyncClient] = None,
                 metrics: Optional[MetricsCollectionService] = None):
        super().__init__(aps_config, http_client, metrics)
        self.token_provider = token_provider

    async def _auth_headers(self) -> Dict[str, str]:
        try:
            token = await self.token_provider.get_internal_token()
        except AuthenticationError as e:
            raise UpstreamServiceError(
                f"Could not obtain APS access token: {e.message}", operation="authenticate"
            ) from e
        return {"Authorization": f"Bearer {token.access_token}"}

    async def _authorized(self, operation: str, method: str, url: str,
                          allowed_statuses: Iterable[int] = (), urn: Optional[str] = None,
                          headers: Optional[Dict[str, str]] = None, **kwargs) -> httpx.Response:
        request_headers = await self._auth_headers()
        request_headers.update(headers or {})
        return await self._send(
            operation, method, url,
            allowed_statuses=allowed_statuses, urn=urn, headers=request_headers, **kwargs
        )
