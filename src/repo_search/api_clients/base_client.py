"""Base Remote API Client.

Provides the shared HTTP session, Basic authentication with a personal access
token and error classification for all REST operations.
"""

import base64
import logging
from typing import Dict, Optional

import httpx

from .network_error_handler import (
    NetworkErrorHandler,
    NetworkConnectionError,
    NetworkTimeoutError,
    DNSResolutionError,
    SSLCertificateError,
    ServerError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


class APIClientError(Exception):
    """Base exception for API client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class AuthenticationError(APIClientError):
    """Exception raised when the access token is rejected (401/403)."""

    pass


class NetworkError(APIClientError):
    """Exception raised when network operations fail."""

    pass


# Everything a request through RemoteAPIClient may raise
REQUEST_ERRORS = (
    APIClientError,
    NetworkConnectionError,
    NetworkTimeoutError,
    DNSResolutionError,
    SSLCertificateError,
    ServerError,
    RateLimitError,
)


def build_basic_auth_header(personal_access_token: str) -> str:
    """Build a Basic auth header value with an empty user name."""
    credentials = base64.b64encode(f":{personal_access_token}".encode("utf-8"))
    return f"Basic {credentials.decode('ascii')}"


class RemoteAPIClient:
    """Base API client with authentication and common HTTP functionality."""

    def __init__(
        self,
        personal_access_token: str,
        timeout: float = 30.0,
    ):
        """Initialize base API client.

        Args:
            personal_access_token: Token sent as the Basic auth password
            timeout: Request timeout in seconds
        """
        self._personal_access_token = personal_access_token
        self.timeout = timeout
        self._session: Optional[httpx.AsyncClient] = None
        self._network_error_handler = NetworkErrorHandler()

    def get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers."""
        return {"Authorization": build_basic_auth_header(self._personal_access_token)}

    def get_request_headers(self) -> Dict[str, str]:
        """Get all default request headers including auth and accept."""
        headers = self.get_auth_headers()
        headers["Accept"] = "application/json"
        return headers

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create HTTP session."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self.get_request_headers(),
                follow_redirects=True,
                verify=True,
            )
        return self._session

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Make an authenticated HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Absolute request URL
            **kwargs: Additional arguments for httpx request

        Returns:
            HTTP response object with a 2xx status

        Raises:
            AuthenticationError: If the token is rejected
            NetworkConnectionError: If connection fails
            NetworkTimeoutError: If request times out
            ServerError: If server returns 5xx error
            RateLimitError: If rate limited (429)
            APIClientError: If API returns other error status
        """
        logger.debug(f"{method} {url}")
        try:
            response = await self.session.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self._network_error_handler.classify_network_error(e)
            raise NetworkError(f"Unexpected transport error: {e}") from e

        if not response.is_success:
            http_error = httpx.HTTPStatusError(
                f"HTTP {response.status_code}",
                request=response.request,
                response=response,
            )
            self._network_error_handler.classify_network_error(http_error)

        return response

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Make authenticated GET request."""
        return await self._request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """Make authenticated POST request."""
        return await self._request("POST", url, **kwargs)

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
