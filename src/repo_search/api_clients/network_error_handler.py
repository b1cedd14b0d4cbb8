"""Network Error Handler for the Repo Search API client.

Classifies httpx transport failures and HTTP error statuses into specific
exceptions so callers can report a readable cause. No retries are performed.
"""

import json
import logging
import re
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class NetworkConnectionError(Exception):
    """Exception raised for connection-related network failures."""

    def __init__(self, message: str, user_guidance: Optional[str] = None):
        super().__init__(message)
        self.user_guidance = user_guidance or ""


class NetworkTimeoutError(Exception):
    """Exception raised for timeout-related network failures."""

    def __init__(self, message: str, user_guidance: Optional[str] = None):
        super().__init__(message)
        self.user_guidance = user_guidance or ""


class DNSResolutionError(NetworkConnectionError):
    """Exception raised for DNS resolution failures."""

    pass


class SSLCertificateError(NetworkConnectionError):
    """Exception raised for SSL certificate verification failures."""

    pass


class ServerError(Exception):
    """Exception raised for server-side errors (5xx responses)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class RateLimitError(Exception):
    """Exception raised for rate limiting errors (429 responses)."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        response_text: str = "",
    ):
        super().__init__(message)
        self.status_code = 429
        self.retry_after = retry_after
        self.response_text = response_text


class NetworkErrorHandler:
    """Handles network error classification."""

    def __init__(self):
        self._dns_error_patterns = [
            r"name.*resolution.*failed",
            r"name.*or.*service.*not.*known",
            r"nodename.*nor.*servname.*provided",
            r"temporary.*failure.*in.*name.*resolution",
            r"getaddrinfo.*failed",
        ]
        self._connection_error_patterns = [
            r"connection.*refused",
            r"connection.*reset",
            r"network.*is.*unreachable",
            r"no.*route.*to.*host",
        ]
        self._ssl_error_patterns = [
            r"ssl.*certificate.*verification.*failed",
            r"certificate.*verify.*failed",
            r"ssl.*handshake.*failed",
            r"bad.*certificate",
        ]

    def classify_network_error(self, error: Exception) -> None:
        """Classify network error and raise appropriate specific exception.

        Args:
            error: The original httpx exception

        Raises:
            Specific network error exception based on classification
        """
        error_message = str(error).lower()

        if isinstance(error, httpx.ConnectError):
            self._handle_connect_error(error, error_message)
        elif isinstance(error, httpx.TimeoutException):
            self._handle_timeout_error(error, error_message)
        elif isinstance(error, httpx.HTTPStatusError):
            self._handle_http_status_error(error)
        elif isinstance(error, (httpx.NetworkError, httpx.TransportError)):
            raise NetworkConnectionError(f"Network error: {error}") from error
        else:
            raise NetworkConnectionError(f"Unknown network error: {error}") from error

    def _handle_connect_error(
        self, error: httpx.ConnectError, error_message: str
    ) -> None:
        """Handle connection errors with specific classification."""
        if any(
            re.search(pattern, error_message) for pattern in self._dns_error_patterns
        ):
            raise DNSResolutionError(
                "Cannot resolve server address. Check your internet connection and organization URL.",
                user_guidance=str(error),
            ) from error

        if any(
            re.search(pattern, error_message) for pattern in self._ssl_error_patterns
        ):
            raise SSLCertificateError(
                "SSL certificate verification failed.",
                user_guidance=str(error),
            ) from error

        if any(
            re.search(pattern, error_message)
            for pattern in self._connection_error_patterns
        ):
            raise NetworkConnectionError(
                "Cannot connect to server. Check if the host is reachable.",
                user_guidance=str(error),
            ) from error

        raise NetworkConnectionError(f"Connection failed: {error}") from error

    def _handle_timeout_error(self, error: Exception, error_message: str) -> None:
        """Handle timeout errors."""
        if isinstance(error, httpx.ConnectTimeout) or "connect" in error_message:
            message = "Connection timed out. Check your network connection or try again later."
        else:
            message = "Request timed out. Check your network connection or try again later."
        raise NetworkTimeoutError(message) from error

    def _handle_http_status_error(self, error: httpx.HTTPStatusError) -> None:
        """Handle HTTP status errors (4xx, 5xx)."""
        # Import here to avoid circular dependency
        from .base_client import APIClientError, AuthenticationError

        response = error.response
        status_code = response.status_code
        response_text = response.text

        try:
            body = response.json()
            error_detail = (
                body.get("message") if isinstance(body, dict) else None
            ) or f"HTTP {status_code}"
        except (json.JSONDecodeError, ValueError):
            error_detail = f"HTTP {status_code}"

        if status_code == 429:
            retry_after = None
            if "Retry-After" in response.headers:
                try:
                    retry_after = int(response.headers["Retry-After"])
                except ValueError:
                    retry_after = 60
            raise RateLimitError(
                error_detail, retry_after=retry_after, response_text=response_text
            ) from error

        if status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed: {error_detail}",
                status_code=status_code,
                response_text=response_text,
            ) from error

        if 500 <= status_code < 600:
            raise ServerError(
                f"Server is experiencing issues: {error_detail}",
                status_code=status_code,
                response_text=response_text,
            ) from error

        raise APIClientError(
            error_detail, status_code=status_code, response_text=response_text
        ) from error
