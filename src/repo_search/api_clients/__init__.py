"""API Client Abstractions for Repo Search.

Provides clean HTTP client abstractions with no raw HTTP calls in business logic.
All HTTP functionality is contained within dedicated API client classes.
"""

from .base_client import (
    RemoteAPIClient,
    APIClientError,
    AuthenticationError,
    NetworkError,
    REQUEST_ERRORS,
    build_basic_auth_header,
)
from .devops_client import DevOpsClient
from .network_error_handler import (
    NetworkErrorHandler,
    NetworkConnectionError,
    NetworkTimeoutError,
    DNSResolutionError,
    SSLCertificateError,
    ServerError,
    RateLimitError,
)

__all__ = [
    # Base client
    "RemoteAPIClient",
    "APIClientError",
    "AuthenticationError",
    "NetworkError",
    "REQUEST_ERRORS",
    "build_basic_auth_header",
    # DevOps REST client
    "DevOpsClient",
    # Network errors
    "NetworkErrorHandler",
    "NetworkConnectionError",
    "NetworkTimeoutError",
    "DNSResolutionError",
    "SSLCertificateError",
    "ServerError",
    "RateLimitError",
]
