"""Tenant auth service API package.

Provides a lightweight HTTP transport for the auth service together with
the response types, error hierarchy and the shared validation and parsing
helpers used by every token exchange.

Exports:
    AuthApiClient: HTTP client performing single request/response round trips.
    types: Module containing Pydantic models for API documents.
    errors: Module containing the exception hierarchy.
    validate_response: Turn a non-success response into an exception.
    parse_token: Extract the access token from a success body.
    parse_user_cluster: Extract the assigned cluster from a user record.
"""

from . import errors, types
from .client import DEFAULT_TIMEOUT, AuthApiClient
from .responses import parse_token, parse_user_cluster, validate_response

__all__ = [
    "DEFAULT_TIMEOUT",
    "AuthApiClient",
    "errors",
    "parse_token",
    "parse_user_cluster",
    "types",
    "validate_response",
]
