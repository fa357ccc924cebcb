"""Exceptions raised by the auth service client.

Every failure of a token exchange or user lookup surfaces as a subclass of
:class:`AuthServiceError`. Wrapping exceptions chain the underlying cause
(``raise ... from exc``) so the original transport or parse error stays
available on ``__cause__``.
"""

from .types import ErrorEntry


class AuthServiceError(Exception):
    """Base class for all auth service client errors."""


class PreconditionError(AuthServiceError, ValueError):
    """Raised before any request is sent when a required input is empty."""


class TransportError(AuthServiceError):
    """Raised when a request cannot be built or the network round trip fails."""


class ResponseReadError(AuthServiceError):
    """Raised when the response body cannot be read."""


class AuthResponseError(AuthServiceError):
    """Raised when the auth service answers with a non-success status.

    Attributes:
        status_code: HTTP status code of the response.
        url: Auth service URL the response came from, if known.
        detail: Error text without the server context prefix.
    """

    def __init__(self, status_code: int, detail: str, url: str | None = None):
        self.status_code = status_code
        self.detail = detail
        self.url = url
        if url:
            message = f'error from server "{url}": {detail}'
        else:
            message = detail
        super().__init__(message)


class ServerReportedError(AuthResponseError):
    """The server rejected the request with a well-formed error envelope."""

    def __init__(
        self,
        status_code: int,
        entries: list[ErrorEntry],
        url: str | None = None,
    ):
        self.entries = entries
        detail = "\n".join(
            f"{entry.title or ''}: {entry.status or ''} {entry.code or ''}, "
            f"{entry.detail or ''}"
            for entry in entries
        )
        super().__init__(status_code, detail, url)


class MalformedErrorBodyError(AuthResponseError):
    """The server returned a non-success status with an unparseable body."""

    def __init__(
        self,
        status_code: int,
        body: bytes,
        url: str | None = None,
        reason: str = "",
    ):
        self.body = body
        self.reason = reason
        detail = "could not unmarshal the response"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(status_code, detail, url)


class ParseError(AuthServiceError):
    """A success response body does not have the expected shape."""


class TokenParseError(ParseError):
    """The token response body could not be parsed."""


class EmptyTokenError(TokenParseError):
    """The token response parsed but carried no access token."""


class UserRecordParseError(ParseError):
    """The user record response body could not be parsed."""
