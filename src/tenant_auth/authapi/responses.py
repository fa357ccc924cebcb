"""Validation and parsing of auth service responses.

Stateless helpers shared by every client operation. They work on the raw
status code and body bytes so they can be exercised without any HTTP
machinery.
"""

import httpx
import pydantic

from .errors import (
    MalformedErrorBodyError,
    ServerReportedError,
    TokenParseError,
    UserRecordParseError,
)
from .types import AccessTokenResponse, ErrorEnvelope, UserRecord


def _summarize(exc: pydantic.ValidationError) -> str:
    """Return the first validation problem, with its location when known."""
    first = exc.errors(include_url=False)[0]
    location = ".".join(str(part) for part in first["loc"])
    summary = f"{location}: {first['msg']}" if location else first["msg"]
    if exc.error_count() > 1:
        summary += f" (and {exc.error_count() - 1} more)"
    return summary


def validate_response(status_code: int, body: bytes, url: str | None = None) -> None:
    """Raise if the response status is not a success.

    A non-success body is parsed as an error envelope. Every entry is
    rendered as ``"<title>: <status> <code>, <detail>"`` and the lines are
    joined in entry order. An envelope without entries still raises, since
    the status alone marks the request as failed.

    Args:
        status_code: HTTP status code of the response.
        body: Raw response body.
        url: Auth service URL, added to the error message for context.

    Raises:
        ServerReportedError: The body is a well-formed error envelope.
        MalformedErrorBodyError: The body could not be parsed as an envelope.
    """
    if status_code == httpx.codes.OK:
        return

    try:
        envelope = ErrorEnvelope.model_validate_json(body)
    except pydantic.ValidationError as exc:
        raise MalformedErrorBodyError(
            status_code, body, url, reason=_summarize(exc)
        ) from exc

    raise ServerReportedError(status_code, envelope.errors or [], url)


def parse_token(body: bytes) -> str:
    """Extract the access token from a success response body.

    Surrounding whitespace is trimmed. A missing or null ``access_token``
    yields an empty string; rejecting it is up to the caller.

    Raises:
        TokenParseError: The body is not a JSON object of the expected shape.
    """
    try:
        response = AccessTokenResponse.model_validate_json(body)
    except pydantic.ValidationError as exc:
        msg = "error unmarshalling the response"
        raise TokenParseError(msg) from exc
    return (response.access_token or "").strip()


def parse_user_cluster(body: bytes) -> str:
    """Extract ``data.attributes.cluster`` from a user record body.

    Raises:
        UserRecordParseError: The body is not a JSON object of the expected
            shape.
    """
    try:
        record = UserRecord.model_validate_json(body)
    except pydantic.ValidationError as exc:
        msg = "error unmarshalling the response"
        raise UserRecordParseError(msg) from exc
    attributes = record.data.attributes if record.data else None
    if attributes is None:
        return ""
    return attributes.cluster or ""
