"""Raw response types for the tenant auth service API.

Pydantic models representing the JSON documents returned by the auth
service. Unknown fields are ignored, and fields the service may omit default
to ``None`` so that a missing or null token, cluster or error member is
reported as ``""`` rather than as a validation failure.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorEntry(BaseModel):
    """A single entry of the auth service error envelope.

    Members may be absent or null; both render as empty text.
    """

    code: str | None = None
    detail: str | None = None
    status: str | None = None
    title: str | None = None


class ErrorEnvelope(BaseModel):
    """Error document returned with non-success responses."""

    errors: list[ErrorEntry] | None = None


class AccessTokenResponse(BaseModel):
    """Success document returned by ``/api/token``."""

    access_token: str | None = None


class UserAttributes(BaseModel):
    """Attributes of a user record; only the assigned cluster is read."""

    cluster: str | None = None


class UserData(BaseModel):
    """The ``data`` member of a user record."""

    attributes: UserAttributes | None = None


class UserRecord(BaseModel):
    """Document returned by ``/api/users/{id}``."""

    data: UserData | None = None


class GrantRequest(BaseModel):
    """Client-credentials grant sent to ``POST /api/token``."""

    model_config = ConfigDict(frozen=True)

    grant_type: str
    client_id: str
    client_secret: str = Field(repr=False)

    def form_data(self) -> dict[str, str]:
        """Return the grant as URL-form fields, in wire order."""
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
