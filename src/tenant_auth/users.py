"""Lookup of the cluster a user is assigned to."""

import posixpath
from urllib.parse import quote

import structlog

from .authapi import AuthApiClient, responses
from .authapi.errors import PreconditionError
from .config import AuthConfig

logger = structlog.get_logger(__name__)

USERS_PATH = "/api/users"


def user_path(user_id: str) -> str:
    """Return the escaped lookup path for ``user_id`` under ``/api/users/``.

    Leading slashes are dropped and dot segments are resolved, so the path
    never leaves the users collection. Reserved characters such as ``?`` and
    ``#`` are percent-encoded and stay part of the path.

    Raises:
        PreconditionError: If ``user_id`` is empty or resolves to a path
            outside ``/api/users/``.
    """
    if not user_id:
        msg = "user ID can't be empty"
        raise PreconditionError(msg)

    path = posixpath.normpath(posixpath.join(USERS_PATH, user_id.lstrip("/")))
    if not path.startswith(USERS_PATH + "/"):
        msg = f"user ID {user_id!r} does not name a user"
        raise PreconditionError(msg)
    return quote(path, safe="/")


class UserClusterResolver:
    """Resolves a user's assigned cluster URL from the auth service.

    The user lookup endpoint is called without an ``Authorization`` header.
    """

    def __init__(self, config: AuthConfig, api_client: AuthApiClient | None = None):
        self.config = config
        self.api_client = api_client or AuthApiClient.from_config(config)

    def get_user_cluster(self, user_id: str) -> str:
        """Return the cluster URL assigned to ``user_id``.

        Returns ``""`` when the user record has no cluster attribute.

        Raises:
            PreconditionError: If ``user_id`` is empty or resolves outside
                the users path.
            TransportError: If the request cannot be sent.
            ResponseReadError: If the response body cannot be read.
            AuthResponseError: If the auth service rejects the lookup.
            UserRecordParseError: If the user record cannot be parsed.
        """
        status_code, body = self.api_client.request(
            "GET",
            user_path(user_id),
            endpoint="user_cluster",
        )
        responses.validate_response(status_code, body, url=self.config.auth_url)
        cluster = responses.parse_user_cluster(body)
        logger.debug("Resolved user cluster", user_id=user_id, cluster=cluster)
        return cluster
