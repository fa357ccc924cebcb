"""Token exchanges against the tenant auth service.

Two clients with deliberately different call signatures:

* :class:`ServiceAccountTokenClient` performs the client-credentials grant
  and yields a service-level access token.
* :class:`ClusterTokenClient` exchanges an access token for a token scoped
  to one target cluster.

Each ``get`` call is a single round trip: build the request, send it, read
the body, validate the status, parse the token and store it. The ``token``
attribute holds the result of the most recent completed call and is reset
to ``""`` when that call fails.
"""

import structlog

from .authapi import AuthApiClient, responses
from .authapi.errors import EmptyTokenError, PreconditionError
from .config import AuthConfig

logger = structlog.get_logger(__name__)

TOKEN_PATH = "/api/token"


def _require_token(token: str) -> str:
    if not token:
        msg = "auth service returned an empty access token"
        raise EmptyTokenError(msg)
    return token


class ServiceAccountTokenClient:
    """Obtains a service account access token via client credentials."""

    def __init__(self, config: AuthConfig, api_client: AuthApiClient | None = None):
        self.config = config
        self.api_client = api_client or AuthApiClient.from_config(config)
        self.token = ""

    def get(self) -> str:
        """Log in as the service account and return its access token.

        Raises:
            TransportError: If the request cannot be sent.
            ResponseReadError: If the response body cannot be read.
            AuthResponseError: If the auth service rejects the login.
            TokenParseError: If the response carries no usable token.
        """
        token = ""
        try:
            token = self._exchange()
        finally:
            self.token = token
        return token

    def _exchange(self) -> str:
        grant = self.config.grant_request()
        status_code, body = self.api_client.request(
            "POST",
            TOKEN_PATH,
            endpoint="service_account_token",
            data=grant.form_data(),
        )
        responses.validate_response(status_code, body, url=self.config.auth_url)
        token = _require_token(responses.parse_token(body))
        logger.info("Obtained service account token", client_id=grant.client_id)
        return token


class ClusterTokenClient:
    """Exchanges an access token for a token scoped to a target cluster."""

    def __init__(
        self,
        config: AuthConfig,
        access_token: str,
        api_client: AuthApiClient | None = None,
    ):
        self.config = config
        self.access_token = access_token
        self.api_client = api_client or AuthApiClient.from_config(config)
        self.token = ""

    def get(self, cluster: str) -> str:
        """Return a token for ``cluster`` on behalf of the held access token.

        A query looks like
        ``GET https://auth.example.com/api/token?for=https://api.cluster1.com``.

        Args:
            cluster: API URL of the target cluster.

        Raises:
            PreconditionError: If the access token or cluster is empty. No
                request is sent in that case.
            TransportError: If the request cannot be sent.
            ResponseReadError: If the response body cannot be read.
            AuthResponseError: If the auth service rejects the exchange.
            TokenParseError: If the response carries no usable token.
        """
        token = ""
        try:
            token = self._exchange(cluster)
        finally:
            self.token = token
        return token

    def _exchange(self, cluster: str) -> str:
        # auth can hand out empty tokens, so check before sending
        if not self.access_token:
            msg = "access token can't be empty"
            raise PreconditionError(msg)
        if not cluster:
            msg = "cluster URL can't be empty"
            raise PreconditionError(msg)

        status_code, body = self.api_client.request(
            "GET",
            TOKEN_PATH,
            endpoint="cluster_token",
            params={"for": cluster},
            headers={"Authorization": f"Bearer {self.access_token}"},
        )
        responses.validate_response(status_code, body, url=self.config.auth_url)
        token = _require_token(responses.parse_token(body))
        logger.info("Obtained cluster token", cluster=cluster)
        return token
