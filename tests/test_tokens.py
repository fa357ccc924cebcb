"""Tests for the service account and cluster token clients.

Requests go to the fake auth service from conftest.py, so each test can
check both what was sent and how the answer was interpreted.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from tenant_auth import tokens
from tenant_auth.authapi import AuthApiClient, errors

INVALID_GRANT = {
    "errors": [
        {
            "title": "Bad Request",
            "status": "400",
            "code": "invalid_grant",
            "detail": "client secret mismatch",
        }
    ]
}

# ---------------------------------------------------------------------------
# ServiceAccountTokenClient
# ---------------------------------------------------------------------------


@pytest.fixture
def sa_client(config, api_client) -> tokens.ServiceAccountTokenClient:
    """Service account client talking to the fake auth service."""
    return tokens.ServiceAccountTokenClient(config, api_client)


def test_service_account_posts_client_credentials(sa_client, fake_auth):
    """The login is a form-encoded POST to /api/token."""
    fake_auth.respond_with(200, {"access_token": "sa-token"})

    sa_client.get()

    request = fake_auth.last_request
    assert request.method == "POST"
    assert str(request.url) == "https://auth.example.com/api/token"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.content == (
        b"grant_type=client_credentials&client_id=tenant-client"
        b"&client_secret=tenant-secret"
    )
    assert "Authorization" not in request.headers


def test_service_account_returns_and_stores_token(sa_client, fake_auth):
    """The trimmed token is returned and stored on the client."""
    fake_auth.respond_with(200, {"access_token": " sa-token\n"})

    token = sa_client.get()

    assert token == "sa-token"
    assert sa_client.token == "sa-token"


def test_service_account_sends_exactly_one_request(sa_client, fake_auth):
    """A failing login is not retried."""
    fake_auth.respond_with(503, INVALID_GRANT)

    with pytest.raises(errors.ServerReportedError):
        sa_client.get()

    assert len(fake_auth.requests) == 1


def test_service_account_invalid_grant(sa_client, fake_auth):
    """A rejected login surfaces the server's error and leaves no token."""
    fake_auth.respond_with(400, INVALID_GRANT)

    with pytest.raises(errors.ServerReportedError) as exc_info:
        sa_client.get()

    assert "Bad Request: 400 invalid_grant, client secret mismatch" in str(exc_info.value)
    assert 'error from server "https://auth.example.com"' in str(exc_info.value)
    assert sa_client.token == ""


def test_service_account_malformed_error_body(sa_client, fake_auth):
    """An unparseable error body is reported as such."""
    fake_auth.respond_with(502, content=b"<html>Bad Gateway</html>")

    with pytest.raises(errors.MalformedErrorBodyError) as exc_info:
        sa_client.get()

    assert exc_info.value.url == "https://auth.example.com"


def test_service_account_unparseable_token_body(sa_client, fake_auth):
    """A 200 response that is not JSON raises TokenParseError."""
    fake_auth.respond_with(200, content=b"ok")

    with pytest.raises(errors.TokenParseError):
        sa_client.get()


def test_service_account_empty_token_rejected(sa_client, fake_auth):
    """A 200 response without a token is not accepted as a login."""
    fake_auth.respond_with(200, {"token_type": "bearer"})

    with pytest.raises(errors.EmptyTokenError):
        sa_client.get()

    assert sa_client.token == ""


def test_service_account_failure_clears_previous_token(sa_client, fake_auth):
    """After a failed call the previous token is no longer exposed."""
    fake_auth.respond_with(200, {"access_token": "first"})
    sa_client.get()

    fake_auth.respond_with(400, INVALID_GRANT)
    with pytest.raises(errors.ServerReportedError):
        sa_client.get()

    assert sa_client.token == ""


def test_service_account_reuse_overwrites_token(sa_client, fake_auth):
    """Reusing a client overwrites the stored token."""
    fake_auth.respond_with(200, {"access_token": "first"})
    sa_client.get()
    fake_auth.respond_with(200, {"access_token": "second"})

    assert sa_client.get() == "second"
    assert sa_client.token == "second"


def test_service_account_transport_error(config):
    """Network failures surface as TransportError."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    api_client = AuthApiClient(config.auth_url, transport=httpx.MockTransport(refuse))
    client = tokens.ServiceAccountTokenClient(config, api_client)

    with pytest.raises(errors.TransportError):
        client.get()

    assert client.token == ""


def test_service_account_builds_own_api_client(config):
    """Without an injected transport the client is built from config."""
    client = tokens.ServiceAccountTokenClient(config)

    assert client.api_client.base_url == config.auth_url


# ---------------------------------------------------------------------------
# ClusterTokenClient
# ---------------------------------------------------------------------------


def test_cluster_token_request_shape(config, api_client, fake_auth):
    """The exchange is a GET with an escaped 'for' query and bearer header."""
    fake_auth.respond_with(200, {"access_token": "cluster-token"})
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    client.get("https://api.example.com")

    request = fake_auth.last_request
    assert request.method == "GET"
    assert request.url.path == "/api/token"
    assert request.url.query == b"for=https%3A%2F%2Fapi.example.com"
    assert request.headers["Authorization"] == "Bearer sa-token"


def test_cluster_token_returns_and_stores_token(config, api_client, fake_auth):
    """The cluster-scoped token is returned and stored."""
    fake_auth.respond_with(200, {"access_token": "  cluster-token  "})
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    assert client.get("https://api.cluster1.com") == "cluster-token"
    assert client.token == "cluster-token"


def test_cluster_token_query_round_trips_cluster(config, api_client, fake_auth):
    """Clusters with query characters are escaped, not split."""
    fake_auth.respond_with(200, {"access_token": "t"})
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)
    cluster = "https://api.example.com/?a=1&b=2"

    client.get(cluster)

    query = parse_qs(fake_auth.last_request.url.query.decode())
    assert query == {"for": [cluster]}


@pytest.mark.parametrize("cluster", ["", "https://api.example.com"])
def test_cluster_token_empty_access_token(config, api_client, fake_auth, cluster):
    """An empty access token fails without sending a request."""
    client = tokens.ClusterTokenClient(config, "", api_client)

    with pytest.raises(errors.PreconditionError, match="access token can't be empty"):
        client.get(cluster)

    assert fake_auth.requests == []


def test_cluster_token_empty_cluster(config, api_client, fake_auth):
    """An empty cluster fails without sending a request."""
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    with pytest.raises(errors.PreconditionError, match="cluster URL can't be empty"):
        client.get("")

    assert fake_auth.requests == []


def test_cluster_token_precondition_is_value_error(config, api_client):
    """Precondition failures are also ValueErrors."""
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    with pytest.raises(ValueError):
        client.get("")


def test_cluster_token_server_error(config, api_client, fake_auth):
    """An error envelope from the exchange is surfaced with context."""
    fake_auth.respond_with(
        403,
        {
            "errors": [
                {
                    "title": "Forbidden",
                    "status": "403",
                    "code": "unauthorized_error",
                    "detail": "not linked to cluster",
                }
            ]
        },
    )
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    with pytest.raises(errors.ServerReportedError) as exc_info:
        client.get("https://api.example.com")

    assert exc_info.value.status_code == 403
    assert "Forbidden: 403 unauthorized_error, not linked to cluster" in str(exc_info.value)
    assert client.token == ""


def test_cluster_token_empty_token_rejected(config, api_client, fake_auth):
    """An exchange that returns no token is an error."""
    fake_auth.respond_with(200, {"access_token": "   "})
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    with pytest.raises(errors.EmptyTokenError):
        client.get("https://api.example.com")


def test_cluster_token_records_metrics(config, api_client, fake_auth, collector):
    """Cluster exchanges are counted under their own endpoint label."""
    fake_auth.respond_with(200, {"access_token": "t"})
    client = tokens.ClusterTokenClient(config, "sa-token", api_client)

    client.get("https://api.example.com")

    assert collector.snapshot()["cluster_token"].requests == 1
