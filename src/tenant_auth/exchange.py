"""End-to-end cluster token exchange for a user.

Chains the three auth service operations the provisioning pipeline needs:
log in as the service account, resolve the user's cluster, then exchange
the service account token for a token scoped to that cluster.
"""

from dataclasses import dataclass, field

import structlog

from .authapi import AuthApiClient
from .config import AuthConfig
from .metrics import ExchangeCollector
from .retry import RetryPolicy
from .tokens import ClusterTokenClient, ServiceAccountTokenClient
from .users import UserClusterResolver

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ClusterToken:
    """A token scoped to the cluster a user is assigned to."""

    user_id: str
    cluster: str
    token: str = field(repr=False)


class ClusterTokenExchange:
    """Obtains cluster-scoped tokens for users.

    Every call performs fresh exchanges; nothing is cached between calls.
    Can be used as a context manager; the underlying HTTP client is closed
    on exit only when this object created it.
    """

    def __init__(
        self,
        config: AuthConfig,
        api_client: AuthApiClient | None = None,
        retry: RetryPolicy | None = None,
        collector: ExchangeCollector | None = None,
    ):
        """Initialize the exchange.

        Args:
            config: Auth service configuration.
            api_client: Shared HTTP client; created from config if omitted.
            retry: Retry policy applied to each step; built from config if
                omitted.
            collector: Metrics collector for the client created here. Pass
                it to the injected client instead when supplying api_client.

        Raises:
            ValueError: If both api_client and collector are given.
        """
        if api_client is not None and collector is not None:
            msg = "pass the collector to the injected api_client instead"
            raise ValueError(msg)
        self.config = config
        self._owns_client = api_client is None
        self.api_client = api_client or AuthApiClient.from_config(
            config, collector=collector
        )
        self.retry = retry or RetryPolicy.from_config(config)
        self.resolver = UserClusterResolver(config, self.api_client)

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the HTTP client if it was created by this exchange."""
        if self._owns_client:
            self.api_client.close()

    def token_for_user(self, user_id: str) -> ClusterToken:
        """Return a token for the cluster ``user_id`` is assigned to.

        Raises:
            AuthServiceError: From whichever step failed. An empty resolved
                cluster fails the final step with a PreconditionError.
        """
        service_account = ServiceAccountTokenClient(self.config, self.api_client)
        access_token = self.retry.call(service_account.get)

        cluster = self.retry.call(lambda: self.resolver.get_user_cluster(user_id))
        if not cluster:
            logger.warning("User has no assigned cluster", user_id=user_id)

        cluster_client = ClusterTokenClient(self.config, access_token, self.api_client)
        token = self.retry.call(lambda: cluster_client.get(cluster))
        logger.info("Exchanged cluster token for user", user_id=user_id, cluster=cluster)
        return ClusterToken(user_id=user_id, cluster=cluster, token=token)
