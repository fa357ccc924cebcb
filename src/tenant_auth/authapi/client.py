"""HTTP transport for the tenant auth service.

Provides a thin client that performs a single request/response round trip
and returns the raw status code and body. Status interpretation and body
parsing are left to :mod:`.responses` so the token clients decide how each
endpoint's answer is read.
"""

import threading
import time
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ..metrics import ExchangeCollector
from .errors import ResponseReadError, TransportError

if TYPE_CHECKING:
    from ..config import AuthConfig

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class AuthApiClient:
    """HTTP client for the tenant auth service.

    Sends exactly one request per call, with no retries. Transport and body
    read failures are wrapped in :class:`TransportError` and
    :class:`ResponseReadError`; any HTTP status is returned to the caller.

    Thread-safe through thread-local storage of httpx.Client instances.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        collector: ExchangeCollector | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the auth API client.

        Args:
            base_url: Base URL of the auth service (e.g., "https://auth.example.com").
            timeout: Request timeout in seconds (default: 30.0).
            collector: Optional metrics collector recording each round trip.
            transport: Optional httpx transport, used in place of the network.

        Raises:
            ValueError: If base_url is empty or timeout is not positive.
        """
        if not base_url:
            msg = "base_url cannot be empty"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._collector = collector
        self._transport = transport
        self._headers = {"Accept": "application/json"}

        # Use thread-local storage for httpx.Client (thread safety)
        self._local = threading.local()

    @classmethod
    def from_config(
        cls,
        config: "AuthConfig",
        collector: ExchangeCollector | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "AuthApiClient":
        """Build a client for the configured auth URL and timeout."""
        return cls(
            base_url=config.auth_url,
            timeout=config.timeout,
            collector=collector,
            transport=transport,
        )

    @property
    def client(self) -> httpx.Client:
        """Get or create the thread-local httpx client."""
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._local.client

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the thread-local HTTP client if open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        endpoint: str,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[int, bytes]:
        """Perform one round trip against the auth service.

        Args:
            method: HTTP method.
            path: Path relative to the base URL (e.g., "/api/token").
            endpoint: Label used for logging and metrics.
            params: Optional query parameters.
            data: Optional URL-form body fields.
            headers: Optional extra request headers.

        Returns:
            Tuple of (status_code, body).

        Raises:
            TransportError: If the request cannot be built or sent.
            ResponseReadError: If the response body cannot be read.
        """
        start_time = time.time()
        failed = True
        try:
            status_code, body = self._round_trip(
                method, path, params=params, data=data, headers=headers
            )
            failed = status_code != httpx.codes.OK
            return status_code, body
        finally:
            duration = time.time() - start_time
            if self._collector is not None:
                self._collector.record(endpoint, duration, failed=failed)

    def _round_trip(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> tuple[int, bytes]:
        try:
            request = self.client.build_request(method, path, **kwargs)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            logger.exception("Failed to build auth request", method=method, path=path)
            msg = "error creating request object"
            raise TransportError(msg) from exc

        logger.debug("Making auth request", method=method, url=str(request.url))
        try:
            response = self.client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.exception("Auth request failed", method=method, path=path)
            msg = "error while doing the request"
            raise TransportError(msg) from exc

        try:
            body = response.read()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            logger.exception("Failed to read auth response", method=method, path=path)
            msg = "error reading response"
            raise ResponseReadError(msg) from exc
        finally:
            response.close()

        logger.debug(
            "Auth request completed",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response.status_code, body
