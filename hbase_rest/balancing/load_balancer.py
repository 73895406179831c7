"""Round-robin load balancer over a fixed pool of Stargate endpoints.

The pool is established at construction and never changes. Selection walks
the pool in order from a shared cursor, skipping endpoints the ignore policy
rejects, and leaves the cursor just past the endpoint it returned. Health
bookkeeping is delegated to the ignore policy, which by default excludes
recently failed endpoints for a short cooldown.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Iterable

from hbase_rest.balancing.endpoint import Endpoint
from hbase_rest.balancing.policies import (
    CompositeIgnorePolicy,
    EndpointAccessResult,
    EndpointIgnorePolicy,
    IgnoreBlacklistedEndpointsPolicy,
    IgnoreFailedEndpointsPolicy,
)
from hbase_rest.config.settings import ClientSettings
from hbase_rest.errors import InvalidArgumentError, NoAvailableEndpointError

if TYPE_CHECKING:
    from hbase_rest.config.cluster import ClusterConfig

logger = logging.getLogger(__name__)


class RoundRobinLoadBalancer:
    """Selects endpoints round robin, skipping ignored ones.

    Thread-safe: the scan-and-advance in ``get_endpoint`` runs under a single
    lock; per-endpoint health records are synchronized by the policy.

    Args:
        endpoints: The pool, in rotation order.
        ignore_policy: Policy consulted for every candidate. Defaults to an
            ``IgnoreFailedEndpointsPolicy`` over the pool.
        settings: Source of the refresh interval for the default policy.
    """

    def __init__(
        self,
        endpoints: Iterable[Endpoint | str],
        ignore_policy: EndpointIgnorePolicy | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        pool = tuple(e if isinstance(e, Endpoint) else Endpoint.parse(e) for e in endpoints)
        if not pool:
            raise InvalidArgumentError("Load balancer requires at least one endpoint")
        if len(set(pool)) != len(pool):
            raise InvalidArgumentError("Load balancer endpoints must be unique")

        self._settings = settings or ClientSettings()
        self._endpoints: tuple[Endpoint, ...] = pool
        self._index: int = 0
        self._lock = threading.Lock()
        self._ignore_policy = ignore_policy or IgnoreFailedEndpointsPolicy(
            pool, self._settings.refresh_interval_ms / 1000.0
        )

        logger.info("Load balancer initialized with %d endpoints", len(pool))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_endpoints(
        cls,
        uris: Iterable[Endpoint | str],
        settings: ClientSettings | None = None,
    ) -> RoundRobinLoadBalancer:
        return cls(uris, settings=settings)

    @classmethod
    def from_endpoint(
        cls,
        uri: Endpoint | str,
        settings: ClientSettings | None = None,
    ) -> RoundRobinLoadBalancer:
        return cls([uri], settings=settings)

    @classmethod
    def from_worker_count(
        cls,
        count: int,
        domain_suffix: str | None = None,
        settings: ClientSettings | None = None,
    ) -> RoundRobinLoadBalancer:
        """Build a pool of ``count`` synthetic worker node endpoints.

        Hostnames are ``{prefix}{i}`` (or ``{prefix}{i}.{domain_suffix}``) for
        ``i`` in ``[0, count)``, with prefix and port taken from *settings*.
        """
        settings = settings or ClientSettings()
        return cls(worker_endpoints(count, domain_suffix, settings), settings=settings)

    @classmethod
    def from_cluster_config(cls, config: ClusterConfig) -> RoundRobinLoadBalancer:
        """Build a balancer from a loaded cluster file.

        A non-empty blacklist is OR-ed with the failure-expiry policy.
        """
        settings = config.settings
        if config.endpoints:
            pool = [Endpoint.parse(uri) for uri in config.endpoints]
        else:
            pool = worker_endpoints(config.worker_count, config.domain_suffix, settings)

        policy: EndpointIgnorePolicy = IgnoreFailedEndpointsPolicy(
            pool, settings.refresh_interval_ms / 1000.0
        )
        if config.blacklist:
            policy = CompositeIgnorePolicy(
                [IgnoreBlacklistedEndpointsPolicy(config.blacklist), policy]
            )
        return cls(pool, ignore_policy=policy, settings=settings)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def get_endpoint(self) -> Endpoint:
        """Return the next non-ignored endpoint in rotation.

        Raises ``NoAvailableEndpointError`` if every endpoint is ignored after
        a full rotation through the pool; the cursor is left unchanged.
        """
        pool_size = len(self._endpoints)

        with self._lock:
            for offset in range(pool_size):
                position = (self._index + offset) % pool_size
                endpoint = self._endpoints[position]
                if self._ignore_policy.should_ignore_endpoint(endpoint):
                    continue
                self._index = (position + 1) % pool_size
                return endpoint

        logger.error("All %d endpoints are currently ignored", pool_size)
        raise NoAvailableEndpointError(pool_size=pool_size)

    # ------------------------------------------------------------------
    # Outcome tracking
    # ------------------------------------------------------------------

    def record_success(self, endpoint: Endpoint) -> None:
        self._ignore_policy.on_endpoint_access_completion(endpoint, EndpointAccessResult.SUCCESS)

    def record_failure(self, endpoint: Endpoint) -> None:
        self._ignore_policy.on_endpoint_access_completion(endpoint, EndpointAccessResult.FAILURE)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_num_available_endpoints(self) -> int:
        """Size of the pool. This is capacity, not the live healthy count."""
        return len(self._endpoints)

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return self._endpoints

    @property
    def ignore_policy(self) -> EndpointIgnorePolicy:
        return self._ignore_policy

    def get_stats(self) -> dict:
        """Return pool statistics. Evaluating the policy applies lazy expiry."""
        ignored = [e for e in self._endpoints if self._ignore_policy.should_ignore_endpoint(e)]
        per_endpoint = [
            {"endpoint": e.uri, "ignored": e in ignored} for e in self._endpoints
        ]
        return {
            "total": len(self._endpoints),
            "available": len(self._endpoints) - len(ignored),
            "ignored": len(ignored),
            "endpoints": per_endpoint,
        }


def worker_endpoints(
    count: int,
    domain_suffix: str | None,
    settings: ClientSettings,
) -> list[Endpoint]:
    """Synthesize worker node endpoints following the naming convention."""
    if count < 1:
        raise InvalidArgumentError(f"Worker count must be >= 1, got {count}", count=count)

    prefix = settings.worker_host_name_prefix
    port = settings.worker_rest_endpoint_port
    endpoints = []
    for i in range(count):
        host = f"{prefix}{i}.{domain_suffix}" if domain_suffix else f"{prefix}{i}"
        endpoints.append(Endpoint(scheme="http", host=host.lower(), port=port))
    return endpoints
