"""Async client for the HBase REST (Stargate) gateway with endpoint load balancing."""

from hbase_rest.balancing import (
    Endpoint,
    IgnoreBlacklistedEndpointsPolicy,
    IgnoreFailedEndpointsPolicy,
    RoundRobinLoadBalancer,
)
from hbase_rest.client import HBaseClient, RetryPolicy
from hbase_rest.config import ClientSettings
from hbase_rest.errors import (
    HBaseRestError,
    InvalidArgumentError,
    NoAvailableEndpointError,
    TransportError,
    UnexpectedStatusError,
)
from hbase_rest.logging_config import configure_logging, configure_logging_from_settings
from hbase_rest.requester import Requester, RequestOptions, Response

__all__ = [
    "ClientSettings",
    "Endpoint",
    "HBaseClient",
    "HBaseRestError",
    "IgnoreBlacklistedEndpointsPolicy",
    "IgnoreFailedEndpointsPolicy",
    "InvalidArgumentError",
    "NoAvailableEndpointError",
    "RequestOptions",
    "Requester",
    "Response",
    "RetryPolicy",
    "RoundRobinLoadBalancer",
    "TransportError",
    "UnexpectedStatusError",
    "configure_logging",
    "configure_logging_from_settings",
]
