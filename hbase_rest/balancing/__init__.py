"""Endpoint load balancing: pool rotation and health tracking."""

from hbase_rest.balancing.endpoint import Endpoint
from hbase_rest.balancing.load_balancer import RoundRobinLoadBalancer, worker_endpoints
from hbase_rest.balancing.policies import (
    CompositeIgnorePolicy,
    EndpointAccessResult,
    EndpointIgnorePolicy,
    EndpointState,
    IgnoreBlacklistedEndpointsPolicy,
    IgnoreFailedEndpointsPolicy,
    NullIgnorePolicy,
)

__all__ = [
    "CompositeIgnorePolicy",
    "Endpoint",
    "EndpointAccessResult",
    "EndpointIgnorePolicy",
    "EndpointState",
    "IgnoreBlacklistedEndpointsPolicy",
    "IgnoreFailedEndpointsPolicy",
    "NullIgnorePolicy",
    "RoundRobinLoadBalancer",
    "worker_endpoints",
]
