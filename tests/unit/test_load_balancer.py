"""Unit tests for the round-robin load balancer."""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from hbase_rest.balancing.endpoint import Endpoint
from hbase_rest.balancing.load_balancer import RoundRobinLoadBalancer, worker_endpoints
from hbase_rest.balancing.policies import (
    EndpointState,
    IgnoreBlacklistedEndpointsPolicy,
    IgnoreFailedEndpointsPolicy,
    NullIgnorePolicy,
)
from hbase_rest.config.cluster import ClusterConfig
from hbase_rest.config.settings import ClientSettings
from hbase_rest.errors import InvalidArgumentError, NoAvailableEndpointError


def _servers(n: int) -> list[str]:
    return [f"http://workernode{i}:8090" for i in range(n)]


class TestConstruction:
    """Pool establishment."""

    def test_explicit_list_preserves_order(self):
        uris = ["http://c:1", "http://a:1", "http://b:1"]
        balancer = RoundRobinLoadBalancer.from_endpoints(uris)
        assert [e.host for e in balancer.endpoints] == ["c", "a", "b"]

    def test_single_endpoint(self):
        balancer = RoundRobinLoadBalancer.from_endpoint("http://gateway:8090")
        assert balancer.endpoints == (Endpoint.parse("http://gateway:8090"),)

    def test_worker_count_without_domain(self):
        balancer = RoundRobinLoadBalancer.from_worker_count(4)
        assert balancer.get_num_available_endpoints() == 4
        assert [e.uri for e in balancer.endpoints] == [
            f"http://workernode{i}:8090/" for i in range(4)
        ]

    def test_worker_count_with_domain_suffix(self):
        balancer = RoundRobinLoadBalancer.from_worker_count(4, "test.example.com")
        assert sorted(str(e) for e in balancer.endpoints) == [
            f"http://workernode{i}.test.example.com:8090/" for i in range(4)
        ]

    def test_worker_naming_follows_settings(self):
        settings = ClientSettings(worker_host_name_prefix="wn", worker_rest_endpoint_port=9000)
        endpoints = worker_endpoints(2, None, settings)
        assert [e.uri for e in endpoints] == ["http://wn0:9000/", "http://wn1:9000/"]

    @pytest.mark.parametrize("count", [0, -1])
    def test_invalid_worker_count(self, count):
        with pytest.raises(InvalidArgumentError):
            RoundRobinLoadBalancer.from_worker_count(count)

    def test_empty_pool_rejected(self):
        with pytest.raises(InvalidArgumentError):
            RoundRobinLoadBalancer([])

    def test_duplicate_endpoints_rejected(self):
        with pytest.raises(InvalidArgumentError):
            RoundRobinLoadBalancer(["http://a:1", "http://A:1/"])

    def test_default_policy_uses_refresh_interval(self):
        balancer = RoundRobinLoadBalancer(_servers(2), settings=ClientSettings(refresh_interval_ms=250))
        policy = balancer.ignore_policy
        assert isinstance(policy, IgnoreFailedEndpointsPolicy)
        assert policy.refresh_interval_seconds == pytest.approx(0.25)

    def test_from_cluster_config_with_blacklist(self):
        config = ClusterConfig(endpoints=_servers(3), blacklist=["http://workernode0:8090"])
        balancer = RoundRobinLoadBalancer.from_cluster_config(config)
        selected = {balancer.get_endpoint().host for _ in range(6)}
        assert selected == {"workernode1", "workernode2"}

    def test_from_cluster_config_with_worker_count(self):
        config = ClusterConfig(worker_count=2, domain_suffix="cluster.internal")
        balancer = RoundRobinLoadBalancer.from_cluster_config(config)
        assert [e.host for e in balancer.endpoints] == [
            "workernode0.cluster.internal",
            "workernode1.cluster.internal",
        ]


class TestGetEndpoint:
    """Round-robin selection."""

    def test_round_robin_order(self):
        n = 10
        balancer = RoundRobinLoadBalancer(_servers(n))
        for i in range(2 * n):
            endpoint = balancer.get_endpoint()
            assert endpoint == balancer.endpoints[i % n]
            balancer.record_success(endpoint)

    def test_skips_failed(self):
        balancer = RoundRobinLoadBalancer(_servers(3), settings=ClientSettings(refresh_interval_ms=60_000))
        balancer.record_failure(balancer.endpoints[1])
        selected = [balancer.get_endpoint().host for _ in range(4)]
        assert selected == ["workernode0", "workernode2", "workernode0", "workernode2"]

    def test_success_restores_endpoint(self):
        balancer = RoundRobinLoadBalancer(_servers(2), settings=ClientSettings(refresh_interval_ms=60_000))
        balancer.record_failure(balancer.endpoints[0])
        assert balancer.get_endpoint() == balancer.endpoints[1]
        balancer.record_success(balancer.endpoints[0])
        assert balancer.get_endpoint() == balancer.endpoints[0]

    def test_cursor_moves_past_returned_endpoint(self):
        balancer = RoundRobinLoadBalancer(_servers(4), settings=ClientSettings(refresh_interval_ms=60_000))
        balancer.record_failure(balancer.endpoints[0])
        balancer.record_failure(balancer.endpoints[1])
        assert balancer.get_endpoint() == balancer.endpoints[2]
        assert balancer.get_endpoint() == balancer.endpoints[3]
        assert balancer.get_endpoint() == balancer.endpoints[2]

    def test_blacklist_policy(self):
        balancer = RoundRobinLoadBalancer(
            _servers(10), ignore_policy=IgnoreBlacklistedEndpointsPolicy(_servers(8))
        )
        blacklisted = {Endpoint.parse(u) for u in _servers(8)}
        for _ in range(20):
            endpoint = balancer.get_endpoint()
            assert endpoint not in blacklisted
            balancer.record_success(endpoint)

    def test_all_blacklisted_raises(self):
        balancer = RoundRobinLoadBalancer(
            _servers(3), ignore_policy=IgnoreBlacklistedEndpointsPolicy(_servers(3))
        )
        with pytest.raises(NoAvailableEndpointError):
            balancer.get_endpoint()

    def test_all_failed_raises(self):
        balancer = RoundRobinLoadBalancer(_servers(2), settings=ClientSettings(refresh_interval_ms=60_000))
        for endpoint in balancer.endpoints:
            balancer.record_failure(endpoint)
        with pytest.raises(NoAvailableEndpointError):
            balancer.get_endpoint()

    def test_null_policy_returns_failed_endpoints(self):
        balancer = RoundRobinLoadBalancer(_servers(2), ignore_policy=NullIgnorePolicy())
        balancer.record_failure(balancer.endpoints[0])
        assert balancer.get_endpoint() == balancer.endpoints[0]


class TestFailedEndpointsExpiry:
    """Cooldown reinstates exactly one endpoint per selection."""

    def test_failed_endpoints_expiry(self):
        n = 5
        balancer = RoundRobinLoadBalancer.from_worker_count(n, settings=ClientSettings(refresh_interval_ms=10))
        policy = balancer.ignore_policy
        assert isinstance(policy, IgnoreFailedEndpointsPolicy)

        for _ in range(n):
            endpoint = balancer.get_endpoint()
            balancer.record_failure(endpoint)

        states = list(policy.get_states().values())
        assert states.count(EndpointState.FAILED) == n

        time.sleep(0.1)

        endpoint = balancer.get_endpoint()
        balancer.record_success(endpoint)

        states = list(policy.get_states().values())
        assert states.count(EndpointState.FAILED) == n - 1
        assert states.count(EndpointState.AVAILABLE) == 1


class TestConcurrency:
    def test_concurrent_selection_is_distinct(self):
        n = 20
        balancer = RoundRobinLoadBalancer.from_worker_count(n)

        def select() -> Endpoint:
            endpoint = balancer.get_endpoint()
            balancer.record_success(endpoint)
            return endpoint

        with ThreadPoolExecutor(max_workers=n) as pool:
            selected = list(pool.map(lambda _: select(), range(n)))

        assert len(set(selected)) == n

    def test_concurrent_outcomes_do_not_corrupt_records(self):
        balancer = RoundRobinLoadBalancer.from_worker_count(8, settings=ClientSettings(refresh_interval_ms=60_000))

        def hammer(i: int) -> None:
            endpoint = balancer.endpoints[i % 8]
            for _ in range(200):
                balancer.record_failure(endpoint)
                balancer.record_success(endpoint)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(hammer, range(16)))

        policy = balancer.ignore_policy
        assert isinstance(policy, IgnoreFailedEndpointsPolicy)
        assert set(policy.get_states().values()) == {EndpointState.AVAILABLE}
        assert len(policy.get_states()) == 8


class TestIntrospection:
    def test_num_available_is_pool_capacity(self):
        balancer = RoundRobinLoadBalancer(_servers(4), settings=ClientSettings(refresh_interval_ms=60_000))
        balancer.record_failure(balancer.endpoints[0])
        assert balancer.get_num_available_endpoints() == 4

    def test_outcome_for_unknown_endpoint_is_noop(self):
        balancer = RoundRobinLoadBalancer(_servers(2))
        stranger = Endpoint.parse("http://stranger:1")
        balancer.record_failure(stranger)
        balancer.record_success(stranger)
        assert [balancer.get_endpoint() for _ in range(2)] == list(balancer.endpoints)

    def test_stats_reflect_health(self):
        balancer = RoundRobinLoadBalancer(_servers(3), settings=ClientSettings(refresh_interval_ms=60_000))
        balancer.record_failure(balancer.endpoints[2])
        stats = balancer.get_stats()
        assert stats["total"] == 3
        assert stats["available"] == 2
        assert stats["ignored"] == 1
        assert stats["endpoints"][2] == {"endpoint": "http://workernode2:8090/", "ignored": True}
