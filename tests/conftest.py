"""Shared test fixtures for the client test suite."""

from __future__ import annotations

import os
from typing import Callable

import httpx
import pytest

from hbase_rest.balancing.endpoint import Endpoint
from hbase_rest.balancing.load_balancer import RoundRobinLoadBalancer
from hbase_rest.config.settings import ClientSettings
from hbase_rest.requester.options import RequestOptions
from hbase_rest.requester.requester import Requester


# ---------------------------------------------------------------------------
# Keep HBASE_REST_* variables from the host out of ClientSettings in tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clear_client_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("HBASE_REST_"):
            monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# Settings / component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> ClientSettings:
    """Test settings with a short cooldown and no retry backoff."""
    return ClientSettings(
        refresh_interval_ms=10,
        retry_max_attempts=3,
        retry_backoff_base_seconds=0,
    )


@pytest.fixture
def endpoints() -> list[Endpoint]:
    return [Endpoint.parse(f"http://workernode{i}:8090") for i in range(3)]


@pytest.fixture
def balancer(endpoints: list[Endpoint], settings: ClientSettings) -> RoundRobinLoadBalancer:
    return RoundRobinLoadBalancer(endpoints, settings=settings)


def mock_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[RequestOptions], httpx.AsyncClient]:
    """Transport factory whose clients answer every request with *handler*."""

    def factory(options: RequestOptions) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


class RecordingHandler:
    """MockTransport handler that records requests and replays canned responses.

    ``responses`` maps ``(method, path)`` to a response (or an exception to
    raise). Unmatched requests get a 404.
    """

    def __init__(self, responses: dict[tuple[str, str], httpx.Response | Exception] | None = None):
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.get((request.method, request.url.path))
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            return httpx.Response(404)
        # Fresh copy per request; a Response cannot be sent twice
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)


@pytest.fixture
def recording_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def make_handler() -> type[RecordingHandler]:
    return RecordingHandler


@pytest.fixture
def client_factory() -> Callable[..., Callable[[RequestOptions], httpx.AsyncClient]]:
    return mock_client_factory


@pytest.fixture
def requester(balancer: RoundRobinLoadBalancer, recording_handler: RecordingHandler) -> Requester:
    return Requester(
        balancer,
        RequestOptions(content_type="application/json"),
        client_factory=mock_client_factory(recording_handler),
    )
