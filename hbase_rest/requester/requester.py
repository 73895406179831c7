"""Requester: one HTTP exchange per call against a load-balanced endpoint.

For every call the requester asks the balancer for an endpoint, builds the
target URL, sends the request and reports the outcome back to the balancer.
Any response that completes the exchange counts as a success for the
endpoint, whatever its status code; only transport-level failures (refused
connection, DNS, timeout) and unexpected exceptions count as failures and
are re-raised. The requester never retries.
"""

from __future__ import annotations

import functools
import logging
import socket
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable

import httpx

from hbase_rest.balancing.endpoint import format_host
from hbase_rest.errors import InvalidArgumentError, RequesterClosedError, TransportError
from hbase_rest.requester.options import RequestOptions
from hbase_rest.requester.response import Response

if TYPE_CHECKING:
    from hbase_rest.balancing.endpoint import Endpoint
    from hbase_rest.balancing.load_balancer import RoundRobinLoadBalancer

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

ClientFactory = Callable[[RequestOptions], httpx.AsyncClient]


def create_http_client(options: RequestOptions) -> httpx.AsyncClient:
    """Default transport factory.

    Applies the keep-alive and socket tuning from *options*. Timeout, headers
    and auth are set per request by the Requester.
    """
    socket_options: list[tuple[int, int, int]] = []
    if options.tcp_nodelay:
        socket_options.append((socket.IPPROTO_TCP, socket.TCP_NODELAY, 1))
    if options.receive_buffer_size:
        socket_options.append((socket.SOL_SOCKET, socket.SO_RCVBUF, options.receive_buffer_size))
    if options.send_buffer_size:
        socket_options.append((socket.SOL_SOCKET, socket.SO_SNDBUF, options.send_buffer_size))

    limits = httpx.Limits() if options.keep_alive else httpx.Limits(max_keepalive_connections=0)
    transport = httpx.AsyncHTTPTransport(limits=limits, socket_options=socket_options or None)

    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(options.timeout_seconds),
        follow_redirects=False,
    )


class Requester:
    """Issues requests through a shared HTTP client against balanced endpoints.

    Parameters
    ----------
    balancer:
        Source of endpoints and sink for request outcomes.
    options:
        Transport options; validated on construction. Timeout, ``Accept``
        and static headers are applied to every request, whichever client
        the factory builds.
    client_factory:
        Builds the ``httpx.AsyncClient`` on first use. Defaults to
        ``create_http_client``; tests inject one backed by ``httpx.MockTransport``.
    auth:
        Optional httpx auth (e.g. ``httpx.BasicAuth``) sent with every request.
    """

    def __init__(
        self,
        balancer: RoundRobinLoadBalancer,
        options: RequestOptions | None = None,
        client_factory: ClientFactory | None = None,
        auth: httpx.Auth | None = None,
    ) -> None:
        self._balancer = balancer
        self._options = options or RequestOptions()
        self._options.ensure_valid()
        self._client_factory = client_factory or create_http_client
        self._auth = auth
        self._client: httpx.AsyncClient | None = None
        self._closed = False

    @property
    def balancer(self) -> RoundRobinLoadBalancer:
        return self._balancer

    @property
    def options(self) -> RequestOptions:
        return self._options

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(
        self,
        path: str,
        query: str | None = None,
        method: str = "GET",
        body: bytes | None = None,
    ) -> Response:
        """Perform one exchange and report its outcome to the balancer.

        Raises
        ------
        NoAvailableEndpointError
            Every endpoint is currently ignored; nothing is sent.
        TransportError
            The exchange did not complete. The endpoint is recorded as failed.
            The same applies to a failure while the returned body is read.
        """
        if self._closed:
            raise RequesterClosedError()
        if path is None:
            raise InvalidArgumentError("Argument path must not be None", argument="path")
        method = method.upper()
        if method not in HTTP_METHODS:
            raise InvalidArgumentError(f"Unsupported HTTP method '{method}'", method=method)

        endpoint = self._balancer.get_endpoint()
        url = self.build_url(endpoint, path, query)
        request_id = str(uuid.uuid4())
        log_context = {"request_id": request_id, "endpoint": endpoint.uri, "url": url, "method": method}

        client = self._get_client()
        started = time.perf_counter()
        logger.debug("Issuing request %s to %s", request_id, url, extra=log_context)

        try:
            request = client.build_request(
                method,
                url,
                content=body,
                headers=self._request_headers(request_id, body is not None),
                timeout=httpx.Timeout(self._options.timeout_seconds),
            )
            http_response = await client.send(
                request,
                stream=True,
                auth=self._auth if self._auth is not None else httpx.USE_CLIENT_DEFAULT,
                follow_redirects=False,
            )
        except httpx.TransportError as exc:
            raise self._transport_failure(exc, endpoint, url, request_id, log_context) from exc
        except Exception as exc:
            self._balancer.record_failure(endpoint)
            logger.warning(
                "Request %s to %s raised %s",
                request_id,
                url,
                exc.__class__.__name__,
                extra={**log_context, "error_reason": str(exc)},
            )
            raise

        latency = time.perf_counter() - started
        self._balancer.record_success(endpoint)
        logger.debug(
            "Request %s to %s completed with %d",
            request_id,
            url,
            http_response.status_code,
            extra={
                **log_context,
                "status_code": http_response.status_code,
                "latency_ms": round(latency * 1000.0, 3),
            },
        )
        return Response(
            http_response,
            latency,
            endpoint,
            request_id,
            on_body_failure=functools.partial(
                self._transport_failure,
                endpoint=endpoint,
                url=url,
                request_id=request_id,
                log_context=log_context,
            ),
        )

    def _request_headers(self, request_id: str, has_body: bool) -> dict[str, str]:
        headers = {"Accept": self._options.content_type, **self._options.additional_headers}
        if not self._options.keep_alive:
            headers["Connection"] = "close"
        if has_body:
            headers["Content-Type"] = self._options.content_type
        headers["X-Request-ID"] = request_id
        return headers

    def _transport_failure(
        self,
        exc: httpx.TransportError,
        endpoint: Endpoint,
        url: str,
        request_id: str,
        log_context: dict[str, Any],
    ) -> TransportError:
        """Record *endpoint* as failed and build the error to raise."""
        self._balancer.record_failure(endpoint)
        logger.warning(
            "Request %s to %s failed: %s",
            request_id,
            url,
            exc.__class__.__name__,
            extra={**log_context, "error_reason": str(exc)},
        )
        return TransportError(
            f"Request to {url} failed: {exc.__class__.__name__}",
            endpoint=endpoint,
            url=url,
            request_id=request_id,
        )

    def build_url(self, endpoint: Endpoint, path: str, query: str | None = None) -> str:
        """Absolute target URL for *path* on *endpoint*.

        The host is replaced by ``alternative_host`` when configured and the
        path is prefixed with ``alternative_endpoint``.
        """
        host = format_host(self._options.alternative_host or endpoint.host)
        segments = [
            s for s in (self._options.alternative_endpoint.strip("/"), path.lstrip("/")) if s
        ]
        url = f"{endpoint.scheme}://{host}:{endpoint.port}/" + "/".join(segments)
        if query:
            url = f"{url}?{query}"
        return url

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._client_factory(self._options)
        return self._client

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Release the transport. Calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def __aenter__(self) -> Requester:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
