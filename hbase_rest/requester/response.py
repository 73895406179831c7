"""Response envelope returned by the Requester."""

from __future__ import annotations

from typing import TYPE_CHECKING, AsyncIterator, Callable

import httpx

from hbase_rest.errors import TransportError

if TYPE_CHECKING:
    from hbase_rest.balancing.endpoint import Endpoint

BodyFailureHandler = Callable[[httpx.TransportError], TransportError]


class Response:
    """Normalized result of one HTTP exchange.

    The body is not read until the caller asks for it. Use the response as an
    async context manager (or call ``aclose``) to release the connection.
    A transport failure while reading the body is passed to *on_body_failure*
    and surfaces as a ``TransportError``.
    """

    def __init__(
        self,
        http_response: httpx.Response,
        latency: float,
        endpoint: Endpoint,
        request_id: str,
        on_body_failure: BodyFailureHandler | None = None,
    ) -> None:
        self._http_response = http_response
        self._on_body_failure = on_body_failure
        self.latency = latency
        self.endpoint = endpoint
        self.request_id = request_id

    @property
    def status_code(self) -> int:
        return self._http_response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._http_response.headers

    @property
    def url(self) -> str:
        return str(self._http_response.request.url)

    @property
    def latency_ms(self) -> float:
        return self.latency * 1000.0

    @property
    def is_success(self) -> bool:
        return self._http_response.is_success

    async def aread(self) -> bytes:
        """Read and return the full body."""
        try:
            return await self._http_response.aread()
        except httpx.TransportError as exc:
            raise self._body_failure(exc) from exc

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._http_response.aiter_bytes():
                yield chunk
        except httpx.TransportError as exc:
            raise self._body_failure(exc) from exc

    async def text(self) -> str:
        await self.aread()
        return self._http_response.text

    async def aclose(self) -> None:
        await self._http_response.aclose()

    def _body_failure(self, exc: httpx.TransportError) -> TransportError:
        if self._on_body_failure is not None:
            return self._on_body_failure(exc)
        return TransportError(
            f"Reading response body from {self.url} failed: {exc.__class__.__name__}",
            endpoint=self.endpoint,
            url=self.url,
            request_id=self.request_id,
        )

    async def __aenter__(self) -> Response:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.endpoint} {self.latency_ms:.1f}ms>"
