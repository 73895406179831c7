"""Endpoint data model for the load balancer."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from hbase_rest.errors import InvalidArgumentError

_DEFAULT_PORTS = {"http": 80, "https": 443}


def format_host(host: str) -> str:
    """Bracket IPv6 literals for use in a URL authority."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


@dataclass(frozen=True)
class Endpoint:
    """One backend node's address. Equality is structural."""

    scheme: str
    host: str
    port: int

    @classmethod
    def parse(cls, uri: str) -> Endpoint:
        """Normalize a URI string (``http://host:port/...``) into an Endpoint.

        The scheme defaults to ``http`` and the port to the scheme's default.
        Any path or query on *uri* is dropped.
        """
        if not uri or not uri.strip():
            raise InvalidArgumentError("Endpoint URI must not be empty", uri=uri)

        raw = uri.strip()
        if "://" not in raw:
            raw = f"http://{raw}"
        parsed = urlparse(raw)

        scheme = parsed.scheme.lower()
        if scheme not in _DEFAULT_PORTS:
            raise InvalidArgumentError(f"Unsupported endpoint scheme '{scheme}'", uri=uri)
        if not parsed.hostname:
            raise InvalidArgumentError(f"Endpoint URI '{uri}' has no host", uri=uri)

        try:
            port = parsed.port
        except ValueError as exc:
            raise InvalidArgumentError(f"Endpoint URI '{uri}' has an invalid port", uri=uri) from exc

        return cls(
            scheme=scheme,
            host=parsed.hostname.lower(),
            port=port if port is not None else _DEFAULT_PORTS[scheme],
        )

    @property
    def uri(self) -> str:
        return f"{self.scheme}://{format_host(self.host)}:{self.port}/"

    def __str__(self) -> str:
        return self.uri
