"""Pydantic Settings for the Stargate client.

All environment variables use the HBASE_REST_ prefix.
Example: HBASE_REST_BASE_URI=https://cluster.example.net/hbaserest/,
HBASE_REST_WORKER_REST_ENDPOINT_PORT=8090
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, TypeVar

from pydantic import Field
from pydantic_settings import BaseSettings

from hbase_rest.requester.options import RequestOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Named configuration keys (environment variable names)
WORKER_HOST_NAME_PREFIX_KEY = "HBASE_REST_WORKER_HOST_NAME_PREFIX"
WORKER_REST_ENDPOINT_PORT_KEY = "HBASE_REST_WORKER_REST_ENDPOINT_PORT"
REFRESH_INTERVAL_KEY = "HBASE_REST_REFRESH_INTERVAL_MS"

DEFAULT_WORKER_HOST_NAME_PREFIX = "workernode"
DEFAULT_WORKER_REST_ENDPOINT_PORT = 8090
DEFAULT_REFRESH_INTERVAL_MS = 10.0


class ClientSettings(BaseSettings):
    """Client configuration validated from environment variables."""

    # Gateway
    base_uri: str | None = None  # e.g. "https://cluster.example.net/hbaserest/"
    timeout_ms: int = Field(default=30000, ge=0)  # 0 disables the timeout
    alternative_host: str | None = None
    alternative_endpoint: str = ""  # Base-path prefix joined before every path
    additional_headers: dict[str, str] = {}

    # Transport tuning
    keep_alive: bool = True
    tcp_nodelay: bool = True
    receive_buffer_size: int | None = Field(default=None, ge=0)
    send_buffer_size: int | None = Field(default=None, ge=0)

    # Worker node naming for virtual network deployments
    worker_host_name_prefix: str = DEFAULT_WORKER_HOST_NAME_PREFIX
    worker_rest_endpoint_port: int = Field(
        default=DEFAULT_WORKER_REST_ENDPOINT_PORT, ge=1, le=65535
    )

    # Failed endpoint cooldown
    refresh_interval_ms: float = Field(default=DEFAULT_REFRESH_INTERVAL_MS, ge=0, allow_inf_nan=False)

    # Retry policy applied by the client around each operation
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_backoff_base_seconds: float = Field(default=0.5, ge=0, allow_inf_nan=False)

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {"env_prefix": "HBASE_REST_"}

    def request_options(self, content_type: str = "application/x-protobuf") -> RequestOptions:
        """Project the transport-related settings onto a RequestOptions."""
        return RequestOptions(
            timeout_ms=self.timeout_ms,
            alternative_host=self.alternative_host,
            alternative_endpoint=self.alternative_endpoint,
            additional_headers=dict(self.additional_headers),
            keep_alive=self.keep_alive,
            tcp_nodelay=self.tcp_nodelay,
            receive_buffer_size=self.receive_buffer_size,
            send_buffer_size=self.send_buffer_size,
            content_type=content_type,
        )


# ---------------------------------------------------------------------------
# Parse-with-default helpers
# ---------------------------------------------------------------------------


def parse_setting(raw: object, parser: Callable[[object], T], default: T) -> T:
    """Parse *raw* with *parser*, falling back to *default*.

    ``None`` and values the parser rejects (``ValueError``/``TypeError``)
    yield the default. No ambient state is consulted.
    """
    if raw is None:
        return default
    try:
        return parser(raw)
    except (ValueError, TypeError) as exc:
        logger.warning("Could not parse setting value %r (%s), using default %r", raw, exc, default)
        return default


def read_setting(
    source: Mapping[str, object],
    key: str,
    parser: Callable[[object], T],
    default: T,
) -> T:
    """Look *key* up in *source* and parse it, returning *default* when absent."""
    return parse_setting(source.get(key), parser, default)
