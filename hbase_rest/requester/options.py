"""Per-requester transport options."""

from __future__ import annotations

from pydantic import BaseModel

from hbase_rest.errors import argument_not_negative


class RequestOptions(BaseModel):
    """Options applied to every call a Requester issues."""

    timeout_ms: int = 30000
    alternative_host: str | None = None
    alternative_endpoint: str = ""
    additional_headers: dict[str, str] = {}
    keep_alive: bool = True
    tcp_nodelay: bool = True
    receive_buffer_size: int | None = None
    send_buffer_size: int | None = None
    content_type: str = "application/x-protobuf"

    def ensure_valid(self) -> None:
        """Raise InvalidArgumentError for negative timeout or buffer sizes."""
        argument_not_negative(self.timeout_ms, "timeout_ms")
        if self.receive_buffer_size is not None:
            argument_not_negative(self.receive_buffer_size, "receive_buffer_size")
        if self.send_buffer_size is not None:
            argument_not_negative(self.send_buffer_size, "send_buffer_size")

    @property
    def timeout_seconds(self) -> float | None:
        """Timeout as httpx expects it; ``None`` when disabled."""
        if self.timeout_ms <= 0:
            return None
        return self.timeout_ms / 1000.0
