"""Error hierarchy and argument guards for the Stargate client.

All client-specific errors extend HBaseRestError. Each subclass carries a
default message; callers may override it and attach structured details as
keyword arguments, which are kept on ``exc.details`` for logging.
"""

from __future__ import annotations

from typing import Any, Iterable


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class HBaseRestError(Exception):
    """Base error for all client-specific errors."""

    message: str = "HBase REST client error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class NoAvailableEndpointError(HBaseRestError):
    """Every endpoint in the pool is currently ignored."""

    message = "No endpoints available"


class TransportError(HBaseRestError):
    """Connection-level failure (refused, DNS, timeout) during an HTTP exchange."""

    message = "Transport failure during HTTP exchange"

    @property
    def endpoint(self) -> Any:
        return self.details.get("endpoint")

    @property
    def url(self) -> str | None:
        return self.details.get("url")  # type: ignore[return-value]


class InvalidArgumentError(HBaseRestError, ValueError):
    """Malformed input to configuration, pool construction or an operation."""

    message = "Invalid argument"


class RequesterClosedError(HBaseRestError):
    """The requester's transport has already been released."""

    message = "Requester is closed"


class UnexpectedStatusError(HBaseRestError):
    """The gateway answered with a status code the operation does not accept."""

    message = "Unexpected response status"

    @property
    def status_code(self) -> int | None:
        return self.details.get("status_code")  # type: ignore[return-value]

    @property
    def body(self) -> str | None:
        return self.details.get("body")  # type: ignore[return-value]


class ScannerError(HBaseRestError):
    """A scanner could not be created or addressed."""

    message = "Scanner error"


# ---------------------------------------------------------------------------
# Argument guards
# ---------------------------------------------------------------------------


def argument_not_none(value: object, name: str) -> None:
    if value is None:
        raise InvalidArgumentError(f"Argument {name} must not be None", argument=name)


def argument_not_empty(value: str | Iterable[Any] | None, name: str) -> None:
    """Reject ``None`` and empty strings or collections."""
    argument_not_none(value, name)
    if isinstance(value, str):
        empty = value == ""
    else:
        empty = not any(True for _ in value)  # type: ignore[union-attr]
    if empty:
        raise InvalidArgumentError(f"Argument {name} must not be empty", argument=name)


def argument_not_negative(value: int | float, name: str) -> None:
    if value < 0:
        raise InvalidArgumentError(
            f"Argument {name} wasn't >= 0! Given: {value}", argument=name, value=value
        )
