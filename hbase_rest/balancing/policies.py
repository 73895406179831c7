"""Endpoint ignore policies used by the load balancer.

A policy decides whether an endpoint should currently be skipped during
selection and is told the outcome of every request. Policies compose: the
balancer usually runs a failure-expiry policy, optionally OR-ed with a static
blacklist.

Failure expiry state machine (per endpoint):
- Available → Failed: a failure outcome is reported
- Failed → Available: a success outcome is reported, or the refresh
  interval has elapsed since the failure (checked lazily on selection)
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from hbase_rest.balancing.endpoint import Endpoint

logger = logging.getLogger(__name__)


class EndpointAccessResult(str, Enum):
    """Outcome of one request against an endpoint."""

    SUCCESS = "success"
    FAILURE = "failure"


class EndpointState(str, Enum):
    """Health state tracked per endpoint."""

    AVAILABLE = "available"
    FAILED = "failed"


class EndpointIgnorePolicy(ABC):
    """Capability set every ignore policy provides."""

    @abstractmethod
    def should_ignore_endpoint(self, endpoint: Endpoint) -> bool:
        """Return ``True`` if *endpoint* must be skipped right now."""
        ...

    def on_endpoint_access_completion(
        self, endpoint: Endpoint, result: EndpointAccessResult
    ) -> None:
        """Hook invoked with the outcome of every request."""

    def refresh_ignored_list(self) -> None:
        """Reinstate whatever the policy no longer needs to ignore."""


class NullIgnorePolicy(EndpointIgnorePolicy):
    """Never ignores anything."""

    def should_ignore_endpoint(self, endpoint: Endpoint) -> bool:
        return False


@dataclass
class EndpointHealthRecord:
    """Mutable health state for a single endpoint, guarded by its own lock."""

    state: EndpointState = EndpointState.AVAILABLE
    last_transition: float = 0.0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class IgnoreFailedEndpointsPolicy(EndpointIgnorePolicy):
    """Skips endpoints that recently failed until a cooldown has elapsed.

    Args:
        endpoints: The pool. One record is created per endpoint; the record
            map is never resized afterwards.
        refresh_interval_seconds: Minimum time a failed endpoint stays ignored.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        endpoints: Iterable[Endpoint],
        refresh_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresh_interval = refresh_interval_seconds
        self._clock = clock
        now = clock()
        self._endpoints: dict[Endpoint, EndpointHealthRecord] = {
            endpoint: EndpointHealthRecord(last_transition=now) for endpoint in endpoints
        }

    @property
    def refresh_interval_seconds(self) -> float:
        return self._refresh_interval

    def should_ignore_endpoint(self, endpoint: Endpoint) -> bool:
        """Ignore failed endpoints whose cooldown has not elapsed.

        An expired failure is reinstated as a side effect of the check.
        """
        record = self._endpoints.get(endpoint)
        if record is None:
            return False

        with record.lock:
            if record.state == EndpointState.AVAILABLE:
                return False
            if self._expired(record):
                self._reinstate(endpoint, record)
                return False
            return True

    def on_endpoint_access_completion(
        self, endpoint: Endpoint, result: EndpointAccessResult
    ) -> None:
        record = self._endpoints.get(endpoint)
        if record is None:
            logger.debug("Ignoring outcome %s for endpoint outside the pool: %s", result.value, endpoint)
            return

        with record.lock:
            if result == EndpointAccessResult.FAILURE:
                if record.state == EndpointState.AVAILABLE:
                    logger.warning("Endpoint marked failed: %s", endpoint)
                record.state = EndpointState.FAILED
                record.last_transition = self._clock()
            elif record.state == EndpointState.FAILED:
                record.state = EndpointState.AVAILABLE
                record.last_transition = self._clock()
                logger.info("Endpoint recovered: %s", endpoint)

    def refresh_ignored_list(self) -> None:
        """Reinstate every failed endpoint whose cooldown has elapsed."""
        for endpoint, record in self._endpoints.items():
            with record.lock:
                if record.state == EndpointState.FAILED and self._expired(record):
                    self._reinstate(endpoint, record)

    def get_state(self, endpoint: Endpoint) -> EndpointState | None:
        """Current state of *endpoint*, or ``None`` for endpoints outside the pool."""
        record = self._endpoints.get(endpoint)
        if record is None:
            return None
        with record.lock:
            return record.state

    def get_states(self) -> dict[Endpoint, EndpointState]:
        """Snapshot of every endpoint's state. Does not apply expiry."""
        states: dict[Endpoint, EndpointState] = {}
        for endpoint, record in self._endpoints.items():
            with record.lock:
                states[endpoint] = record.state
        return states

    def _expired(self, record: EndpointHealthRecord) -> bool:
        return self._clock() - record.last_transition >= self._refresh_interval

    def _reinstate(self, endpoint: Endpoint, record: EndpointHealthRecord) -> None:
        record.state = EndpointState.AVAILABLE
        record.last_transition = self._clock()
        logger.info("Endpoint cooldown elapsed, reinstated: %s", endpoint)


class IgnoreBlacklistedEndpointsPolicy(EndpointIgnorePolicy):
    """Static deny-list of endpoints that are always skipped."""

    def __init__(self, blacklisted: Iterable[Endpoint | str]) -> None:
        self._blacklisted = frozenset(
            e if isinstance(e, Endpoint) else Endpoint.parse(e) for e in blacklisted
        )

    @property
    def blacklisted(self) -> frozenset[Endpoint]:
        return self._blacklisted

    def should_ignore_endpoint(self, endpoint: Endpoint) -> bool:
        return endpoint in self._blacklisted


class CompositeIgnorePolicy(EndpointIgnorePolicy):
    """Ordered list of policies evaluated with logical OR.

    Outcome and refresh hooks are forwarded to every member.
    """

    def __init__(self, policies: Iterable[EndpointIgnorePolicy]) -> None:
        self._policies = tuple(policies)

    @property
    def policies(self) -> tuple[EndpointIgnorePolicy, ...]:
        return self._policies

    def should_ignore_endpoint(self, endpoint: Endpoint) -> bool:
        return any(policy.should_ignore_endpoint(endpoint) for policy in self._policies)

    def on_endpoint_access_completion(
        self, endpoint: Endpoint, result: EndpointAccessResult
    ) -> None:
        for policy in self._policies:
            policy.on_endpoint_access_completion(endpoint, result)

    def refresh_ignored_list(self) -> None:
        for policy in self._policies:
            policy.refresh_ignored_list()
