"""Property tests for parse-with-default setting lookup."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from hbase_rest.config.settings import (
    DEFAULT_WORKER_REST_ENDPOINT_PORT,
    WORKER_REST_ENDPOINT_PORT_KEY,
    parse_setting,
    read_setting,
)


# Strings int() cannot parse
non_numeric = st.text(min_size=1, max_size=20, alphabet="abcdefghijklmnopqrstuvwxyz-_ ").filter(
    lambda s: s.strip() != ""
)

ports = st.integers(min_value=1, max_value=65535)


@settings(max_examples=100)
@given(raw=non_numeric, default=ports)
def test_unparsable_value_yields_default(raw: str, default: int) -> None:
    assert parse_setting(raw, int, default) == default


@settings(max_examples=100)
@given(port=ports)
def test_parsable_value_wins_over_default(port: int) -> None:
    assert parse_setting(str(port), int, DEFAULT_WORKER_REST_ENDPOINT_PORT) == port


@settings(max_examples=100)
@given(other=st.dictionaries(st.text(min_size=1, max_size=10), st.text(max_size=10), max_size=5))
def test_absent_key_yields_default(other: dict[str, str]) -> None:
    other.pop(WORKER_REST_ENDPOINT_PORT_KEY, None)
    assert (
        read_setting(other, WORKER_REST_ENDPOINT_PORT_KEY, int, DEFAULT_WORKER_REST_ENDPOINT_PORT)
        == DEFAULT_WORKER_REST_ENDPOINT_PORT
    )
