"""Handle to a server-side scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping
from urllib.parse import urlparse

from hbase_rest.errors import argument_not_empty, argument_not_none


@dataclass(frozen=True)
class ScannerInformation:
    """Location and table of a scanner returned by ``create_scanner``.

    ``headers`` keeps the creation response headers, which callers can use
    for sticky routing of follow-up scanner calls.
    """

    location: str
    table_name: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        argument_not_empty(self.location, "location")
        argument_not_empty(self.table_name, "table_name")
        argument_not_none(self.headers, "headers")

    @property
    def scanner_id(self) -> str:
        """Last path segment of the location."""
        return urlparse(self.location).path.rstrip("/").rsplit("/", 1)[-1]
