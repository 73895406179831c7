"""Stargate message models.

Shaped after the gateway's JSON representation: byte fields (row keys,
columns, values) travel base64-encoded and several properties use the
gateway's capitalised names (``Row``, ``Cell``, ``$``, ``ColumnSchema``).
Models accept either those aliases or the Python field names.
"""

from __future__ import annotations

import base64
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, PlainValidator


def _decode_bytes(value: Any) -> bytes:
    """Bytes pass through; strings are the base64 wire form."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    raise ValueError(f"expected bytes or base64 string, got {type(value).__name__}")


WireBytes = Annotated[
    bytes,
    PlainValidator(_decode_bytes),
    PlainSerializer(lambda v: base64.b64encode(v).decode("ascii"), return_type=str, when_used="json"),
]


class StargateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


class Cell(StargateModel):
    """A single cell value. ``row`` is only used to address check-and-delete."""

    column: WireBytes
    data: WireBytes = Field(default=b"", alias="$")
    timestamp: int | None = None
    row: WireBytes | None = Field(default=None, exclude=True)


class Row(StargateModel):
    key: WireBytes
    cells: list[Cell] = Field(default_factory=list, alias="Cell")


class CellSet(StargateModel):
    rows: list[Row] = Field(default_factory=list, alias="Row")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class ColumnSchema(StargateModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    max_versions: int | None = Field(default=None, alias="VERSIONS")


class TableSchema(StargateModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    columns: list[ColumnSchema] = Field(default_factory=list, alias="ColumnSchema")


class TableRef(StargateModel):
    name: str


class TableList(StargateModel):
    tables: list[TableRef] = Field(default_factory=list, alias="table")

    @property
    def names(self) -> list[str]:
        return [t.name for t in self.tables]


# ---------------------------------------------------------------------------
# Cluster / table information
# ---------------------------------------------------------------------------


class Version(StargateModel):
    rest_version: str | None = Field(default=None, alias="REST")
    jvm_version: str | None = Field(default=None, alias="JVM")
    os_version: str | None = Field(default=None, alias="OS")
    server_version: str | None = Field(default=None, alias="Server")
    jersey_version: str | None = Field(default=None, alias="Jersey")


class Region(StargateModel):
    name: str
    id: int | None = None
    start_key: WireBytes = Field(default=b"", alias="startKey")
    end_key: WireBytes = Field(default=b"", alias="endKey")
    location: str | None = None


class TableInfo(StargateModel):
    name: str
    regions: list[Region] = Field(default_factory=list, alias="Region")


class Node(StargateModel):
    name: str
    start_code: int | None = Field(default=None, alias="startCode")
    requests: int = 0
    heap_size_mb: int | None = Field(default=None, alias="heapSizeMB")
    max_heap_size_mb: int | None = Field(default=None, alias="maxHeapSizeMB")
    regions: list[dict[str, Any]] = Field(default_factory=list, alias="Region")


class StorageClusterStatus(StargateModel):
    regions: int = 0
    requests: int = 0
    average_load: float = Field(default=0.0, alias="averageLoad")
    live_nodes: list[Node] = Field(default_factory=list, alias="LiveNodes")
    dead_nodes: list[str] = Field(default_factory=list, alias="DeadNodes")


# ---------------------------------------------------------------------------
# Scanners
# ---------------------------------------------------------------------------


class Scanner(StargateModel):
    """Server-side scanner settings."""

    batch: int | None = None
    start_row: WireBytes | None = Field(default=None, alias="startRow")
    end_row: WireBytes | None = Field(default=None, alias="endRow")
    columns: list[WireBytes] = Field(default_factory=list, alias="column")
    start_time: int | None = Field(default=None, alias="startTime")
    end_time: int | None = Field(default=None, alias="endTime")
    max_versions: int | None = Field(default=None, alias="maxVersions")
    caching: int | None = None
    filter: str | None = None
