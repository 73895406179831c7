"""Stargate operations, message models and retry policies."""

from hbase_rest.client.client import HBaseClient
from hbase_rest.client.codec import JsonCodec, MessageCodec
from hbase_rest.client.credentials import ClusterCredentials
from hbase_rest.client.models import (
    Cell,
    CellSet,
    ColumnSchema,
    Node,
    Region,
    Row,
    Scanner,
    StorageClusterStatus,
    TableInfo,
    TableList,
    TableRef,
    TableSchema,
    Version,
)
from hbase_rest.client.retry import NoRetryPolicy, RetryPolicy
from hbase_rest.client.scanner import ScannerInformation

__all__ = [
    "Cell",
    "CellSet",
    "ClusterCredentials",
    "ColumnSchema",
    "HBaseClient",
    "JsonCodec",
    "MessageCodec",
    "Node",
    "NoRetryPolicy",
    "Region",
    "RetryPolicy",
    "Row",
    "Scanner",
    "ScannerInformation",
    "StorageClusterStatus",
    "TableInfo",
    "TableList",
    "TableRef",
    "TableSchema",
    "Version",
]
