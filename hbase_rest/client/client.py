"""Stargate client: table, cell, scanner and cluster operations.

Each operation builds an endpoint-relative path, encodes its payload with the
configured codec, sends it through the Requester (inside the retry policy)
and interprets the status code:

- reads return ``None`` on 404
- writes raise ``UnexpectedStatusError`` for any status they do not accept
- check-and-put / check-and-delete return ``False`` on 304
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar
from urllib.parse import quote, urlparse

from pydantic import BaseModel

from hbase_rest.balancing.endpoint import Endpoint
from hbase_rest.balancing.load_balancer import RoundRobinLoadBalancer
from hbase_rest.balancing.policies import NullIgnorePolicy
from hbase_rest.client.codec import JsonCodec, MessageCodec
from hbase_rest.client.credentials import ClusterCredentials
from hbase_rest.client.models import (
    Cell,
    CellSet,
    Row,
    Scanner,
    StorageClusterStatus,
    TableInfo,
    TableList,
    TableSchema,
    Version,
)
from hbase_rest.client.retry import RetryPolicy
from hbase_rest.client.scanner import ScannerInformation
from hbase_rest.config.cluster import load_cluster_config
from hbase_rest.config.settings import ClientSettings
from hbase_rest.errors import (
    InvalidArgumentError,
    ScannerError,
    UnexpectedStatusError,
    argument_not_empty,
    argument_not_none,
)
from hbase_rest.requester.requester import ClientFactory, Requester
from hbase_rest.requester.response import Response

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

CHECK_AND_PUT_QUERY = "check=put"
CHECK_AND_DELETE_QUERY = "check=delete"
# Cells stored through the batch endpoint carry their own row keys
BATCH_ROW_KEY = "somefalsekey"


def _segment(value: str) -> str:
    return quote(value, safe=":")


class HBaseClient:
    """Async client for the HBase REST (Stargate) gateway.

    Parameters
    ----------
    requester:
        Performs the load-balanced exchanges; owned by the client.
    codec:
        Message serialization (default ``JsonCodec``). Its content type should
        match the requester's ``content_type`` option.
    retry_policy:
        Applied around every operation (default: 3 attempts).
    """

    def __init__(
        self,
        requester: Requester,
        codec: MessageCodec | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        argument_not_none(requester, "requester")
        self._requester = requester
        self._codec = codec or JsonCodec()
        self._retry_policy = retry_policy or RetryPolicy()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def for_cluster(
        cls,
        settings: ClientSettings | None = None,
        credentials: ClusterCredentials | None = None,
        codec: MessageCodec | None = None,
        client_factory: ClientFactory | None = None,
    ) -> HBaseClient:
        """Client talking to a single gateway URI.

        The URI comes from *credentials* or ``settings.base_uri``; its path
        becomes the base-path prefix unless ``alternative_endpoint`` is set.
        The gateway is never ignored after failures.
        """
        settings = settings or ClientSettings()
        base_uri = credentials.cluster_uri if credentials else settings.base_uri
        if not base_uri:
            raise InvalidArgumentError("A base URI is required to reach the gateway")

        endpoint = Endpoint.parse(base_uri)
        balancer = RoundRobinLoadBalancer([endpoint], ignore_policy=NullIgnorePolicy(), settings=settings)
        base_path = settings.alternative_endpoint or urlparse(base_uri).path
        return cls._assemble(
            balancer,
            settings,
            codec,
            client_factory,
            credentials,
            alternative_endpoint=base_path,
        )

    @classmethod
    def for_virtual_network(
        cls,
        count: int,
        domain_suffix: str | None = None,
        settings: ClientSettings | None = None,
        codec: MessageCodec | None = None,
        client_factory: ClientFactory | None = None,
    ) -> HBaseClient:
        """Client balancing over ``count`` worker nodes inside the cluster network."""
        settings = settings or ClientSettings()
        balancer = RoundRobinLoadBalancer.from_worker_count(count, domain_suffix, settings)
        return cls._assemble(balancer, settings, codec, client_factory)

    @classmethod
    def from_cluster_file(
        cls,
        path: str | Path,
        settings: ClientSettings | None = None,
        codec: MessageCodec | None = None,
        client_factory: ClientFactory | None = None,
    ) -> HBaseClient:
        """Client balancing over the pool described by a cluster YAML file."""
        config = load_cluster_config(path, settings)
        balancer = RoundRobinLoadBalancer.from_cluster_config(config)
        return cls._assemble(balancer, config.settings, codec, client_factory)

    @classmethod
    def _assemble(
        cls,
        balancer: RoundRobinLoadBalancer,
        settings: ClientSettings,
        codec: MessageCodec | None,
        client_factory: ClientFactory | None,
        credentials: ClusterCredentials | None = None,
        **option_overrides: Any,
    ) -> HBaseClient:
        codec = codec or JsonCodec()
        options = settings.request_options(content_type=codec.content_type)
        if option_overrides:
            options = options.model_copy(update=option_overrides)
        auth = credentials.basic_auth() if credentials else None
        requester = Requester(balancer, options, client_factory, auth=auth)
        retry_policy = RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            backoff_base_seconds=settings.retry_backoff_base_seconds,
        )
        return cls(requester, codec, retry_policy)

    @property
    def requester(self) -> Requester:
        return self._requester

    # ------------------------------------------------------------------
    # Cluster / table information
    # ------------------------------------------------------------------

    async def get_version(self) -> Version | None:
        return await self._get_and_decode("version", Version)

    async def get_storage_cluster_status(self) -> StorageClusterStatus | None:
        return await self._get_and_decode("/status/cluster", StorageClusterStatus)

    async def list_tables(self) -> TableList | None:
        return await self._get_and_decode("", TableList)

    async def get_table_info(self, table: str) -> TableInfo | None:
        argument_not_empty(table, "table")
        return await self._get_and_decode(f"{_segment(table)}/regions", TableInfo)

    async def get_table_schema(self, table: str) -> TableSchema | None:
        argument_not_empty(table, "table")
        return await self._get_and_decode(f"{_segment(table)}/schema", TableSchema)

    # ------------------------------------------------------------------
    # Schema management
    # ------------------------------------------------------------------

    async def create_table(self, schema: TableSchema) -> bool:
        """Create a table or fully replace its schema.

        Returns ``True`` if the table was created, ``False`` if it already existed.
        """
        argument_not_none(schema, "schema")
        if not schema.name:
            raise InvalidArgumentError("schema.name was either None or empty!", argument="schema")

        async def handle(response: Response) -> bool:
            if response.status_code == 201:
                return True
            if response.status_code == 200:
                return False
            raise await self._unexpected(response, f"Couldn't create table {schema.name}", (200, 201))

        return await self._execute("PUT", f"{_segment(schema.name)}/schema", handle, message=schema)

    async def modify_table_schema(self, table: str, schema: TableSchema) -> None:
        argument_not_empty(table, "table")
        argument_not_none(schema, "schema")
        await self._execute(
            "POST",
            f"{_segment(table)}/schema",
            self._expect((200, 201), f"Couldn't modify table schema {table}"),
            message=schema,
        )

    async def delete_table(self, table: str) -> None:
        argument_not_empty(table, "table")
        await self._execute(
            "DELETE", f"{_segment(table)}/schema", self._expect((200,), f"Couldn't delete table {table}")
        )

    # ------------------------------------------------------------------
    # Cells
    # ------------------------------------------------------------------

    async def get_cells(
        self,
        table: str,
        row_key: str,
        column: str | None = None,
        versions: int | None = None,
    ) -> CellSet | None:
        argument_not_empty(table, "table")
        argument_not_none(row_key, "row_key")

        path = f"{_segment(table)}/{_segment(row_key)}"
        if column is not None:
            path += f"/{_segment(column)}"
        query = f"v={versions}" if versions is not None else None
        return await self._get_and_decode(path, CellSet, query)

    async def get_cells_multi(self, table: str, row_keys: list[str]) -> CellSet | None:
        argument_not_empty(table, "table")
        argument_not_empty(row_keys, "row_keys")

        query = "&".join(f"row={_segment(key)}" for key in row_keys)
        return await self._get_and_decode(f"{_segment(table)}/multiget", CellSet, query)

    async def store_cells(self, table: str, cells: CellSet) -> None:
        argument_not_empty(table, "table")
        argument_not_none(cells, "cells")
        await self._store(table, cells)

    async def check_and_put(self, table: str, row: Row, cell_to_check: Cell) -> bool:
        """Atomically store *row* if *cell_to_check* matches the current value.

        Returns ``False`` if the check failed.
        """
        argument_not_empty(table, "table")
        argument_not_none(row, "row")
        argument_not_none(cell_to_check, "cell_to_check")

        checked_row = Row(key=row.key, cells=[*row.cells, cell_to_check])
        return await self._store(
            table, CellSet(rows=[checked_row]), row.key.decode("utf-8"), CHECK_AND_PUT_QUERY
        )

    async def check_and_delete(
        self,
        table: str,
        cell_to_check: Cell,
        row_to_delete: Row | None = None,
    ) -> bool:
        """Atomically delete if the checked cell matches the current value.

        Without *row_to_delete* the row addressed by ``cell_to_check.row`` is
        checked. With several cells in *row_to_delete* one check-and-delete is
        issued per cell and the result is ``True`` only if all succeeded.
        """
        argument_not_empty(table, "table")
        argument_not_none(cell_to_check, "cell_to_check")

        def check_and_delete_one(cell: Cell, key: bytes) -> Awaitable[bool]:
            cell_set = CellSet(rows=[Row(key=key, cells=[cell])])
            return self._store(table, cell_set, key.decode("utf-8"), CHECK_AND_DELETE_QUERY)

        if row_to_delete is None:
            if cell_to_check.row is None:
                raise InvalidArgumentError(
                    "cell_to_check.row is required when row_to_delete is not given",
                    argument="cell_to_check",
                )
            return await check_and_delete_one(cell_to_check, cell_to_check.row)

        argument_not_empty(row_to_delete.cells, "row_to_delete")
        if len(row_to_delete.cells) == 1:
            return await check_and_delete_one(row_to_delete.cells[0], row_to_delete.key)

        results = await asyncio.gather(
            *(check_and_delete_one(cell, row_to_delete.key) for cell in row_to_delete.cells)
        )
        return all(results)

    async def delete_cells(
        self,
        table: str,
        row_key: str,
        column_family: str | None = None,
        timestamp: int | None = None,
    ) -> None:
        """Delete a whole row, or one column family's cells at *timestamp*."""
        argument_not_empty(table, "table")
        argument_not_empty(row_key, "row_key")

        path = _segment(row_key)
        if column_family is not None:
            argument_not_empty(column_family, "column_family")
            argument_not_none(timestamp, "timestamp")
            path = f"{path}/{_segment(column_family)}/{timestamp}"

        await self._execute(
            "DELETE",
            f"{_segment(table)}/{path}",
            self._expect((200,), f"Couldn't delete row {path} associated with {table} table"),
        )

    # ------------------------------------------------------------------
    # Scanners
    # ------------------------------------------------------------------

    async def create_scanner(self, table: str, scanner: Scanner) -> ScannerInformation:
        argument_not_empty(table, "table")
        argument_not_none(scanner, "scanner")

        async def handle(response: Response) -> ScannerInformation:
            if response.status_code != 201:
                raise await self._unexpected(
                    response, f"Couldn't create a scanner for table {table}", (201,)
                )
            location = response.headers.get("location")
            if not location:
                raise ScannerError("Couldn't find header 'Location' in the response!", table=table)
            return ScannerInformation(location, table, dict(response.headers))

        return await self._execute("POST", f"{_segment(table)}/scanner", handle, message=scanner)

    async def scanner_get_next(self, scanner_info: ScannerInformation) -> CellSet | None:
        """Next batch of cells, or ``None`` once the scanner is exhausted."""
        argument_not_none(scanner_info, "scanner_info")

        async def handle(response: Response) -> CellSet | None:
            if response.status_code != 200:
                return None
            return self._codec.decode(CellSet, await response.aread())

        return await self._execute(
            "GET", f"{_segment(scanner_info.table_name)}/scanner/{scanner_info.scanner_id}", handle
        )

    async def delete_scanner(self, table: str, scanner_info: ScannerInformation) -> None:
        argument_not_empty(table, "table")
        argument_not_none(scanner_info, "scanner_info")
        await self._execute(
            "DELETE",
            f"{_segment(table)}/scanner/{scanner_info.scanner_id}",
            self._expect(
                (200,),
                f"Couldn't delete scanner {scanner_info.scanner_id} associated with {table} table",
            ),
        )

    async def stateless_scan(
        self,
        table: str,
        row_prefix: str | None = None,
        parameters: str | None = None,
    ) -> CellSet | None:
        """Scan rows starting with *row_prefix* without a server-side scanner."""
        argument_not_empty(table, "table")

        async def handle(response: Response) -> CellSet | None:
            if response.status_code != 200:
                return None
            return self._codec.decode(CellSet, await response.aread())

        prefix = _segment(row_prefix) if row_prefix else ""
        return await self._execute("GET", f"{_segment(table)}/{prefix}*", handle, query=parameters)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _execute(
        self,
        method: str,
        path: str,
        handle: Callable[[Response], Awaitable[T]],
        query: str | None = None,
        message: BaseModel | None = None,
    ) -> T:
        body = self._codec.encode(message) if message is not None else None

        async def attempt() -> T:
            async with await self._requester.send(path, query, method, body) as response:
                return await handle(response)

        return await self._retry_policy.execute(attempt, f"{method} {path}")

    async def _get_and_decode(self, path: str, model_type: type[M], query: str | None = None) -> M | None:
        async def handle(response: Response) -> M | None:
            if response.status_code == 404:
                return None
            if not response.is_success:
                raise await self._unexpected(response, f"GET {path} failed", (200,))
            return self._codec.decode(model_type, await response.aread())

        return await self._execute("GET", path, handle, query)

    async def _store(
        self,
        table: str,
        cells: CellSet,
        row_key: str | None = None,
        query: str | None = None,
    ) -> bool:
        path = f"{_segment(table)}/{_segment(row_key) if row_key is not None else BATCH_ROW_KEY}"

        async def handle(response: Response) -> bool:
            if response.status_code == 304:
                return False
            if response.status_code == 200:
                return True
            raise await self._unexpected(response, f"Couldn't insert into table {table}", (200,))

        return await self._execute("PUT", path, handle, query=query, message=cells)

    def _expect(
        self, statuses: tuple[int, ...], action: str
    ) -> Callable[[Response], Awaitable[None]]:
        async def handle(response: Response) -> None:
            if response.status_code not in statuses:
                raise await self._unexpected(response, action, statuses)

        return handle

    @staticmethod
    async def _unexpected(
        response: Response, action: str, expected: tuple[int, ...]
    ) -> UnexpectedStatusError:
        body = await response.text()
        logger.warning(
            "%s: status %d",
            action,
            response.status_code,
            extra={"request_id": response.request_id, "status_code": response.status_code},
        )
        return UnexpectedStatusError(
            f"{action}! Response code was: {response.status_code}, "
            f"expected {' or '.join(str(s) for s in expected)}! Response body was: {body}",
            status_code=response.status_code,
            body=body,
        )

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._requester.aclose()

    async def __aenter__(self) -> HBaseClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
