"""Asyncio query execution."""

from collections.abc import AsyncIterator
from contextlib import nullcontext
from typing import Any, Optional, TypeVar, Union, overload

from sqlfill.core.cancellation import CancellationToken, raise_if_cancelled
from sqlfill.core.config import FillConfig, get_default_config
from sqlfill.core.connection import AsyncConnectionHandle, ConnectionState, ensure_closed_async, ensure_open_async
from sqlfill.core.result import AsyncQueryResult
from sqlfill.driver._common import (
    PreparedQuery,
    build_row,
    column_names,
    log_statement,
    prepare_query,
    resolve_async_handle,
    validate_request,
)
from sqlfill.exceptions import wrap_execution_errors
from sqlfill.parameters.patterns import MarkerPattern
from sqlfill.parameters.types import ParameterMap
from sqlfill.utils.logging import get_logger
from sqlfill.utils.schema import to_schema

__all__ = ("aiter_records", "execute_command_async", "execute_query_async")

logger = get_logger("driver.async")

SchemaT = TypeVar("SchemaT")


async def aiter_records(
    cursor: Any,
    hints: ParameterMap,
    cancellation: Optional[CancellationToken] = None,
    handle: Optional[AsyncConnectionHandle] = None,
) -> "AsyncIterator[Any]":
    """Fetch rows one at a time and yield them as records."""
    columns = column_names(cursor.description)
    if columns is None:
        return
    while True:
        raise_if_cancelled(cancellation)
        with handle.track(ConnectionState.FETCHING) if handle is not None else nullcontext():
            row = await cursor.fetchone()
        if row is None:
            return
        yield build_row(columns, row, hints)


async def _guard_rows(rows: "AsyncIterator[Any]", prepared: PreparedQuery) -> "AsyncIterator[Any]":
    with wrap_execution_errors(prepared.bound.sql, prepared.bound.display_parameters()):
        async for row in rows:
            yield row


async def _map_rows(rows: "AsyncIterator[Any]", schema_type: "type[Any]") -> "AsyncIterator[Any]":
    async for row in rows:
        mapped = to_schema(row, schema_type)
        if mapped is not None:
            yield mapped


async def _discard(handle: AsyncConnectionHandle, cursor: Any, close_connection: bool, config: FillConfig) -> None:
    if cursor is not None:
        try:
            await cursor.close()
        except Exception:
            logger.debug("Suppressed error while closing cursor", exc_info=True)
    if close_connection:
        try:
            await ensure_closed_async(handle, config=config)
        except Exception:
            logger.debug("Suppressed error while closing connection", exc_info=True)


@overload
async def execute_query_async(
    connection: Any,
    query: Optional[str],
    params: Any = ...,
    *,
    pattern: "Union[str, MarkerPattern, None]" = ...,
    close_connection: Optional[bool] = ...,
    cancellation: Optional[CancellationToken] = ...,
    schema_type: None = ...,
    config: Optional[FillConfig] = ...,
) -> "AsyncQueryResult[Any]": ...


@overload
async def execute_query_async(
    connection: Any,
    query: Optional[str],
    params: Any = ...,
    *,
    pattern: "Union[str, MarkerPattern, None]" = ...,
    close_connection: Optional[bool] = ...,
    cancellation: Optional[CancellationToken] = ...,
    schema_type: "type[SchemaT]",
    config: Optional[FillConfig] = ...,
) -> "AsyncQueryResult[SchemaT]": ...


async def execute_query_async(
    connection: Any,
    query: Optional[str],
    params: Any = None,
    *,
    pattern: "Union[str, MarkerPattern, None]" = None,
    close_connection: Optional[bool] = None,
    cancellation: Optional[CancellationToken] = None,
    schema_type: "Optional[type[Any]]" = None,
    config: Optional[FillConfig] = None,
) -> "AsyncQueryResult[Any]":
    """Execute a templated query on an asyncio connection and stream its rows.

    Accepts an :class:`~sqlfill.core.connection.AsyncConnectionHandle`, an
    ``aiosqlite`` connection, or a URL such as ``aiosqlite:///:memory:``.
    Everything else behaves as in :func:`~sqlfill.execute_query`.

    Returns:
        The streaming result. Dispose it, or use it as an async context manager.
    """
    query = validate_request(connection, query)
    config = config or get_default_config()
    handle, created = resolve_async_handle(connection)
    owns_connection = created if close_connection is None else close_connection

    cursor = None
    try:
        prepared = prepare_query(query, params, pattern=pattern, handle=handle, config=config)
        bound = prepared.bound
        await ensure_open_async(handle, cancellation, config=config)
        raise_if_cancelled(cancellation)
        with wrap_execution_errors(bound.sql, bound.display_parameters()):
            cursor = await handle.cursor()
            with handle.track(ConnectionState.EXECUTING):
                await cursor.execute(bound.sql, bound.bind_values())
        raise_if_cancelled(cancellation)
    except BaseException:
        await _discard(handle, cursor, owns_connection, config)
        raise

    log_statement(handle, bound)
    rows = _guard_rows(aiter_records(cursor, prepared.hints, cancellation, handle), prepared)
    if schema_type is not None:
        rows = _map_rows(rows, schema_type)
    return AsyncQueryResult(rows, cursor, handle, owns_connection=owns_connection, statement=bound, config=config)


async def execute_command_async(
    connection: Any,
    query: Optional[str],
    params: Any = None,
    *,
    pattern: "Union[str, MarkerPattern, None]" = None,
    close_connection: Optional[bool] = None,
    cancellation: Optional[CancellationToken] = None,
    config: Optional[FillConfig] = None,
) -> int:
    """Execute a templated statement for its side effects.

    Returns:
        Rows affected as reported by the driver, or -1 when unknown.
    """
    result = await execute_query_async(
        connection,
        query,
        params,
        pattern=pattern,
        close_connection=close_connection,
        cancellation=cancellation,
        config=config,
    )
    async with result:
        async for _ in result:
            pass
        return result.rowcount
