"""Blocking query execution."""

from collections.abc import Iterator
from contextlib import nullcontext
from typing import Any, Optional, TypeVar, Union, overload

from sqlfill.core.cancellation import CancellationToken, raise_if_cancelled
from sqlfill.core.config import FillConfig, get_default_config
from sqlfill.core.connection import ConnectionState, SyncConnectionHandle, ensure_closed, ensure_open
from sqlfill.core.result import QueryResult
from sqlfill.driver._common import (
    PreparedQuery,
    build_row,
    column_names,
    log_statement,
    prepare_query,
    resolve_sync_handle,
    validate_request,
)
from sqlfill.exceptions import wrap_execution_errors
from sqlfill.parameters.patterns import MarkerPattern
from sqlfill.parameters.types import ParameterMap
from sqlfill.utils.logging import get_logger
from sqlfill.utils.schema import to_schema

__all__ = ("execute_command", "execute_query", "iter_records")

logger = get_logger("driver.sync")

SchemaT = TypeVar("SchemaT")


def iter_records(
    cursor: Any,
    hints: ParameterMap,
    cancellation: Optional[CancellationToken] = None,
    handle: Optional[SyncConnectionHandle] = None,
) -> "Iterator[Any]":
    """Fetch rows one at a time and yield them as records.

    Nothing is yielded when the statement produced no result set. While a
    fetch is in flight ``handle`` reports :attr:`ConnectionState.FETCHING`.
    """
    columns = column_names(cursor.description)
    if columns is None:
        return
    while True:
        raise_if_cancelled(cancellation)
        with handle.track(ConnectionState.FETCHING) if handle is not None else nullcontext():
            row = cursor.fetchone()
        if row is None:
            return
        yield build_row(columns, row, hints)


def _guard_rows(rows: "Iterator[Any]", prepared: PreparedQuery) -> "Iterator[Any]":
    with wrap_execution_errors(prepared.bound.sql, prepared.bound.display_parameters()):
        yield from rows


def _map_rows(rows: "Iterator[Any]", schema_type: "type[Any]") -> "Iterator[Any]":
    for row in rows:
        mapped = to_schema(row, schema_type)
        if mapped is not None:
            yield mapped


def _discard(
    handle: SyncConnectionHandle, cursor: Any, close_connection: bool, config: FillConfig
) -> None:
    if cursor is not None:
        try:
            cursor.close()
        except Exception:
            logger.debug("Suppressed error while closing cursor", exc_info=True)
    if close_connection:
        try:
            ensure_closed(handle, config=config)
        except Exception:
            logger.debug("Suppressed error while closing connection", exc_info=True)


@overload
def execute_query(
    connection: Any,
    query: Optional[str],
    params: Any = ...,
    *,
    pattern: "Union[str, MarkerPattern, None]" = ...,
    close_connection: Optional[bool] = ...,
    cancellation: Optional[CancellationToken] = ...,
    schema_type: None = ...,
    provider: Optional[str] = ...,
    config: Optional[FillConfig] = ...,
) -> "QueryResult[Any]": ...


@overload
def execute_query(
    connection: Any,
    query: Optional[str],
    params: Any = ...,
    *,
    pattern: "Union[str, MarkerPattern, None]" = ...,
    close_connection: Optional[bool] = ...,
    cancellation: Optional[CancellationToken] = ...,
    schema_type: "type[SchemaT]",
    provider: Optional[str] = ...,
    config: Optional[FillConfig] = ...,
) -> "QueryResult[SchemaT]": ...


def execute_query(
    connection: Any,
    query: Optional[str],
    params: Any = None,
    *,
    pattern: "Union[str, MarkerPattern, None]" = None,
    close_connection: Optional[bool] = None,
    cancellation: Optional[CancellationToken] = None,
    schema_type: "Optional[type[Any]]" = None,
    provider: Optional[str] = None,
    config: Optional[FillConfig] = None,
) -> "QueryResult[Any]":
    """Execute a templated query and stream its rows.

    Placeholders are bound as provider parameters, never spliced as text.
    The connection is opened if needed. Rows are fetched lazily as the
    result is iterated.

    Args:
        connection: A connection handle, a ``sqlite3`` or other DB-API
            connection, or a URL such as ``sqlite:///:memory:``.
        query: SQL with placeholders and optional column type hints.
        params: A model, a :class:`~sqlfill.parameters.ParameterSource`, or a
            list of sources.
        pattern: Marker pattern for a bare model.
        close_connection: Close the connection when the result is disposed.
            Defaults to True for URLs and False otherwise.
        cancellation: Token checked at every suspension point.
        schema_type: Map each row to this type; rows that map to None are
            skipped.
        provider: Provider name for a plain DB-API connection, used to pick
            its placeholder syntax.
        config: Settings to use instead of the process-wide defaults.

    Raises:
        ImproperUsageError: ``connection`` or ``query`` is missing.
        QueryExecutionError: preparing or executing the query failed.
        QueryCancelledError: ``cancellation`` fired.

    Returns:
        The streaming result. Dispose it, or use it as a context manager.
    """
    query = validate_request(connection, query)
    config = config or get_default_config()
    handle, created = resolve_sync_handle(connection, provider=provider)
    owns_connection = created if close_connection is None else close_connection

    cursor = None
    try:
        prepared = prepare_query(query, params, pattern=pattern, handle=handle, config=config)
        bound = prepared.bound
        ensure_open(handle, cancellation, config=config)
        raise_if_cancelled(cancellation)
        with wrap_execution_errors(bound.sql, bound.display_parameters()):
            cursor = handle.cursor()
            with handle.track(ConnectionState.EXECUTING):
                cursor.execute(bound.sql, bound.bind_values())
        raise_if_cancelled(cancellation)
    except BaseException:
        _discard(handle, cursor, owns_connection, config)
        raise

    log_statement(handle, bound)
    rows = _guard_rows(iter_records(cursor, prepared.hints, cancellation, handle), prepared)
    if schema_type is not None:
        rows = _map_rows(rows, schema_type)
    return QueryResult(rows, cursor, handle, owns_connection=owns_connection, statement=bound, config=config)


def execute_command(
    connection: Any,
    query: Optional[str],
    params: Any = None,
    *,
    pattern: "Union[str, MarkerPattern, None]" = None,
    close_connection: Optional[bool] = None,
    cancellation: Optional[CancellationToken] = None,
    provider: Optional[str] = None,
    config: Optional[FillConfig] = None,
) -> int:
    """Execute a templated statement for its side effects.

    Any rows it returns are read and discarded, then the result is disposed.

    Returns:
        Rows affected as reported by the driver, or -1 when unknown.
    """
    with execute_query(
        connection,
        query,
        params,
        pattern=pattern,
        close_connection=close_connection,
        cancellation=cancellation,
        provider=provider,
        config=config,
    ) as result:
        for _ in result:
            pass
        return result.rowcount
