"""Pieces shared by the sync and async execution paths."""

import sqlite3
from collections.abc import Sequence
from typing import Any, NamedTuple, Optional, Union

from sqlfill.adapters.dbapi import DBAPIConnectionHandle
from sqlfill.adapters.registry import connect
from sqlfill.adapters.sqlite import SqliteConnectionHandle
from sqlfill.core.config import FillConfig
from sqlfill.core.connection import AsyncConnectionHandle, SyncConnectionHandle
from sqlfill.core.hints import ColumnTypeHint, extract_type_hints
from sqlfill.core.record import Record, parse_hinted_value
from sqlfill.exceptions import ImproperUsageError, MissingDependencyError, wrap_execution_errors
from sqlfill.parameters.binder import bind_parameters
from sqlfill.parameters.patterns import MarkerPattern
from sqlfill.parameters.reducer import reduce_sources
from sqlfill.parameters.sources import ParameterSource, coerce_sources
from sqlfill.parameters.types import BoundQuery, ParameterMap
from sqlfill.utils.logging import get_logger

__all__ = (
    "PreparedQuery",
    "build_row",
    "column_names",
    "log_statement",
    "prepare_query",
    "resolve_async_handle",
    "resolve_sync_handle",
    "validate_request",
)

logger = get_logger("driver")


class PreparedQuery(NamedTuple):
    """A rewritten query ready to execute, with its column type hints."""

    bound: BoundQuery
    hints: ParameterMap


def validate_request(connection: Any, query: Optional[str]) -> str:
    """Reject missing inputs before any I/O.

    Returns:
        The query text.
    """
    if connection is None:
        msg = "A connection is required."
        raise ImproperUsageError(msg)
    if not query or not query.strip():
        msg = "Query text cannot be empty."
        raise ImproperUsageError(msg)
    return query


def prepare_query(
    query: str,
    params: Any,
    *,
    pattern: "Union[str, MarkerPattern, None]",
    handle: "Union[SyncConnectionHandle, AsyncConnectionHandle]",
    config: FillConfig,
) -> PreparedQuery:
    """Strip type hints, then bind placeholders to provider parameters.

    Returns:
        The prepared query.
    """
    with wrap_execution_errors(query):
        sql, hints = extract_type_hints(query, config.type_hint_pattern)
        sources = coerce_sources(params, pattern, config.marker_pattern)
        if not sources:
            sources = [ParameterSource(None, pattern).with_default_pattern(config.marker_pattern)]
        if all(source.pattern != config.marker_pattern for source in sources):
            # first in the list so it is reduced last; leftover default markers bind as NULL
            sources.insert(0, ParameterSource(None, config.marker_pattern))
        groups = reduce_sources(sources, reverse=True, case_sensitive=config.case_sensitive)
        style = handle.parameter_style or config.parameter_style
        bound = bind_parameters(sql, groups, style=style, config=config)
    return PreparedQuery(bound, hints)


def column_names(description: "Optional[Sequence[Sequence[Any]]]") -> "Optional[list[str]]":
    """Column names from a DB-API cursor description.

    Returns:
        The names, or None when the statement produced no result set.
    """
    if not description:
        return None
    return [str(column[0]) if column[0] is not None else "" for column in description]


def build_row(columns: "Sequence[str]", values: "Sequence[Any]", hints: ParameterMap) -> Any:
    """Turn one fetched row into a record.

    A result with a single unnamed column yields the bare value instead. When
    two columns share a name the first one is kept.

    Returns:
        A :class:`Record`, or the scalar value.
    """
    if len(columns) == 1 and not columns[0]:
        return values[0]
    record = Record()
    for name, value in zip(columns, values):
        if name in record:
            continue
        if hints and value is not None:
            hint: Optional[ColumnTypeHint] = hints.get(name)
            if hint is not None:
                value = parse_hinted_value(value, hint.tag, name)
        record[name] = value
    return record


def resolve_sync_handle(connection: Any, *, provider: Optional[str] = None) -> "tuple[SyncConnectionHandle, bool]":
    """Wrap whatever the caller passed as a connection.

    URLs create a connection the result will own; anything else stays the
    caller's.

    Returns:
        The handle, and whether the library created the connection.
    """
    if isinstance(connection, str):
        handle = connect(connection)
        if not isinstance(handle, SyncConnectionHandle):
            msg = f"{connection!r} names an asyncio provider; use the async query functions."
            raise ImproperUsageError(msg)
        return handle, True
    if isinstance(connection, SyncConnectionHandle):
        return connection, False
    if isinstance(connection, AsyncConnectionHandle):
        msg = "An asyncio connection handle was passed to a synchronous query function."
        raise ImproperUsageError(msg)
    if isinstance(connection, sqlite3.Connection):
        return SqliteConnectionHandle(connection), False
    return DBAPIConnectionHandle(connection, provider_name=provider), False


def resolve_async_handle(connection: Any) -> "tuple[AsyncConnectionHandle, bool]":
    """Async counterpart of :func:`resolve_sync_handle`.

    Returns:
        The handle, and whether the library created the connection.
    """
    if isinstance(connection, str):
        handle = connect(connection)
        if not isinstance(handle, AsyncConnectionHandle):
            msg = f"{connection!r} names a blocking provider; use the synchronous query functions."
            raise ImproperUsageError(msg)
        return handle, True
    if isinstance(connection, AsyncConnectionHandle):
        return connection, False
    if isinstance(connection, SyncConnectionHandle):
        msg = "A blocking connection handle was passed to an async query function."
        raise ImproperUsageError(msg)
    try:
        import aiosqlite

        from sqlfill.adapters.aiosqlite import AiosqliteConnectionHandle
    except ImportError as exc:
        raise MissingDependencyError(package="aiosqlite") from exc
    if isinstance(connection, aiosqlite.Connection):
        return AiosqliteConnectionHandle(connection), False
    msg = f"Unsupported async connection {type(connection).__name__}; wrap it in an AsyncConnectionHandle."
    raise ImproperUsageError(msg)


def log_statement(handle: "Union[SyncConnectionHandle, AsyncConnectionHandle]", bound: BoundQuery) -> None:
    """Log an executed statement with its SQL and bind keys. Values stay out of the log."""
    logger.debug(
        "Executed query on %s",
        handle.provider,
        extra={
            "extra_fields": {
                "provider": handle.provider,
                "sql": bound.sql,
                "parameters": [parameter.key for parameter in bound.parameters],
            }
        },
    )
