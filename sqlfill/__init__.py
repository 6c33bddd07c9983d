"""sqlfill: placeholder templates bound as real query parameters.

Write SQL with ``{{name}}`` placeholders, pass any model as the values, and
stream the rows back as records or typed objects::

    from sqlfill import execute_query

    with execute_query("sqlite:///app.db", "SELECT * FROM users WHERE age > {{age}}", {"age": 21}) as rows:
        for row in rows:
            print(row.name)
"""

from sqlfill import adapters, core, driver, exceptions, parameters, utils
from sqlfill.adapters import DBAPIConnectionHandle, SqliteConnectionHandle, connect, register_provider
from sqlfill.core import (
    AsyncConnectionHandle,
    AsyncQueryResult,
    CancellationToken,
    ConnectionState,
    FillConfig,
    QueryResult,
    Record,
    SyncConnectionHandle,
    ensure_closed,
    ensure_closed_async,
    ensure_open,
    ensure_open_async,
    fill,
    get_default_config,
    update_default_config,
)
from sqlfill.driver import execute_command, execute_command_async, execute_query, execute_query_async
from sqlfill.exceptions import (
    ConnectionBusyError,
    ImproperUsageError,
    MissingDependencyError,
    ProviderNotFoundError,
    QueryCancelledError,
    QueryExecutionError,
    SQLFillError,
    TypeHintParseError,
)
from sqlfill.parameters import BoundParameter, BoundQuery, MarkerPattern, ParameterSource, ParameterStyle

__version__ = "0.1.0"

__all__ = (
    "AsyncConnectionHandle",
    "AsyncQueryResult",
    "BoundParameter",
    "BoundQuery",
    "CancellationToken",
    "ConnectionBusyError",
    "ConnectionState",
    "DBAPIConnectionHandle",
    "FillConfig",
    "ImproperUsageError",
    "MarkerPattern",
    "MissingDependencyError",
    "ParameterSource",
    "ParameterStyle",
    "ProviderNotFoundError",
    "QueryCancelledError",
    "QueryExecutionError",
    "QueryResult",
    "Record",
    "SQLFillError",
    "SqliteConnectionHandle",
    "SyncConnectionHandle",
    "TypeHintParseError",
    "__version__",
    "adapters",
    "connect",
    "core",
    "driver",
    "ensure_closed",
    "ensure_closed_async",
    "ensure_open",
    "ensure_open_async",
    "exceptions",
    "execute_command",
    "execute_command_async",
    "execute_query",
    "execute_query_async",
    "fill",
    "get_default_config",
    "parameters",
    "register_provider",
    "update_default_config",
    "utils",
)
