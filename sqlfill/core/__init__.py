"""Configuration, connection guard, records and results."""

from sqlfill.core.cancellation import CancellationToken
from sqlfill.core.config import FillConfig, get_default_config, update_default_config
from sqlfill.core.connection import (
    AsyncConnectionHandle,
    ConnectionState,
    SyncConnectionHandle,
    ensure_closed,
    ensure_closed_async,
    ensure_open,
    ensure_open_async,
)
from sqlfill.core.fill import fill
from sqlfill.core.hints import ColumnTypeHint, extract_type_hints
from sqlfill.core.record import Record, parse_hinted_value, parse_json, parse_xml
from sqlfill.core.result import AsyncQueryResult, QueryResult

__all__ = (
    "AsyncConnectionHandle",
    "AsyncQueryResult",
    "CancellationToken",
    "ColumnTypeHint",
    "ConnectionState",
    "FillConfig",
    "QueryResult",
    "Record",
    "SyncConnectionHandle",
    "ensure_closed",
    "ensure_closed_async",
    "ensure_open",
    "ensure_open_async",
    "extract_type_hints",
    "fill",
    "get_default_config",
    "parse_hinted_value",
    "parse_json",
    "parse_xml",
    "update_default_config",
)
