"""Query execution for blocking and asyncio drivers."""

from sqlfill.driver._async import aiter_records, execute_command_async, execute_query_async
from sqlfill.driver._common import PreparedQuery, build_row, prepare_query
from sqlfill.driver._sync import execute_command, execute_query, iter_records

__all__ = (
    "PreparedQuery",
    "aiter_records",
    "build_row",
    "execute_command",
    "execute_command_async",
    "execute_query",
    "execute_query_async",
    "iter_records",
    "prepare_query",
)
