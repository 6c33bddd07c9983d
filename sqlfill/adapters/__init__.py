"""Connection handles for concrete drivers and the provider registry.

The aiosqlite adapter is imported on demand so that the package works
without the optional dependency.
"""

from sqlfill.adapters.dbapi import DBAPIConnectionHandle
from sqlfill.adapters.registry import (
    PROVIDER_PARAMETER_STYLES,
    Provider,
    connect,
    get_provider,
    parameter_style_for,
    parse_connection_url,
    register_provider,
    registered_providers,
)
from sqlfill.adapters.sqlite import SqliteConnectionHandle

__all__ = (
    "PROVIDER_PARAMETER_STYLES",
    "DBAPIConnectionHandle",
    "Provider",
    "SqliteConnectionHandle",
    "connect",
    "get_provider",
    "parameter_style_for",
    "parse_connection_url",
    "register_provider",
    "registered_providers",
)
