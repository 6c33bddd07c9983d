"""SQLite adapter for sqlfill."""

from sqlfill.adapters.sqlite.handle import SqliteConnectionHandle, SqliteConnectionParams

__all__ = ("SqliteConnectionHandle", "SqliteConnectionParams")
