"""aiosqlite adapter for sqlfill."""

from sqlfill.adapters.aiosqlite.handle import AiosqliteConnectionHandle, AiosqliteConnectionParams

__all__ = ("AiosqliteConnectionHandle", "AiosqliteConnectionParams")
