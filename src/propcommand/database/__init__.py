"""Storage layer for propcommand application."""

from propcommand.database.base import KeyValueStore
from propcommand.database.factories import create_sqlite_store

__all__ = ["KeyValueStore", "create_sqlite_store"]
