"""Store factory functions for creating key-value store instances."""

import os
from pathlib import Path
from typing import Optional

from propcommand.database.sqlalchemy_store import SQLAlchemyKeyValueStore


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyKeyValueStore:
    """Create a SQLite-backed key-value store.

    Args:
        database_path: Path to SQLite database file. If None, checks PROPCOMMAND_DB_PATH
            environment variable, then defaults to ~/.propcommand/propcommand.db.
            The special value ":memory:" gives a throwaway in-memory store.

    Returns:
        SQLAlchemyKeyValueStore instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("PROPCOMMAND_DB_PATH")

    if database_path is None:
        # Default to ~/.propcommand/propcommand.db
        home = Path.home()
        db_dir = home / ".propcommand"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "propcommand.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyKeyValueStore(database_url)
