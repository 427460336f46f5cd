"""Abstract key-value store interface."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Optional


class KeyValueStore(ABC):
    """Abstract durable key-value store for propcommand.

    Values are JSON-serialisable. ``get`` returns None on a missing key;
    any failure of the underlying medium raises StorageError. Each ``set``
    is atomic for its own key; there are no multi-key transactions.
    """

    def __init__(self) -> None:
        # Serialises read-modify-write sequences of the ledger services.
        self.write_lock = threading.RLock()

    @abstractmethod
    def connect(self) -> None:
        """Connect to the storage medium."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the storage medium."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get the value stored under key, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Remove key. Returns True if a value was removed."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        pass

    def clear(self) -> None:
        """Remove every stored key."""
        for key in self.keys():
            self.remove(key)
