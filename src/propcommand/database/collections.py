"""List-valued records stored under a single key."""

from typing import Callable, Generic, Optional, TypeVar

from propcommand.database.base import KeyValueStore
from propcommand.database.mappers import encode

T = TypeVar("T")


class RecordCollection(Generic[T]):
    """A list of entities persisted as one JSON array under ``key``.

    Every mutation rewrites the whole array in a single ``set`` call, so a
    change to one record is atomic from the caller's point of view.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        decoder: Callable[[dict], T],
        key_attr: str = "id",
    ):
        self.store = store
        self.key = key
        self.decoder = decoder
        self.key_attr = key_attr

    def _key_of(self, item: T) -> str:
        return getattr(item, self.key_attr)

    def load(self) -> list[T]:
        """Return every record in insertion order."""
        records = self.store.get(self.key)
        if records is None:
            return []
        return [self.decoder(record) for record in records]

    def save(self, items: list[T]) -> None:
        """Replace the whole collection."""
        self.store.set(self.key, [encode(item) for item in items])

    def get(self, item_key: str) -> Optional[T]:
        for item in self.load():
            if self._key_of(item) == item_key:
                return item
        return None

    def add(self, item: T) -> T:
        items = self.load()
        items.append(item)
        self.save(items)
        return item

    def extend(self, new_items: list[T]) -> None:
        items = self.load()
        items.extend(new_items)
        self.save(items)

    def replace(self, item: T) -> bool:
        """Swap in the record with the same key. Returns False if absent."""
        items = self.load()
        for index, existing in enumerate(items):
            if self._key_of(existing) == self._key_of(item):
                items[index] = item
                self.save(items)
                return True
        return False

    def remove(self, item_key: str) -> bool:
        items = self.load()
        remaining = [item for item in items if self._key_of(item) != item_key]
        if len(remaining) == len(items):
            return False
        self.save(remaining)
        return True
