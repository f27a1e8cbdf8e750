"""
Shared work item store.

One instance is injected into every dashboard. The collection is an
immutable tuple; commit() is the single mutation entry point and always
swaps in a whole new tuple, then persists it and notifies subscribers.
Works are never removed once promoted.
"""
import logging

from adp_portal.exceptions import StorageError

logger = logging.getLogger(__name__)


class WorkItemStore:

    def __init__(self, storage=None, items=()):
        self._storage = storage
        self._items = tuple(items)
        self._version = 0
        self._subscribers = []

    @classmethod
    def load(cls, storage):
        """Build a store from whatever the storage backend holds."""
        try:
            items = storage.get_all()
        except StorageError as exc:
            logger.warning("Starting with an empty store: %s", exc.message)
            items = []
        logger.info("Loaded %d works from storage", len(items))
        return cls(storage, items)

    @property
    def version(self) -> int:
        return self._version

    def all(self) -> tuple:
        return self._items

    def get(self, item_id):
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def subscribe(self, callback):
        """Register callback(items, version); returns an unsubscribe function."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def commit(self, transform):
        """Replace the collection with transform(current items).

        The transform must not drop existing works. Persistence happens
        before subscribers hear about the change.
        """
        current = self._items
        updated = tuple(transform(current))
        kept_ids = {item.id for item in updated}
        missing = [item.id for item in current if item.id not in kept_ids]
        if missing:
            raise ValueError(f"Store commit would remove works: {missing}")

        if self._storage is not None:
            self._storage.put(updated)
        self._items = updated
        self._version += 1
        for callback in list(self._subscribers):
            callback(updated, self._version)
        return updated

    def append(self, new_items):
        """Promote works into the store (newest at the end)."""
        new_items = tuple(new_items)
        return self.commit(lambda items: items + new_items)

    def replace_item(self, item):
        """Swap in a new version of one work, matched by id."""
        return self.commit(lambda items: tuple(item if i.id == item.id else i for i in items))
