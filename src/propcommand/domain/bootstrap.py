"""First-run initialisation and reset of a store."""

import logging
from datetime import datetime
from typing import Callable

from propcommand.database import keys
from propcommand.database.base import KeyValueStore
from propcommand.database.mappers import encode
from propcommand.domain.accounts import AccountRegistry
from propcommand.domain.entities import StrategicPlan
from propcommand.utils.ids import utc_now

logger = logging.getLogger(__name__)


def is_initialized(store: KeyValueStore) -> bool:
    return store.get(keys.INITIALIZED) is not None


def initialize(store: KeyValueStore, clock: Callable[[], datetime] = utc_now) -> bool:
    """Seed an empty store.

    Creates the default chart of accounts, an empty strategic plan and empty
    collections, then sets the initialisation marker. Does nothing when the
    marker is already present.

    Returns:
        True if the store was initialised by this call
    """
    with store.write_lock:
        if is_initialized(store):
            return False

        for key in keys.COLLECTION_KEYS:
            if store.get(key) is None:
                store.set(key, [])
        if store.get(keys.OPSP) is None:
            store.set(keys.OPSP, encode(StrategicPlan()))

        created = AccountRegistry(store, clock=clock).seed_chart_of_accounts()
        store.set(keys.INITIALIZED, clock().isoformat())

    logger.info("Initialised store with %d accounts", created)
    return True


def reset(store: KeyValueStore, clock: Callable[[], datetime] = utc_now) -> None:
    """Remove every key and initialise again."""
    with store.write_lock:
        store.clear()
        logger.warning("Cleared all stored data")
        initialize(store, clock=clock)
