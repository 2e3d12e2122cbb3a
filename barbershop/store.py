# barbershop/store.py

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Dict, List

from sqlmodel import Session

from .errors import LockTimeoutError
from .models import StoredCollection

logger = logging.getLogger(__name__)


class DocumentStore:
    """Key-value contract the core persists through.

    ``get`` returns a private copy of the collection, so callers always work
    on a snapshot. ``put`` replaces the collection as a whole.
    """

    def __init__(self, lock_timeout: float = 5.0):
        self._write_lock = threading.RLock()
        self.lock_timeout = lock_timeout

    def get(self, collection: str) -> List[dict]:
        raise NotImplementedError

    def put(self, collection: str, items: List[dict]) -> None:
        raise NotImplementedError

    @contextmanager
    def writing(self):
        """Serialises read-modify-write cycles on the store."""
        if not self._write_lock.acquire(timeout=self.lock_timeout):
            raise LockTimeoutError("Store is busy, try again")
        try:
            yield
        finally:
            self._write_lock.release()


class MemoryStore(DocumentStore):
    def __init__(self, lock_timeout: float = 5.0):
        super().__init__(lock_timeout)
        self._collections: Dict[str, List[dict]] = {}

    def get(self, collection: str) -> List[dict]:
        return copy.deepcopy(self._collections.get(collection, []))

    def put(self, collection: str, items: List[dict]) -> None:
        self._collections[collection] = copy.deepcopy(items)


class SQLModelStore(DocumentStore):
    """Stores each collection as one JSON row (see ``StoredCollection``)."""

    def __init__(self, engine, lock_timeout: float = 5.0):
        super().__init__(lock_timeout)
        self.engine = engine

    def get(self, collection: str) -> List[dict]:
        with Session(self.engine) as session:
            row = session.get(StoredCollection, collection)
            if row is None:
                return []
            return copy.deepcopy(row.items)

    def put(self, collection: str, items: List[dict]) -> None:
        with Session(self.engine) as session:
            row = session.get(StoredCollection, collection)
            if row is None:
                row = StoredCollection(name=collection, items=copy.deepcopy(items))
            else:
                row.items = copy.deepcopy(items)
            session.add(row)
            session.commit()
        logger.debug("Stored %d items in %s", len(items), collection)
