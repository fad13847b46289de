"""Read-through cache over a remote collection, bounded by a time-to-live."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from rsvp_portal.errors import ApiError, SessionExpiredError
from rsvp_portal.stores.persisted import PersistedCollection
from rsvp_portal.stores.storage import StateStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")

DEFAULT_TTL_SECONDS = 5 * 60

Clock = Callable[[], float]


class CachedCollectionStore(ABC, Generic[T, P]):
    """Holds one remote collection plus the time it was last read.

    Every request is stamped with a monotonically increasing generation. A
    response is only applied if no newer request (fetch, create, update or
    clear) has been applied in the meantime, so a slow stale fetch can not
    overwrite fresher data.
    """

    storage_key: str
    resource_name: str = "items"

    def __init__(
        self,
        storage: StateStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._storage = storage
        self._ttl = ttl_seconds
        self._clock = clock

        self.items: list[T] = []
        self.loading = False
        self.error: str | None = None
        self.last_fetched: float | None = None

        self._issued = 0
        self._applied = 0
        self._cleared_at = 0

    @abstractmethod
    async def _fetch_all(self) -> list[T]:
        raise NotImplementedError

    @abstractmethod
    async def _fetch_one(self, item_id: str) -> T | None:
        raise NotImplementedError

    @abstractmethod
    async def _create(self, payload: P) -> T:
        raise NotImplementedError

    @abstractmethod
    def _item_id(self, item: T) -> str:
        raise NotImplementedError

    @abstractmethod
    def _dump(self, item: T) -> dict:
        raise NotImplementedError

    @abstractmethod
    def _load(self, data: dict) -> T:
        raise NotImplementedError

    def is_fresh(self) -> bool:
        return (
            self.last_fetched is not None
            and len(self.items) > 0
            and self._clock() - self.last_fetched < self._ttl
        )

    async def hydrate(self) -> None:
        """Restore the last persisted snapshot, if there is a readable one."""
        data = await self._storage.load(self.storage_key)
        if not data:
            return
        snapshot = PersistedCollection.from_dict(data)
        try:
            items = [self._load(item) for item in snapshot.items]
        except (ValueError, TypeError):
            logger.warning("Discarding unreadable %s snapshot", self.storage_key)
            await self._storage.remove(self.storage_key)
            return
        self.items = items
        self.last_fetched = snapshot.last_fetched

    async def fetch(self, force: bool = False) -> list[T]:
        if not force and self.is_fresh():
            logger.debug("Using cached %s data", self.resource_name)
            return self.items

        generation = self._next_generation()
        now = self._clock()
        self.loading = True
        self.error = None
        try:
            items = await self._fetch_all()
        except ApiError as e:
            if generation > self._applied:
                self.error = e.message or f"Failed to fetch {self.resource_name}"
            raise
        finally:
            self.loading = False

        if generation < self._applied:
            logger.debug("Dropping stale %s response", self.resource_name)
            return self.items

        self._applied = generation
        self.items = items
        self.last_fetched = now
        await self._persist()
        return self.items

    async def refresh(self) -> list[T]:
        return await self.fetch(force=True)

    async def create(self, payload: P) -> T:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        try:
            item = await self._create(payload)
        except ApiError as e:
            self.error = e.message or f"Failed to create {self.resource_name}"
            raise
        finally:
            self.loading = False

        if generation < self._cleared_at:
            logger.debug("Dropping %s created before clear", self.resource_name)
            return item

        # A creation counts as a fresh read of the collection.
        self._applied = max(self._applied, generation)
        self.items = [*self.items, item]
        self.last_fetched = self._clock()
        await self._persist()
        return item

    async def get_by_id(self, item_id: str) -> T | None:
        cached = self._find(item_id)
        if cached is not None:
            logger.debug("Using cached %s %s", self.resource_name, item_id)
            return cached

        generation = self._next_generation()
        try:
            item = await self._fetch_one(item_id)
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.warning("Failed to fetch %s %s: %s", self.resource_name, item_id, e.message)
            self.error = e.message or f"Failed to fetch {self.resource_name}"
            return None

        if generation < self._applied:
            logger.debug("Dropping stale %s %s", self.resource_name, item_id)
            return item

        # Existing entries are never replaced here, even if this copy is newer.
        if item is not None and self._find(item_id) is None:
            self.items = [*self.items, item]
            await self._persist()
        return item

    async def clear(self) -> None:
        self._cleared_at = self._applied = self._next_generation()
        self.items = []
        self.loading = False
        self.error = None
        self.last_fetched = None
        await self._storage.remove(self.storage_key)

    async def _replace(self, item: T) -> None:
        self._applied = self._next_generation()
        item_id = self._item_id(item)
        self.items = [item if self._item_id(existing) == item_id else existing for existing in self.items]
        await self._persist()

    def _find(self, item_id: str) -> T | None:
        return next((item for item in self.items if self._item_id(item) == item_id), None)

    def _next_generation(self) -> int:
        self._issued += 1
        return self._issued

    async def _persist(self) -> None:
        snapshot = PersistedCollection(
            items=[self._dump(item) for item in self.items],
            last_fetched=self.last_fetched,
        )
        await self._storage.save(self.storage_key, snapshot.to_dict())
