"""Per-event cache of the signed-in user's own RSVP status."""

import asyncio
import logging
import time

from rsvp_portal.api.resources import RsvpsApi
from rsvp_portal.dtos import RSVPStatus
from rsvp_portal.errors import ApiError, SessionExpiredError
from rsvp_portal.stores.collection import DEFAULT_TTL_SECONDS, Clock
from rsvp_portal.stores.persisted import PersistedRSVPs
from rsvp_portal.stores.storage import StateStorage

logger = logging.getLogger(__name__)


class RSVPStatusStore:
    """
    Keyed variant of the cached store: one entry per event id.

    A missing RSVP is cached as ``None`` like any other result, so events the
    user never answered are not refetched on every read. Keys are independent;
    within a key the newest request wins.
    """

    storage_key = "rsvps-storage"

    def __init__(
        self,
        rsvps_api: RsvpsApi,
        storage: StateStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._rsvps_api = rsvps_api
        self._storage = storage
        self._ttl = ttl_seconds
        self._clock = clock

        self.rsvps: dict[str, RSVPStatus | None] = {}
        self.fetched_event_ids: set[str] = set()
        self.last_fetched: dict[str, float] = {}
        self.loading = False
        self.error: str | None = None

        self._issued = 0
        self._applied: dict[str, int] = {}
        self._cleared_at = 0

    def is_fresh(self, event_id: str) -> bool:
        fetched_at = self.last_fetched.get(event_id)
        return (
            event_id in self.fetched_event_ids
            and fetched_at is not None
            and self._clock() - fetched_at < self._ttl
        )

    async def hydrate(self) -> None:
        data = await self._storage.load(self.storage_key)
        if not data:
            return
        snapshot = PersistedRSVPs.from_dict(data)
        try:
            rsvps = {
                event_id: RSVPStatus(status) if status else None
                for event_id, status in snapshot.rsvps.items()
            }
        except ValueError:
            logger.warning("Discarding unreadable %s snapshot", self.storage_key)
            await self._storage.remove(self.storage_key)
            return
        self.rsvps = rsvps
        self.fetched_event_ids = set(snapshot.fetched_event_ids)
        self.last_fetched = dict(snapshot.last_fetched)

    async def fetch(self, event_id: str, force: bool = False) -> RSVPStatus | None:
        if not force and self.is_fresh(event_id):
            logger.debug("Using cached RSVP data for event %s", event_id)
            return self.rsvps.get(event_id)

        generation = self._next_generation()
        now = self._clock()
        status = await self._fetch_status(event_id)
        if self._merge({event_id: status}, now, generation):
            await self._persist()
        return self.rsvps.get(event_id)

    async def fetch_many(self, event_ids: list[str], force: bool = False) -> None:
        """Fetch every event whose entry is missing or stale, concurrently."""
        stale_ids = [
            event_id
            for event_id in dict.fromkeys(event_ids)
            if force or not self.is_fresh(event_id)
        ]
        if not stale_ids:
            logger.debug("All RSVPs already cached")
            return

        generation = self._next_generation()
        now = self._clock()
        self.loading = True
        self.error = None
        try:
            statuses = await asyncio.gather(
                *(self._fetch_status(event_id) for event_id in stale_ids)
            )
        except ApiError as e:
            self.error = e.message or "Failed to fetch RSVPs"
            raise
        finally:
            self.loading = False

        if self._merge(dict(zip(stale_ids, statuses)), now, generation):
            await self._persist()

    async def create(self, event_id: str, status: RSVPStatus) -> None:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        try:
            await self._rsvps_api.create(event_id, status)
        except ApiError as e:
            self.error = e.message or "Failed to create RSVP"
            raise
        finally:
            self.loading = False

        if self._merge({event_id: status}, self._clock(), generation):
            await self._persist()

    async def set(self, event_id: str, status: RSVPStatus | None) -> None:
        self._merge({event_id: status}, self._clock(), self._next_generation())
        await self._persist()

    async def clear(self) -> None:
        self._cleared_at = self._next_generation()
        self._applied = {}
        self.rsvps = {}
        self.fetched_event_ids = set()
        self.last_fetched = {}
        self.loading = False
        self.error = None
        await self._storage.remove(self.storage_key)

    async def _fetch_status(self, event_id: str) -> RSVPStatus | None:
        try:
            rsvp = await self._rsvps_api.get(event_id)
        except SessionExpiredError:
            raise
        except ApiError as e:
            # Background read: degrade to "no RSVP" and cache that.
            logger.warning("Failed to fetch RSVP for event %s: %s", event_id, e.message)
            return None
        return rsvp.status if rsvp else None

    def _merge(
        self, statuses: dict[str, RSVPStatus | None], fetched_at: float, generation: int
    ) -> bool:
        if generation < self._cleared_at:
            return False
        merged = False
        for event_id, status in statuses.items():
            if generation < self._applied.get(event_id, 0):
                continue
            self._applied[event_id] = generation
            self.rsvps[event_id] = status
            self.fetched_event_ids.add(event_id)
            self.last_fetched[event_id] = fetched_at
            merged = True
        return merged

    def _next_generation(self) -> int:
        self._issued += 1
        return self._issued

    async def _persist(self) -> None:
        snapshot = PersistedRSVPs(
            rsvps={
                event_id: status.value if status else None
                for event_id, status in self.rsvps.items()
            },
            fetched_event_ids=sorted(self.fetched_event_ids),
            last_fetched=dict(self.last_fetched),
        )
        await self._storage.save(self.storage_key, snapshot.to_dict())
