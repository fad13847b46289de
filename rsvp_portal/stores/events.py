import time

from rsvp_portal.api.resources import EventsApi
from rsvp_portal.api.schemas import Event, EventInput
from rsvp_portal.errors import ApiError, InvalidInputError
from rsvp_portal.stores.collection import DEFAULT_TTL_SECONDS, CachedCollectionStore, Clock
from rsvp_portal.stores.storage import StateStorage
from rsvp_portal.utils import as_utc, timestamp_to_datetime


class EventsStore(CachedCollectionStore[Event, EventInput]):
    """Cached list of the signed-in host's events."""

    storage_key = "events-storage"
    resource_name = "events"

    def __init__(
        self,
        events_api: EventsApi,
        storage: StateStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(storage, ttl_seconds=ttl_seconds, clock=clock)
        self._events_api = events_api

    async def update(self, event_id: str, event_input: EventInput) -> Event:
        """
        Update an event and replace its cached copy.
        The date may not be moved into the past.
        """
        if as_utc(event_input.date) < timestamp_to_datetime(self._clock()):
            raise InvalidInputError(
                "Cannot update event to a past date. Please select a future date and time."
            )

        self.loading = True
        self.error = None
        try:
            event = await self._events_api.update(event_id, event_input)
        except ApiError as e:
            self.error = e.message or "Failed to update event"
            raise
        finally:
            self.loading = False

        await self._replace(event)
        return event

    async def _fetch_all(self) -> list[Event]:
        return await self._events_api.list_all()

    async def _fetch_one(self, item_id: str) -> Event | None:
        return await self._events_api.get(item_id)

    async def _create(self, payload: EventInput) -> Event:
        return await self._events_api.create(payload)

    def _item_id(self, item: Event) -> str:
        return item.id

    def _dump(self, item: Event) -> dict:
        return item.model_dump(mode="json", by_alias=True)

    def _load(self, data: dict) -> Event:
        return Event.model_validate(data)
