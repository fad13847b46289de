import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from rsvp_portal.api.schemas import EventInput
from rsvp_portal.errors import ApiError, InvalidInputError
from rsvp_portal.stores import EventsStore, InMemoryStateStorage

TTL = 300


def _event_input(date: datetime) -> EventInput:
    return EventInput(
        title="Annual Gala",
        date=date,
        location="Grand Hall",
        category="Formal",
        capacity=100,
        host_name="Dana",
        host_mobile="555-0100",
        host_email="dana@example.com",
    )


@pytest.fixture
def store(events_api, storage, clock):
    return EventsStore(events_api, storage, ttl_seconds=TTL, clock=clock)


@pytest.mark.asyncio
async def test_fetch_within_ttl_uses_cache(backend, store, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})

    first = await store.fetch()
    second = await store.fetch()

    assert backend.count("GET", "/events") == 1
    assert [event.id for event in first] == [event.id for event in second] == ["e1"]


@pytest.mark.asyncio
async def test_fetch_after_ttl_goes_to_network(backend, store, clock, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})

    await store.fetch()
    clock.advance(TTL)
    await store.fetch()

    assert backend.count("GET", "/events") == 2


@pytest.mark.asyncio
async def test_force_and_refresh_bypass_cache(backend, store, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})

    await store.fetch()
    await store.fetch(force=True)
    await store.refresh()

    assert backend.count("GET", "/events") == 3


@pytest.mark.asyncio
async def test_empty_collection_is_never_fresh(backend, store):
    backend.add("GET", "/events", json={"events": []})

    await store.fetch()
    await store.fetch()

    assert backend.count("GET", "/events") == 2
    assert store.last_fetched is not None


@pytest.mark.asyncio
async def test_fetch_failure_keeps_items_and_records_error(backend, store, clock, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})
    await store.fetch()
    fetched_at = store.last_fetched
    backend.add("GET", "/events", json={"error": "Database unavailable"}, status_code=503)
    clock.advance(TTL + 1)

    with pytest.raises(ApiError):
        await store.fetch()

    assert store.error == "Database unavailable"
    assert store.loading is False
    assert [event.id for event in store.items] == ["e1"]
    assert store.last_fetched == fetched_at


@pytest.mark.asyncio
async def test_get_by_id_prefers_cached_item(backend, store, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})
    await store.fetch()

    event = await store.get_by_id("e1")

    assert event.id == "e1"
    assert backend.count("GET", "/events/e1") == 0


@pytest.mark.asyncio
async def test_get_by_id_fetches_and_appends_missing_item(backend, store, make_event):
    backend.add("GET", "/events/e2", json={"event": make_event("e2")})

    event = await store.get_by_id("e2")
    await store.get_by_id("e2")

    assert event.id == "e2"
    assert [item.id for item in store.items] == ["e2"]
    assert backend.count("GET", "/events/e2") == 1


@pytest.mark.asyncio
async def test_get_by_id_failure_returns_none(backend, store):
    backend.add("GET", "/events/missing", json={"error": "Event not found"}, status_code=404)

    assert await store.get_by_id("missing") is None
    assert store.error == "Event not found"
    assert store.items == []


@pytest.mark.asyncio
async def test_create_appends_and_counts_as_fresh_read(backend, store, clock, make_event):
    backend.add("POST", "/events", json={"event": make_event("e3")})

    created = await store.create(_event_input(datetime(2030, 1, 1, tzinfo=timezone.utc)))
    await store.fetch()

    assert created.id == "e3"
    assert [event.id for event in store.items] == ["e3"]
    assert store.last_fetched == clock.now
    assert backend.count("GET", "/events") == 0


@pytest.mark.asyncio
async def test_create_failure_leaves_collection_untouched(backend, store):
    backend.add("POST", "/events", json={"error": "Capacity must be positive"}, status_code=400)

    with pytest.raises(ApiError):
        await store.create(_event_input(datetime(2030, 1, 1, tzinfo=timezone.utc)))

    assert store.error == "Capacity must be positive"
    assert store.items == []
    assert store.last_fetched is None


@pytest.mark.asyncio
async def test_update_to_past_date_is_rejected_locally(backend, store, clock):
    past = datetime.fromtimestamp(clock.now - 60, tz=timezone.utc)

    with pytest.raises(InvalidInputError) as exc_info:
        await store.update("e1", _event_input(past))

    assert "past date" in str(exc_info.value)
    assert backend.count("PUT", "/events/e1") == 0


@pytest.mark.asyncio
async def test_update_replaces_cached_item(backend, store, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1"), make_event("e2")]})
    backend.add("PUT", "/events/e1", json={"event": make_event("e1", title="Spring Gala")})
    await store.fetch()

    await store.update("e1", _event_input(datetime(2030, 1, 1, tzinfo=timezone.utc)))

    assert [event.title for event in store.items] == ["Spring Gala", "Annual Gala"]


@pytest.mark.asyncio
async def test_clear_forgets_everything(backend, store, storage, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})
    await store.fetch()

    await store.clear()

    assert store.items == []
    assert store.last_fetched is None
    assert await storage.load(EventsStore.storage_key) is None
    await store.fetch()
    assert backend.count("GET", "/events") == 2


@pytest.mark.asyncio
async def test_snapshot_survives_restart(backend, events_api, storage, clock, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})
    await EventsStore(events_api, storage, ttl_seconds=TTL, clock=clock).fetch()

    restarted = EventsStore(events_api, storage, ttl_seconds=TTL, clock=clock)
    await restarted.hydrate()
    events = await restarted.fetch()

    assert [event.id for event in events] == ["e1"]
    assert backend.count("GET", "/events") == 1
    assert restarted.loading is False
    assert restarted.error is None


@pytest.mark.asyncio
async def test_unreadable_snapshot_is_discarded(events_api, clock):
    storage = InMemoryStateStorage(
        {EventsStore.storage_key: {"items": [{"id": "e1"}], "lastFetched": 1.0}}
    )
    store = EventsStore(events_api, storage, ttl_seconds=TTL, clock=clock)

    await store.hydrate()

    assert store.items == []
    assert await storage.load(EventsStore.storage_key) is None


class SlowFirstResponse:
    """Holds the first GET /events until released; later ones answer at once."""

    def __init__(self, first: dict, later: dict):
        self.first = first
        self.later = later
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            await self.release.wait()
            return httpx.Response(200, json=self.first)
        return httpx.Response(200, json=self.later)


@pytest.mark.asyncio
async def test_slow_stale_fetch_does_not_overwrite_newer_data(backend, store, make_event):
    handler = SlowFirstResponse(
        first={"events": [make_event("old")]},
        later={"events": [make_event("new")]},
    )
    backend.add("GET", "/events", handler=handler)

    slow = asyncio.create_task(store.fetch(force=True))
    await handler.started.wait()
    await store.fetch(force=True)
    handler.release.set()
    await slow

    assert [event.id for event in store.items] == ["new"]


@pytest.mark.asyncio
async def test_fetch_in_flight_during_clear_is_dropped(backend, store, make_event):
    handler = SlowFirstResponse(first={"events": [make_event("e1")]}, later={"events": []})
    backend.add("GET", "/events", handler=handler)

    in_flight = asyncio.create_task(store.fetch())
    await handler.started.wait()
    await store.clear()
    handler.release.set()
    await in_flight

    assert store.items == []
    assert store.last_fetched is None


@pytest.mark.asyncio
async def test_single_item_fetch_in_flight_during_clear_is_dropped(
    backend, store, storage, make_event
):
    handler = SlowFirstResponse(first={"event": make_event("e9")}, later={"event": make_event("e9")})
    backend.add("GET", "/events/e9", handler=handler)

    in_flight = asyncio.create_task(store.get_by_id("e9"))
    await handler.started.wait()
    await store.clear()
    handler.release.set()
    event = await in_flight

    assert event.id == "e9"
    assert store.items == []
    assert await storage.load(EventsStore.storage_key) is None


@pytest.mark.asyncio
async def test_create_in_flight_during_clear_is_dropped(backend, store, storage, make_event):
    handler = SlowFirstResponse(first={"event": make_event("e3")}, later={"event": make_event("e4")})
    backend.add("POST", "/events", handler=handler)

    in_flight = asyncio.create_task(
        store.create(_event_input(datetime(2030, 1, 1, tzinfo=timezone.utc)))
    )
    await handler.started.wait()
    await store.clear()
    handler.release.set()
    created = await in_flight

    assert created.id == "e3"
    assert store.items == []
    assert store.last_fetched is None
    assert await storage.load(EventsStore.storage_key) is None


@pytest.mark.asyncio
async def test_create_outranks_fetch_issued_before_it(backend, store, make_event):
    handler = SlowFirstResponse(first={"events": []}, later={"events": []})
    backend.add("GET", "/events", handler=handler)
    backend.add("POST", "/events", json={"event": make_event("e3")})

    slow = asyncio.create_task(store.fetch())
    await handler.started.wait()
    await store.create(_event_input(datetime(2030, 1, 1, tzinfo=timezone.utc)))
    handler.release.set()
    await slow

    assert [event.id for event in store.items] == ["e3"]
