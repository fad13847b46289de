"""Search, filter and sort the host's cached events for display."""

from datetime import datetime, timezone
from enum import Enum

from rsvp_portal.api.schemas import Event
from rsvp_portal.utils import as_utc


class EventFilter(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"
    TODAY = "today"


class EventSort(str, Enum):
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    CAPACITY_ASC = "capacity-asc"
    CAPACITY_DESC = "capacity-desc"


ALL_CATEGORIES = "all"

_SORT_KEYS = {
    EventSort.DATE_ASC: lambda event: as_utc(event.date),
    EventSort.DATE_DESC: lambda event: as_utc(event.date),
    EventSort.TITLE_ASC: lambda event: event.title.casefold(),
    EventSort.TITLE_DESC: lambda event: event.title.casefold(),
    EventSort.CAPACITY_ASC: lambda event: event.capacity,
    EventSort.CAPACITY_DESC: lambda event: event.capacity,
}


def categories(events: list[Event]) -> list[str]:
    return sorted({event.category for event in events})


def _matches_search(event: Event, search: str) -> bool:
    needle = search.lower()
    return (
        needle in event.title.lower()
        or needle in event.description.lower()
        or needle in event.location.lower()
    )


def _matches_filter(event: Event, event_filter: EventFilter, now: datetime) -> bool:
    date = as_utc(event.date)
    if event_filter == EventFilter.UPCOMING:
        return date > now
    if event_filter == EventFilter.PAST:
        return date < now
    if event_filter == EventFilter.TODAY:
        return date.date() == now.date()
    return True


def filter_and_sort_events(
    events: list[Event],
    search: str = "",
    category: str = ALL_CATEGORIES,
    event_filter: EventFilter = EventFilter.ALL,
    sort: EventSort = EventSort.DATE_ASC,
    now: datetime | None = None,
) -> list[Event]:
    now = as_utc(now) if now else datetime.now(timezone.utc)
    selected = [
        event
        for event in events
        if _matches_search(event, search)
        and (category == ALL_CATEGORIES or event.category == category)
        and _matches_filter(event, event_filter, now)
    ]

    key = _SORT_KEYS[sort]
    reverse = sort in (EventSort.DATE_DESC, EventSort.TITLE_DESC, EventSort.CAPACITY_DESC)
    return sorted(selected, key=key, reverse=reverse)
