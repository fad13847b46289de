from .events import EventsStore
from .rsvps import RSVPStatusStore
from .storage import InMemoryStateStorage, SqlStateStorage, StateStorage

__all__ = [
    "EventsStore",
    "RSVPStatusStore",
    "StateStorage",
    "InMemoryStateStorage",
    "SqlStateStorage",
]
