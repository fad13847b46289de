"""Narrow snapshot shapes written to durable storage.

Only cached data and fetch timestamps are persisted; loading and error flags
are runtime state and are never written.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PersistedCollection:
    items: list[dict] = field(default_factory=list)
    last_fetched: float | None = None

    def to_dict(self) -> dict:
        return {"items": self.items, "lastFetched": self.last_fetched}

    @classmethod
    def from_dict(cls, data: dict) -> "PersistedCollection":
        return cls(
            items=list(data.get("items") or []),
            last_fetched=data.get("lastFetched"),
        )


@dataclass(frozen=True)
class PersistedRSVPs:
    rsvps: dict[str, str | None] = field(default_factory=dict)
    fetched_event_ids: list[str] = field(default_factory=list)
    last_fetched: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "rsvps": self.rsvps,
            "fetchedEventIds": self.fetched_event_ids,
            "lastFetched": self.last_fetched,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PersistedRSVPs":
        return cls(
            rsvps=dict(data.get("rsvps") or {}),
            fetched_event_ids=list(data.get("fetchedEventIds") or []),
            last_fetched=dict(data.get("lastFetched") or {}),
        )
