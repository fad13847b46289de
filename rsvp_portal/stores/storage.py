"""Durable client-side storage for store snapshots, keyed by store name."""

import copy
from abc import ABC, abstractmethod

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rsvp_portal.config.database import async_session_manager
from rsvp_portal.stores.orm_models import PersistedState


class StateStorage(ABC):
    @abstractmethod
    async def load(self, name: str) -> dict | None:
        """Return the last saved snapshot for ``name``, or None."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, name: str, state: dict) -> None:
        raise NotImplementedError

    @abstractmethod
    async def remove(self, name: str) -> None:
        raise NotImplementedError


class InMemoryStateStorage(StateStorage):
    """Process-local storage; nothing survives a restart."""

    def __init__(self, initial: dict[str, dict] | None = None) -> None:
        self._memory: dict[str, dict] = copy.deepcopy(initial or {})

    async def load(self, name: str) -> dict | None:
        state = self._memory.get(name)
        return copy.deepcopy(state) if state is not None else None

    async def save(self, name: str, state: dict) -> None:
        self._memory[name] = copy.deepcopy(state)

    async def remove(self, name: str) -> None:
        self._memory.pop(name, None)


class SqlStateStorage(StateStorage):
    """SQLite-backed storage, one row per store snapshot."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def load(self, name: str) -> dict | None:
        async with async_session_manager(self._session_maker, auto_commit=False) as session:
            row = await session.get(PersistedState, name)
            return row.payload if row else None

    async def save(self, name: str, state: dict) -> None:
        async with async_session_manager(self._session_maker) as session:
            row = await session.get(PersistedState, name)
            if row:
                row.payload = state
            else:
                session.add(PersistedState(name=name, payload=state))

    async def remove(self, name: str) -> None:
        async with async_session_manager(self._session_maker) as session:
            row = await session.get(PersistedState, name)
            if row:
                await session.delete(row)
