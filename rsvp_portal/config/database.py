import contextlib
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rsvp_portal.config.settings import settings


def create_engine(url: str) -> AsyncEngine:
    use_echo = settings.LOG_DB
    connect_args = {}
    if "sqlite" in url:
        connect_args = {"timeout": 15}
    return create_async_engine(
        url,
        echo=use_echo,
        connect_args=connect_args,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_state_db(engine: AsyncEngine) -> None:
    """Create the client-side state tables if they do not exist yet."""
    from rsvp_portal.stores.orm_models import BaseModel

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)


@contextlib.asynccontextmanager
async def async_session_manager(
    session_maker: async_sessionmaker[AsyncSession],
    auto_commit=True,
    session_overwrite: AsyncSession | None = None,
) -> AsyncIterator[AsyncSession]:
    if session_overwrite:
        yield session_overwrite
    else:
        async with session_maker() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                raise e
            else:
                if auto_commit:
                    await session.commit()
