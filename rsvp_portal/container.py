"""Composition root: every long-lived object is built here once and injected."""

from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from rsvp_portal.api import ApiClient, AuthApi, EmailTemplatesApi, EventsApi, RsvpsApi, TokensApi
from rsvp_portal.auth import AuthService
from rsvp_portal.config.database import create_engine, create_session_maker, init_state_db
from rsvp_portal.config.settings import Settings, settings as default_settings
from rsvp_portal.hosts.analytics import EventAnalytics
from rsvp_portal.hosts.invitations import InvitationService
from rsvp_portal.hosts.templates import EmailTemplateService
from rsvp_portal.stores import EventsStore, RSVPStatusStore, SqlStateStorage, StateStorage


@dataclass
class Container:
    settings: Settings
    storage: StateStorage
    api_client: ApiClient
    events_api: EventsApi
    rsvps_api: RsvpsApi
    tokens_api: TokensApi
    email_templates_api: EmailTemplatesApi
    events_store: EventsStore
    rsvps_store: RSVPStatusStore
    auth: AuthService
    invitations: InvitationService
    analytics: EventAnalytics
    templates: EmailTemplateService
    engine: AsyncEngine | None = None

    async def aclose(self) -> None:
        await self.api_client.aclose()
        if self.engine is not None:
            await self.engine.dispose()


async def build_container(
    settings: Settings = default_settings,
    storage: StateStorage | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Container:
    """Build the object graph, restore persisted caches and the stored session."""
    engine = None
    if storage is None:
        engine = create_engine(settings.state_db_url)
        await init_state_db(engine)
        storage = SqlStateStorage(create_session_maker(engine))

    api_client = ApiClient(settings.api_url, http_client=http_client)
    events_api = EventsApi(api_client)
    rsvps_api = RsvpsApi(api_client)
    tokens_api = TokensApi(api_client)
    email_templates_api = EmailTemplatesApi(api_client)

    events_store = EventsStore(events_api, storage, ttl_seconds=settings.cache_ttl_seconds)
    rsvps_store = RSVPStatusStore(rsvps_api, storage, ttl_seconds=settings.cache_ttl_seconds)
    auth = AuthService(AuthApi(api_client), storage, stores=[events_store, rsvps_store])
    api_client.bind_session(auth.access_token, on_unauthorized=auth.handle_unauthorized)

    await events_store.hydrate()
    await rsvps_store.hydrate()
    await auth.restore()

    return Container(
        settings=settings,
        storage=storage,
        api_client=api_client,
        events_api=events_api,
        rsvps_api=rsvps_api,
        tokens_api=tokens_api,
        email_templates_api=email_templates_api,
        events_store=events_store,
        rsvps_store=rsvps_store,
        auth=auth,
        invitations=InvitationService(tokens_api),
        analytics=EventAnalytics(rsvps_api, tokens_api),
        templates=EmailTemplateService(email_templates_api),
        engine=engine,
    )
