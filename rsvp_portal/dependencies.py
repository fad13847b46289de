from fastapi import Depends, Request

from rsvp_portal.api.resources import EventsApi, RsvpsApi, TokensApi
from rsvp_portal.container import Container


def get_container(request: Request) -> Container:
    """Dependency to get the container built at startup."""
    return request.app.state.container


def get_events_api(container: Container = Depends(get_container)) -> EventsApi:
    return container.events_api


def get_rsvps_api(container: Container = Depends(get_container)) -> RsvpsApi:
    return container.rsvps_api


def get_tokens_api(container: Container = Depends(get_container)) -> TokensApi:
    return container.tokens_api
