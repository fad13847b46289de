from collections.abc import Callable
from contextlib import asynccontextmanager

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from rsvp_portal.api import ApiClient, EventsApi, RsvpsApi, TokensApi
from rsvp_portal.main import app
from rsvp_portal.stores import InMemoryStateStorage

API_URL = "http://api.test/api"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Scripted stand-in for the RSVP API, served through httpx.MockTransport."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, json=None, status_code: int = 200, handler: Handler = None):
        if handler is None:

            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(status_code, json=json)

        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and self._path(request) == path
        ]

    def count(self, method: str, path: str) -> int:
        return len(self.calls(method, path))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/api")

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, self._path(request)))
        if handler is None:
            return httpx.Response(404, json={"error": "Route not found"})
        return handler(request)


def event_payload(event_id: str = "e1", **overrides) -> dict:
    payload = {
        "id": event_id,
        "title": "Annual Gala",
        "description": "Black tie dinner",
        "date": "2030-06-01T19:00:00Z",
        "location": "Grand Hall",
        "category": "Formal",
        "capacity": 100,
        "allowedCompanions": 1,
        "hostName": "Dana",
        "hostMobile": "555-0100",
        "hostEmail": "dana@example.com",
        "rsvpCount": 0,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_event():
    return event_payload


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def api_client(backend):
    client = ApiClient(API_URL, http_client=httpx.AsyncClient(transport=backend.transport()))
    yield client
    await client.aclose()


@pytest.fixture
def storage():
    return InMemoryStateStorage()


@pytest.fixture
def events_api(api_client):
    return EventsApi(api_client)


@pytest.fixture
def rsvps_api(api_client):
    return RsvpsApi(api_client)


@pytest.fixture
def tokens_api(api_client):
    return TokensApi(api_client)


class FakeClock:
    """Settable time source for TTL checks."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client_factory():
    @asynccontextmanager
    async def factory(overrides: dict | None = None):
        app.dependency_overrides.update(overrides or {})
        transport = ASGITransport(app=app)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
        finally:
            app.dependency_overrides.clear()

    return factory


@pytest.fixture
async def client(client_factory):
    async with client_factory() as ac:
        yield ac
