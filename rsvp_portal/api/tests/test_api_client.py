import json

import httpx
import pytest

from rsvp_portal.api import ApiClient
from rsvp_portal.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    ResponseFormatError,
    SessionExpiredError,
)

API_URL = "http://api.test/api"


class UnauthorizedRecorder:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


@pytest.mark.asyncio
async def test_authenticated_request_carries_bearer_token(backend, api_client):
    backend.add("GET", "/events", json={"events": []})
    api_client.bind_session(lambda: "secret-token")

    await api_client.get("/events")

    request = backend.calls("GET", "/events")[0]
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_public_request_never_sends_token(backend, api_client):
    backend.add("GET", "/events/public/e1", json={"event": {}})
    api_client.bind_session(lambda: "secret-token")

    await api_client.get("/events/public/e1", auth=False)

    assert "Authorization" not in backend.calls("GET", "/events/public/e1")[0].headers


@pytest.mark.asyncio
async def test_unauthorized_on_authenticated_call_logs_out(backend, api_client):
    backend.add("GET", "/events", json={"error": "jwt expired"}, status_code=401)
    on_unauthorized = UnauthorizedRecorder()
    api_client.bind_session(lambda: "stale", on_unauthorized=on_unauthorized)

    with pytest.raises(SessionExpiredError) as exc_info:
        await api_client.get("/events")

    assert on_unauthorized.calls == 1
    assert exc_info.value.status == 401
    assert exc_info.value.message == "Your session has expired. Please login again."


@pytest.mark.asyncio
async def test_unauthorized_on_public_call_keeps_session(backend, api_client):
    backend.add("POST", "/auth/login", json={"error": "Invalid credentials"}, status_code=401)
    on_unauthorized = UnauthorizedRecorder()
    api_client.bind_session(lambda: None, on_unauthorized=on_unauthorized)

    with pytest.raises(ApiError) as exc_info:
        await api_client.post("/auth/login", json={}, auth=False)

    assert not isinstance(exc_info.value, SessionExpiredError)
    assert exc_info.value.message == "Invalid credentials"
    assert on_unauthorized.calls == 0


@pytest.mark.asyncio
async def test_not_found_maps_to_not_found_error(backend, api_client):
    backend.add("GET", "/tokens/token/nope", json={"error": "Invalid token"}, status_code=404)

    with pytest.raises(NotFoundError) as exc_info:
        await api_client.get("/tokens/token/nope", auth=False)

    assert exc_info.value.status == 404
    assert exc_info.value.data == {"error": "Invalid token"}


@pytest.mark.asyncio
async def test_error_without_json_body_is_unknown_error(backend, api_client):
    backend.add(
        "GET", "/events", handler=lambda request: httpx.Response(500, text="<html>oops</html>")
    )

    with pytest.raises(ApiError) as exc_info:
        await api_client.get("/events")

    assert exc_info.value.message == "Unknown error"
    assert exc_info.value.status == 500


@pytest.mark.asyncio
async def test_error_body_without_message_uses_status(backend, api_client):
    backend.add("GET", "/events", json={"detail": "upstream timeout"}, status_code=504)

    with pytest.raises(ApiError) as exc_info:
        await api_client.get("/events")

    assert exc_info.value.message == "HTTP error! status: 504"
    assert exc_info.value.data == {"detail": "upstream timeout"}


@pytest.mark.asyncio
async def test_empty_success_body_returns_empty_dict(backend, api_client):
    backend.add("POST", "/rsvps/e1", handler=lambda request: httpx.Response(204))

    assert await api_client.post("/rsvps/e1", json={"status": "going"}) == {}


@pytest.mark.asyncio
async def test_invalid_json_on_success_is_a_format_error(backend, api_client):
    backend.add("GET", "/events", handler=lambda request: httpx.Response(200, text="not json"))

    with pytest.raises(ResponseFormatError):
        await api_client.get("/events")


@pytest.mark.asyncio
async def test_transport_failure_is_a_network_error():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = ApiClient(API_URL, http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)))
    try:
        with pytest.raises(NetworkError) as exc_info:
            await client.get("/events")
    finally:
        await client.aclose()

    assert exc_info.value.status == 0


@pytest.mark.asyncio
async def test_json_body_is_sent(backend, api_client):
    backend.add("POST", "/events", json={"event": {}})

    await api_client.post("/events", json={"title": "Annual Gala"})

    assert json.loads(backend.calls("POST", "/events")[0].content) == {"title": "Annual Gala"}
