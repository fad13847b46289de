import httpx
from typer.testing import CliRunner

import cli
from rsvp_portal.auth import AuthService
from rsvp_portal.config.settings import Settings
from rsvp_portal.container import build_container
from rsvp_portal.stores import InMemoryStateStorage

runner = CliRunner()

SESSION = {
    "accessToken": "jwt-123",
    "user": {"id": "u1", "email": "dana@example.com", "role": "user"},
}


def _use_backend(monkeypatch, backend, session=None):
    storage = InMemoryStateStorage({AuthService.storage_key: session} if session else None)

    async def fake_build_container():
        return await build_container(
            Settings(api_url="http://api.test/api"),
            storage=storage,
            http_client=httpx.AsyncClient(transport=backend.transport()),
        )

    monkeypatch.setattr(cli, "build_container", fake_build_container)


def test_events_lists_cached_events_with_rsvp(monkeypatch, backend, make_event):
    backend.add("GET", "/events", json={"events": [make_event("e1")]})
    backend.add("GET", "/rsvps/e1", json={"rsvp": {"status": "going"}})
    _use_backend(monkeypatch, backend, SESSION)

    result = runner.invoke(cli.app, ["events"])

    assert result.exit_code == 0, result.output
    assert "Annual Gala" in result.output
    assert "Your RSVP: going" in result.output


def test_events_requires_login(monkeypatch, backend):
    _use_backend(monkeypatch, backend)

    result = runner.invoke(cli.app, ["events"])

    assert result.exit_code == 1
    assert backend.requests == []


def test_respond_reports_total_attendees(monkeypatch, backend, make_event):
    backend.add(
        "GET",
        "/tokens/token/tok-1",
        json={"event": make_event("e1"), "token": {"email": "ann@example.com", "name": "Ann"}},
    )
    backend.add("GET", "/rsvps/token/tok-1/status", json={"hasResponded": False})
    backend.add("POST", "/rsvps/token/tok-1", json={"message": "See you there!"})
    _use_backend(monkeypatch, backend)

    result = runner.invoke(cli.app, ["respond", "tok-1", "--status", "going", "--companion"])

    assert result.exit_code == 0, result.output
    assert "See you there!" in result.output
    assert "Total attendees: 2" in result.output
