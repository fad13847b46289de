import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    """Health check reports the environment and upstream API."""
    response = await client.get("/healthz/")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "0.1.0"
    assert data["api_url"]
    assert data["environment"]


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Root endpoint greets the caller."""
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to the RSVP Portal API"
