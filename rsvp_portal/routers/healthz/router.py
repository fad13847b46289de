from fastapi import APIRouter
from pydantic import BaseModel

from rsvp_portal.config.settings import settings

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str
    version: str = "0.1.0"
    environment: str
    api_url: str


@router.get("/", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """
    Report that the portal is up and which RSVP API it talks to.
    """
    return HealthCheckResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        api_url=settings.api_url,
    )
