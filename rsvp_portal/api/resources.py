"""Typed wrappers around each group of endpoints of the external RSVP API."""

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from rsvp_portal.api import urls
from rsvp_portal.api.client import ApiClient
from rsvp_portal.api.schemas import (
    CreatedInvitation,
    DietaryStats,
    EmailTemplate,
    Event,
    EventInput,
    LoginResult,
    PublicRSVP,
    ResponseStatus,
    SubmittedRSVP,
    TokenLookup,
    TokenPage,
    UserRSVP,
)
from rsvp_portal.dtos import DietaryPreference, InviteType, RSVPStatus
from rsvp_portal.errors import ResponseFormatError

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected {model.__name__} payload", 200, payload) from e


def _field(data: Any, key: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise ResponseFormatError(f"Missing '{key}' in API response", 200, data)
    return data[key]


def _response_body(
    status: RSVPStatus,
    companions: int,
    dietary_preference: DietaryPreference | None,
    companion_dietary_preference: DietaryPreference | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"status": status.value, "companions": companions}
    # Optional fields are only sent when they carry a value
    if dietary_preference:
        body["dietaryPreference"] = dietary_preference.value
    if companion_dietary_preference:
        body["companionDietaryPreference"] = companion_dietary_preference.value
    return body


class EventsApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_all(self) -> list[Event]:
        data = await self._client.get(urls.EVENTS_URL)
        return [_parse(Event, item) for item in _field(data, "events")]

    async def get(self, event_id: str) -> Event:
        data = await self._client.get(urls.build_path(urls.EVENT_URL, event_id=event_id))
        return _parse(Event, _field(data, "event"))

    async def get_public(self, event_id: str) -> Event:
        data = await self._client.get(
            urls.build_path(urls.PUBLIC_EVENT_URL, event_id=event_id), auth=False
        )
        return _parse(Event, _field(data, "event"))

    async def create(self, event_input: EventInput) -> Event:
        data = await self._client.post(urls.EVENTS_URL, json=event_input.to_payload())
        return _parse(Event, _field(data, "event"))

    async def update(self, event_id: str, event_input: EventInput) -> Event:
        data = await self._client.put(
            urls.build_path(urls.EVENT_URL, event_id=event_id),
            json=event_input.to_payload(),
        )
        return _parse(Event, _field(data, "event"))


class RsvpsApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get(self, event_id: str) -> UserRSVP | None:
        """The signed-in user's own RSVP for an event, if any."""
        data = await self._client.get(urls.build_path(urls.USER_RSVP_URL, event_id=event_id))
        rsvp = _field(data, "rsvp")
        return _parse(UserRSVP, rsvp) if rsvp else None

    async def create(self, event_id: str, status: RSVPStatus) -> dict:
        return await self._client.post(
            urls.build_path(urls.USER_RSVP_URL, event_id=event_id),
            json={"status": status.value},
        )

    async def submit_with_token(
        self,
        token: str,
        status: RSVPStatus,
        companions: int = 0,
        guest_name: str | None = None,
        dietary_preference: DietaryPreference | None = None,
        companion_dietary_preference: DietaryPreference | None = None,
    ) -> SubmittedRSVP:
        body = _response_body(status, companions, dietary_preference, companion_dietary_preference)
        if guest_name and guest_name.strip():
            body["guestName"] = guest_name.strip()
        data = await self._client.post(
            urls.build_path(urls.TOKEN_RSVP_URL, token=token), json=body, auth=False
        )
        return _parse(SubmittedRSVP, data)

    async def check_token_status(self, token: str) -> ResponseStatus:
        data = await self._client.get(
            urls.build_path(urls.TOKEN_RSVP_STATUS_URL, token=token), auth=False
        )
        return _parse(ResponseStatus, data)

    async def submit_public(
        self,
        event_id: str,
        status: RSVPStatus,
        guest_name: str,
        guest_email: str,
        companions: int = 0,
        dietary_preference: DietaryPreference | None = None,
        companion_dietary_preference: DietaryPreference | None = None,
    ) -> SubmittedRSVP:
        body = _response_body(status, companions, dietary_preference, companion_dietary_preference)
        body["guestName"] = guest_name.strip()
        body["guestEmail"] = guest_email.strip()
        data = await self._client.post(
            urls.build_path(urls.PUBLIC_RSVP_URL, event_id=event_id), json=body, auth=False
        )
        return _parse(SubmittedRSVP, data)

    async def check_public_status(self, event_id: str, email: str) -> ResponseStatus:
        data = await self._client.get(
            urls.build_path(urls.PUBLIC_RSVP_CHECK_URL, event_id=event_id, email=email),
            auth=False,
        )
        return _parse(ResponseStatus, data)

    async def dietary_stats(self, event_id: str) -> DietaryStats:
        data = await self._client.get(urls.build_path(urls.DIETARY_STATS_URL, event_id=event_id))
        return _parse(DietaryStats, data)

    async def public_rsvps(self, event_id: str) -> list[PublicRSVP]:
        data = await self._client.get(urls.build_path(urls.PUBLIC_RSVPS_URL, event_id=event_id))
        return [_parse(PublicRSVP, item) for item in _field(data, "rsvps")]


class TokensApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_page(
        self,
        event_id: str,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        status: RSVPStatus | None = None,
        invite_type: InviteType | None = None,
    ) -> TokenPage:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if status:
            params["status"] = status.value
        if invite_type:
            params["inviteType"] = invite_type.value
        data = await self._client.get(
            urls.build_path(urls.EVENT_TOKENS_URL, event_id=event_id), params=params
        )
        return _parse(TokenPage, data)

    async def create(self, event_id: str, email: str, name: str | None = None) -> CreatedInvitation:
        body: dict[str, Any] = {"email": email}
        if name:
            body["name"] = name
        data = await self._client.post(
            urls.build_path(urls.EVENT_TOKENS_URL, event_id=event_id), json=body
        )
        return _parse(CreatedInvitation, data)

    async def get_by_token(self, token: str) -> TokenLookup:
        data = await self._client.get(
            urls.build_path(urls.TOKEN_LOOKUP_URL, token=token), auth=False
        )
        return _parse(TokenLookup, data)


class EmailTemplatesApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get(self, event_id: str | None = None) -> EmailTemplate | None:
        params = {"eventId": event_id} if event_id else None
        data = await self._client.get(urls.EMAIL_TEMPLATES_URL, params=params)
        template = _field(data, "template")
        return _parse(EmailTemplate, template) if template else None

    async def save(self, template: EmailTemplate) -> EmailTemplate:
        data = await self._client.post(urls.EMAIL_TEMPLATES_URL, json=template.to_payload())
        return _parse(EmailTemplate, _field(data, "template"))

    async def upload_logo(self, logo_data: str) -> str:
        """Upload a base64 data URL and return the hosted logo URL."""
        data = await self._client.post(urls.EMAIL_TEMPLATE_LOGO_URL, json={"logoData": logo_data})
        return _field(data, "logoUrl")


class AuthApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def login(self, email: str, password: str) -> LoginResult:
        data = await self._client.post(
            urls.LOGIN_URL, json={"email": email, "password": password}, auth=False
        )
        return _parse(LoginResult, data)

    async def signup(self, email: str, password: str) -> dict:
        return await self._client.post(
            urls.SIGNUP_URL, json={"email": email, "password": password}, auth=False
        )
