"""Pydantic models for the external RSVP API's JSON payloads (camelCase on the wire)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from rsvp_portal.dtos import DietaryPreference, RSVPStatus, UserRole


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Event(ApiModel):
    id: str
    title: str
    description: str = ""
    date: datetime
    location: str = ""
    category: str = ""
    capacity: int = 0
    # None when the endpoint does not report it (token and public lookups)
    allowed_companions: int | None = None
    host_name: str = ""
    host_mobile: str = ""
    host_email: str = ""
    rsvp_count: int = 0
    image: str | None = None


class EventInput(ApiModel):
    """Body for creating or updating an event."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    date: datetime
    location: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    allowed_companions: int = Field(default=0, ge=0)
    host_name: str
    host_mobile: str
    host_email: EmailStr


class Invitee(ApiModel):
    email: str
    name: str | None = None


class TokenLookup(ApiModel):
    """Event and invitee an invitation token resolves to."""

    event: Event
    token: Invitee


class InvitationToken(ApiModel):
    id: str
    email: str
    name: str | None = None
    # None for synthesized public-link records
    token: str | None = None
    rsvp_status: RSVPStatus | None = None
    companions: int = 0
    created_at: datetime | None = None
    is_private_invite: bool = True


class Pagination(ApiModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 1


class TokenPage(ApiModel):
    tokens: list[InvitationToken] = []
    pagination: Pagination = Pagination()


class CreatedInvitation(ApiModel):
    token: InvitationToken
    email_sent: bool = False


class RecordedRSVP(ApiModel):
    status: RSVPStatus | None = None
    companions: int = 0
    total_attendees: int | None = None
    responded_at: datetime | None = None
    guest_name: str | None = None
    dietary_preference: DietaryPreference | None = None
    companion_dietary_preference: DietaryPreference | None = None


class ResponseStatus(ApiModel):
    """Answer of the token and public-link status checks."""

    has_responded: bool = False
    rsvp: RecordedRSVP | None = None


class SubmittedRSVP(ApiModel):
    message: str = ""
    rsvp: RecordedRSVP | None = None


class UserRSVP(ApiModel):
    id: str | None = None
    event_id: str | None = None
    user_id: str | None = None
    status: RSVPStatus
    created_at: datetime | None = None


class DietaryStats(ApiModel):
    nonveg: int = 0
    veg: int = 0
    vegan: int = 0
    not_specified: int = 0

    @property
    def total(self) -> int:
        return self.nonveg + self.veg + self.vegan + self.not_specified


class PublicRSVP(ApiModel):
    id: str | None = None
    guest_name: str | None = None
    guest_email: str | None = None
    status: RSVPStatus | None = None
    companions: int = 0
    dietary_preference: DietaryPreference | None = None
    companion_dietary_preference: DietaryPreference | None = None
    created_at: datetime | None = None


class EmailTemplate(ApiModel):
    event_id: str | None = None
    logo_url: str | None = None
    host_name: str = ""
    primary_color: str = "#000000"
    secondary_color: str = "#ffffff"
    text_color: str | None = None
    event_details_background_color: str | None = None
    font_family: str = "Arial, sans-serif"
    header_text: str = ""
    sample_event_title: str | None = None
    footer_text: str = ""
    button_text: str | None = None
    button_radius: str | None = None
    show_emojis: bool | None = None
    description_text: str | None = None
    is_default: bool | None = None


class AuthUser(ApiModel):
    id: str
    email: str
    role: UserRole = UserRole.USER


class LoginResult(ApiModel):
    token: str
    user: AuthUser
