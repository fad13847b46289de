from rsvp_portal.api.resources import TokensApi
from rsvp_portal.api.schemas import CreatedInvitation, TokenPage
from rsvp_portal.dtos import InviteType, RSVPStatus
from rsvp_portal.errors import InvalidInputError
from rsvp_portal.utils import sanitize_string, validate_email

DEFAULT_PAGE_SIZE = 10


class InvitationService:
    """Host-side invitation management for one event at a time."""

    def __init__(self, tokens_api: TokensApi) -> None:
        self._tokens_api = tokens_api

    async def invite(self, event_id: str, email: str, name: str | None = None) -> CreatedInvitation:
        """Issue a private invitation token; the API emails the link if it can."""
        clean_email = validate_email(email)
        clean_name = sanitize_string(name) if name else None
        return await self._tokens_api.create(event_id, clean_email, clean_name or None)

    async def list_invitations(
        self,
        event_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        search: str = "",
        status: RSVPStatus | None = None,
        invite_type: InviteType | None = None,
    ) -> TokenPage:
        if page < 1:
            raise InvalidInputError("Page numbers start at 1")
        return await self._tokens_api.list_page(
            event_id,
            page=page,
            limit=limit,
            search=search.strip(),
            status=status,
            invite_type=invite_type,
        )
