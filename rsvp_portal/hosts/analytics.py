"""Event analytics for hosts.

All reads here are best-effort: a failure is logged and the widget it feeds
shows nothing rather than an error.
"""

import logging
from dataclasses import dataclass

from rsvp_portal.api.resources import RsvpsApi, TokensApi
from rsvp_portal.api.schemas import DietaryStats, InvitationToken, PublicRSVP
from rsvp_portal.dtos import RSVPStatus
from rsvp_portal.errors import ApiError, SessionExpiredError

logger = logging.getLogger(__name__)

SUMMARY_PAGE_SIZE = 100


@dataclass(frozen=True)
class RSVPSummary:
    going_count: int
    going_guests: int
    not_going: int
    pending: int
    total_invited: int

    @classmethod
    def from_tokens(cls, tokens: list[InvitationToken]) -> "RSVPSummary":
        going = [token for token in tokens if token.rsvp_status == RSVPStatus.GOING]
        return cls(
            going_count=len(going),
            # each response counts the guest plus their companions
            going_guests=sum(1 + token.companions for token in going),
            not_going=sum(1 for token in tokens if token.rsvp_status == RSVPStatus.NOT_GOING),
            pending=sum(1 for token in tokens if token.rsvp_status is None),
            total_invited=len(tokens),
        )


class EventAnalytics:
    def __init__(self, rsvps_api: RsvpsApi, tokens_api: TokensApi) -> None:
        self._rsvps_api = rsvps_api
        self._tokens_api = tokens_api

    async def dietary_stats(self, event_id: str) -> DietaryStats | None:
        try:
            return await self._rsvps_api.dietary_stats(event_id)
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.warning("Failed to load dietary stats for %s: %s", event_id, e.message)
            return None

    async def public_rsvps(self, event_id: str) -> list[PublicRSVP]:
        try:
            return await self._rsvps_api.public_rsvps(event_id)
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.warning("Failed to load public RSVPs for %s: %s", event_id, e.message)
            return []

    async def rsvp_summary(self, event_id: str) -> RSVPSummary | None:
        """Aggregate every invitation (private and public) across all pages."""
        tokens: list[InvitationToken] = []
        page = 1
        try:
            while True:
                result = await self._tokens_api.list_page(
                    event_id, page=page, limit=SUMMARY_PAGE_SIZE
                )
                tokens.extend(result.tokens)
                if page >= result.pagination.total_pages or not result.tokens:
                    break
                page += 1
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.warning("Failed to load invitations for %s: %s", event_id, e.message)
            return None
        return RSVPSummary.from_tokens(tokens)
