"""Guest response workflows.

Both flows share the same states:

    LOADING -> ERROR | ALREADY_RESPONDED | AWAITING_RESPONSE -> SUBMITTED

A not-found invitation or event is a terminal error. Once the event is known,
any later load failure, a 404 included, leaves the form usable next to the
error. ALREADY_RESPONDED and SUBMITTED accept no further input. The
response form is only offered while AWAITING_RESPONSE and only for events
that have not started yet.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from rsvp_portal.api.resources import EventsApi, RsvpsApi, TokensApi
from rsvp_portal.api.schemas import Event, Invitee, RecordedRSVP, SubmittedRSVP
from rsvp_portal.dtos import DietaryPreference, RSVPStatus
from rsvp_portal.errors import ApiError, InvalidInputError, NotFoundError
from rsvp_portal.guests.form import ResponseForm, companion_limit
from rsvp_portal.utils import as_utc, validate_email

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired invitation link"
EVENT_NOT_FOUND_MESSAGE = "Event not found"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowState(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    ALREADY_RESPONDED = "already_responded"
    AWAITING_RESPONSE = "awaiting_response"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class RecordedResponse:
    status: RSVPStatus | None
    companions: int
    total_attendees: int
    responded_at: datetime | None
    dietary_preference: DietaryPreference | None = None
    companion_dietary_preference: DietaryPreference | None = None

    @classmethod
    def from_api(cls, rsvp: RecordedRSVP | None) -> "RecordedResponse":
        rsvp = rsvp or RecordedRSVP()
        attendees = rsvp.total_attendees
        if attendees is None:
            attendees = 1 + rsvp.companions if rsvp.status == RSVPStatus.GOING else 0
        return cls(
            status=rsvp.status,
            companions=rsvp.companions,
            total_attendees=attendees,
            responded_at=rsvp.responded_at,
            dietary_preference=rsvp.dietary_preference,
            companion_dietary_preference=rsvp.companion_dietary_preference,
        )

    @classmethod
    def from_submission(
        cls, form: ResponseForm, rsvp: RecordedRSVP | None, responded_at: datetime
    ) -> "RecordedResponse":
        total_attendees = rsvp.total_attendees if rsvp and rsvp.total_attendees is not None else None
        return cls(
            status=form.status,
            companions=form.companions,
            total_attendees=form.attendees if total_attendees is None else total_attendees,
            responded_at=responded_at,
            dietary_preference=form.dietary_preference,
            companion_dietary_preference=form.companion_dietary_preference,
        )


class ResponseWorkflow(ABC):
    not_found_message = EVENT_NOT_FOUND_MESSAGE

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self.state = WorkflowState.LOADING
        self.event: Event | None = None
        self.error: str | None = None
        self.error_is_terminal = False
        self.success_message: str | None = None
        self.response: RecordedResponse | None = None
        self.form = ResponseForm()
        self.is_submitting = False

    @property
    def is_past_event(self) -> bool:
        return self.event is not None and as_utc(self.event.date) < self._clock()

    @property
    def form_available(self) -> bool:
        return self.state == WorkflowState.AWAITING_RESPONSE and not self.is_past_event

    @property
    def can_submit(self) -> bool:
        return self.form_available and self.form.is_complete and not self.is_submitting

    @abstractmethod
    async def _load(self) -> None:
        """Resolve the event and any recorded response."""
        raise NotImplementedError

    @abstractmethod
    async def _send(self) -> SubmittedRSVP:
        raise NotImplementedError

    def _validate_submission(self) -> None:
        """Extra checks a flow needs before sending."""

    async def load(self) -> WorkflowState:
        # Only a fresh or retryable workflow is (re)loaded.
        if self.state != WorkflowState.LOADING and not (
            self.state == WorkflowState.ERROR and not self.error_is_terminal
        ):
            return self.state

        self.state = WorkflowState.LOADING
        self.error = None
        try:
            await self._load()
        except ApiError as e:
            self._fail_loading(e)
        return self.state

    async def submit(self) -> RecordedResponse:
        if not self.form_available:
            raise InvalidInputError("This invitation is not accepting responses")
        if self.is_submitting:
            raise InvalidInputError("Your response is already being submitted")
        if not self.form.is_complete:
            raise InvalidInputError("Please choose a response and enter your name")
        self._validate_submission()

        self.is_submitting = True
        self.error = None
        self.success_message = None
        try:
            result = await self._send()
        except ApiError as e:
            self.error = e.message or "Failed to submit RSVP"
            logger.info("RSVP submission failed: %s", self.error)
            raise
        finally:
            self.is_submitting = False

        self.success_message = result.message or None
        self.response = RecordedResponse.from_submission(self.form, result.rsvp, self._clock())
        self.state = WorkflowState.SUBMITTED
        return self.response

    def _event_loaded(self, event: Event) -> None:
        self.event = event
        self.form.max_companions = companion_limit(event)

    def _record_existing(self, rsvp: RecordedRSVP | None) -> None:
        self.response = RecordedResponse.from_api(rsvp)
        self.state = WorkflowState.ALREADY_RESPONDED

    def _fail_loading(self, error: ApiError) -> None:
        if isinstance(error, NotFoundError) and self.event is None:
            self.error = self.not_found_message
            self.error_is_terminal = True
            self.state = WorkflowState.ERROR
        elif self.event is None:
            self.error = error.message or "Failed to load event details"
            self.state = WorkflowState.ERROR
        else:
            # The event is known, so the form stays usable next to the error.
            self.error = error.message or "Failed to load event details"
            self.state = WorkflowState.AWAITING_RESPONSE


class TokenRSVPWorkflow(ResponseWorkflow):
    """Response flow for a private invitation link."""

    not_found_message = INVALID_TOKEN_MESSAGE

    def __init__(
        self,
        token: str,
        tokens_api: TokensApi,
        rsvps_api: RsvpsApi,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(clock=clock)
        self.token = token
        self.invitee: Invitee | None = None
        self._tokens_api = tokens_api
        self._rsvps_api = rsvps_api

    async def _load(self) -> None:
        lookup = await self._tokens_api.get_by_token(self.token)
        self._event_loaded(lookup.event)
        self.invitee = lookup.token
        self.form.guest_name = lookup.token.name or ""

        status = await self._rsvps_api.check_token_status(self.token)
        if status.has_responded:
            self._record_existing(status.rsvp)
        else:
            self.state = WorkflowState.AWAITING_RESPONSE

    async def _send(self) -> SubmittedRSVP:
        return await self._rsvps_api.submit_with_token(
            self.token,
            self.form.status,
            companions=self.form.companions,
            guest_name=self.form.guest_name,
            dietary_preference=self.form.dietary_preference,
            companion_dietary_preference=self.form.companion_dietary_preference,
        )


class PublicRSVPWorkflow(ResponseWorkflow):
    """Response flow for an event's shareable link, keyed by the guest's email."""

    def __init__(
        self,
        event_id: str,
        events_api: EventsApi,
        rsvps_api: RsvpsApi,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(clock=clock)
        self.event_id = event_id
        self.guest_email = ""
        self._events_api = events_api
        self._rsvps_api = rsvps_api

    async def _load(self) -> None:
        self._event_loaded(await self._events_api.get_public(self.event_id))
        self.state = WorkflowState.AWAITING_RESPONSE

    def set_email(self, email: str) -> None:
        self.guest_email = validate_email(email)

    async def check(self, email: str) -> WorkflowState:
        """Look up an earlier response for this email before showing the form."""
        self.set_email(email)
        if self.state != WorkflowState.AWAITING_RESPONSE:
            return self.state

        try:
            status = await self._rsvps_api.check_public_status(self.event_id, self.guest_email)
        except ApiError as e:
            # Form stays open; duplicates are still rejected on submit.
            logger.warning("Public RSVP check failed for %s: %s", self.event_id, e.message)
            self.error = e.message or "Failed to check your RSVP"
            return self.state

        if status.has_responded:
            self._record_existing(status.rsvp)
        return self.state

    def _validate_submission(self) -> None:
        if not self.guest_email:
            raise InvalidInputError("Please enter a valid email address")

    async def _send(self) -> SubmittedRSVP:
        return await self._rsvps_api.submit_public(
            self.event_id,
            self.form.status,
            guest_name=self.form.guest_name,
            guest_email=self.guest_email,
            companions=self.form.companions,
            dietary_preference=self.form.dietary_preference,
            companion_dietary_preference=self.form.companion_dietary_preference,
        )
