from datetime import datetime

from pydantic import BaseModel

from rsvp_portal.api.schemas import Event
from rsvp_portal.dtos import DietaryPreference, RSVPStatus
from rsvp_portal.guests.form import ResponseForm
from rsvp_portal.guests.workflow import RecordedResponse, ResponseWorkflow, WorkflowState


class RSVPSubmission(BaseModel):
    status: RSVPStatus
    with_companion: bool = False
    # Token invitations fall back to the invitee's name when left blank
    guest_name: str = ""
    dietary_preference: DietaryPreference | None = None
    companion_dietary_preference: DietaryPreference | None = None

    def fill(self, form: ResponseForm) -> None:
        form.select_status(self.status)
        if self.guest_name.strip():
            form.set_guest_name(self.guest_name)
        form.set_companion(self.with_companion)
        form.choose_dietary_preference(self.dietary_preference)
        form.choose_companion_dietary_preference(self.companion_dietary_preference)


class PublicRSVPSubmission(RSVPSubmission):
    guest_email: str


class EventSummary(BaseModel):
    id: str
    title: str
    description: str
    date: datetime
    location: str
    host_name: str
    allowed_companions: int | None = None

    @classmethod
    def from_event(cls, event: Event) -> "EventSummary":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            date=event.date,
            location=event.location,
            host_name=event.host_name,
            allowed_companions=event.allowed_companions,
        )


class FormView(BaseModel):
    guest_name: str
    companion_allowed: bool
    max_companions: int


class ResponseView(BaseModel):
    status: RSVPStatus | None
    companions: int
    total_attendees: int
    responded_at: datetime | None
    dietary_preference: DietaryPreference | None = None
    companion_dietary_preference: DietaryPreference | None = None

    @classmethod
    def from_response(cls, response: RecordedResponse) -> "ResponseView":
        return cls(
            status=response.status,
            companions=response.companions,
            total_attendees=response.total_attendees,
            responded_at=response.responded_at,
            dietary_preference=response.dietary_preference,
            companion_dietary_preference=response.companion_dietary_preference,
        )


class WorkflowView(BaseModel):
    """What a guest sees for an invitation or public RSVP link."""

    state: WorkflowState
    event: EventSummary | None = None
    invitee_email: str | None = None
    error: str | None = None
    success_message: str | None = None
    is_past_event: bool = False
    form: FormView | None = None
    response: ResponseView | None = None

    @classmethod
    def from_workflow(
        cls, workflow: ResponseWorkflow, invitee_email: str | None = None
    ) -> "WorkflowView":
        form = None
        if workflow.form_available:
            form = FormView(
                guest_name=workflow.form.guest_name,
                # Whether a companion is possible once the guest says yes
                companion_allowed=workflow.form.max_companions >= 1,
                max_companions=workflow.form.max_companions,
            )
        return cls(
            state=workflow.state,
            event=EventSummary.from_event(workflow.event) if workflow.event else None,
            invitee_email=invitee_email,
            error=workflow.error,
            success_message=workflow.success_message,
            is_past_event=workflow.is_past_event,
            form=form,
            response=ResponseView.from_response(workflow.response) if workflow.response else None,
        )
