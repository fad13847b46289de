import json
from datetime import datetime, timezone

import pytest

from rsvp_portal.dtos import RSVPStatus
from rsvp_portal.errors import InvalidInputError
from rsvp_portal.guests.workflow import PublicRSVPWorkflow, WorkflowState

EVENT_URL = "/events/public/e1"
SUBMIT_URL = "/rsvps/public/e1"
CHECK_URL = "/rsvps/public/e1/check/ann@example.com"


def _now() -> datetime:
    return datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def workflow(events_api, rsvps_api):
    return PublicRSVPWorkflow("e1", events_api, rsvps_api, clock=_now)


@pytest.fixture
def public_event(backend, make_event):
    backend.add("GET", EVENT_URL, json={"event": make_event("e1")})


@pytest.mark.asyncio
async def test_unknown_event_is_terminal(backend, workflow):
    backend.add("GET", EVENT_URL, json={"error": "Event not found"}, status_code=404)

    assert await workflow.load() == WorkflowState.ERROR
    assert workflow.error == "Event not found"
    assert workflow.error_is_terminal


@pytest.mark.asyncio
async def test_new_guest_submits(backend, public_event, workflow):
    backend.add("GET", CHECK_URL, json={"hasResponded": False})
    backend.add("POST", SUBMIT_URL, json={"message": "Thanks for responding!"})
    await workflow.load()

    assert await workflow.check(" Ann@Example.com ") == WorkflowState.AWAITING_RESPONSE
    workflow.form.select_status(RSVPStatus.GOING)
    workflow.form.set_guest_name("Ann Lee")
    workflow.form.set_companion(True)
    response = await workflow.submit()

    assert response.total_attendees == 2
    assert workflow.state == WorkflowState.SUBMITTED
    body = json.loads(backend.calls("POST", SUBMIT_URL)[0].content)
    assert body == {
        "status": "going",
        "companions": 1,
        "guestName": "Ann Lee",
        "guestEmail": "ann@example.com",
    }


@pytest.mark.asyncio
async def test_returning_guest_sees_recorded_answer(backend, public_event, workflow):
    backend.add(
        "GET", CHECK_URL, json={"hasResponded": True, "rsvp": {"status": "not-going", "companions": 0}}
    )
    await workflow.load()

    assert await workflow.check("ann@example.com") == WorkflowState.ALREADY_RESPONDED
    assert workflow.response.status == RSVPStatus.NOT_GOING
    assert workflow.response.total_attendees == 0


@pytest.mark.asyncio
async def test_invalid_email_is_rejected_before_any_call(backend, public_event, workflow):
    await workflow.load()

    with pytest.raises(InvalidInputError, match="valid email"):
        await workflow.check("not-an-email")

    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_submit_without_email_is_rejected(backend, public_event, workflow):
    await workflow.load()
    workflow.form.select_status(RSVPStatus.NOT_GOING)
    workflow.form.set_guest_name("Ann")

    with pytest.raises(InvalidInputError):
        await workflow.submit()

    assert backend.count("POST", SUBMIT_URL) == 0


@pytest.mark.asyncio
async def test_failed_check_leaves_form_open(backend, public_event, workflow):
    backend.add("GET", CHECK_URL, json={"error": "Service unavailable"}, status_code=503)
    await workflow.load()

    assert await workflow.check("ann@example.com") == WorkflowState.AWAITING_RESPONSE
    assert workflow.error == "Service unavailable"
    assert workflow.form_available
