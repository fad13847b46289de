import logging

from fastapi import APIRouter, Depends, HTTPException

from rsvp_portal.api.resources import EventsApi, RsvpsApi, TokensApi
from rsvp_portal.dependencies import get_events_api, get_rsvps_api, get_tokens_api
from rsvp_portal.errors import ApiError, InvalidInputError, NotFoundError
from rsvp_portal.guests.schemas import PublicRSVPSubmission, RSVPSubmission, WorkflowView
from rsvp_portal.guests.urls import INVITATION_URL, PUBLIC_RSVP_URL
from rsvp_portal.guests.workflow import (
    PublicRSVPWorkflow,
    ResponseWorkflow,
    TokenRSVPWorkflow,
    WorkflowState,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_for_load_error(workflow: ResponseWorkflow) -> None:
    if workflow.state != WorkflowState.ERROR:
        return
    status_code = 404 if workflow.error_is_terminal else 502
    raise HTTPException(status_code=status_code, detail=workflow.error)


def _raise_unless_open(workflow: ResponseWorkflow) -> None:
    if workflow.state == WorkflowState.ALREADY_RESPONDED:
        raise HTTPException(status_code=409, detail="You have already responded to this invitation")
    if workflow.is_past_event:
        raise HTTPException(status_code=409, detail="This event has already taken place")


async def _submit(workflow: ResponseWorkflow, submission: RSVPSubmission) -> None:
    try:
        submission.fill(workflow.form)
        await workflow.submit()
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ApiError as e:
        logger.warning("RSVP submission rejected by the API: %s", e.message)
        raise HTTPException(status_code=502, detail=e.message)


@router.get(INVITATION_URL, response_model=WorkflowView)
async def get_invitation(
    token: str,
    tokens_api: TokensApi = Depends(get_tokens_api),
    rsvps_api: RsvpsApi = Depends(get_rsvps_api),
) -> WorkflowView:
    """
    Resolve an invitation link: the event, the invitee and any recorded response.
    """
    workflow = TokenRSVPWorkflow(token, tokens_api, rsvps_api)
    await workflow.load()
    _raise_for_load_error(workflow)
    invitee_email = workflow.invitee.email if workflow.invitee else None
    return WorkflowView.from_workflow(workflow, invitee_email=invitee_email)


@router.post(INVITATION_URL, response_model=WorkflowView)
async def respond_to_invitation(
    token: str,
    submission: RSVPSubmission,
    tokens_api: TokensApi = Depends(get_tokens_api),
    rsvps_api: RsvpsApi = Depends(get_rsvps_api),
) -> WorkflowView:
    workflow = TokenRSVPWorkflow(token, tokens_api, rsvps_api)
    await workflow.load()
    _raise_for_load_error(workflow)
    _raise_unless_open(workflow)
    await _submit(workflow, submission)
    invitee_email = workflow.invitee.email if workflow.invitee else None
    return WorkflowView.from_workflow(workflow, invitee_email=invitee_email)


@router.get(PUBLIC_RSVP_URL, response_model=WorkflowView)
async def get_public_rsvp(
    event_id: str,
    email: str | None = None,
    events_api: EventsApi = Depends(get_events_api),
    rsvps_api: RsvpsApi = Depends(get_rsvps_api),
) -> WorkflowView:
    """
    Show a public event link. With an email, also report whether that guest already responded.
    """
    workflow = PublicRSVPWorkflow(event_id, events_api, rsvps_api)
    await workflow.load()
    _raise_for_load_error(workflow)
    if email:
        try:
            await workflow.check(email)
        except InvalidInputError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return WorkflowView.from_workflow(workflow, invitee_email=workflow.guest_email or None)


@router.post(PUBLIC_RSVP_URL, response_model=WorkflowView)
async def respond_to_public_rsvp(
    event_id: str,
    submission: PublicRSVPSubmission,
    events_api: EventsApi = Depends(get_events_api),
    rsvps_api: RsvpsApi = Depends(get_rsvps_api),
) -> WorkflowView:
    workflow = PublicRSVPWorkflow(event_id, events_api, rsvps_api)
    await workflow.load()
    _raise_for_load_error(workflow)
    try:
        await workflow.check(submission.guest_email)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    _raise_unless_open(workflow)
    await _submit(workflow, submission)
    return WorkflowView.from_workflow(workflow, invitee_email=workflow.guest_email)
