"""CLI commands for hosts and guests of the RSVP API."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import TypeVar

import typer

from rsvp_portal.api.schemas import EmailTemplate, Event, EventInput
from rsvp_portal.auth import AuthenticationError
from rsvp_portal.config.logging import setup_logging
from rsvp_portal.container import Container, build_container
from rsvp_portal.dtos import DietaryPreference, InviteType, RSVPStatus
from rsvp_portal.errors import ApiError, InvalidInputError
from rsvp_portal.guests.workflow import TokenRSVPWorkflow, WorkflowState
from rsvp_portal.hosts.listing import ALL_CATEGORIES, EventFilter, EventSort, filter_and_sort_events

app = typer.Typer(help="CLI commands for managing events and RSVPs")

R = TypeVar("R")


def _run(action: Callable[[Container], Awaitable[R]]) -> R:
    """Run an async action against a freshly built container and map errors to exit codes."""

    async def _main() -> R:
        container = await build_container()
        try:
            return await action(container)
        finally:
            await container.aclose()

    try:
        return asyncio.run(_main())
    except (InvalidInputError, AuthenticationError) as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except ApiError as e:
        typer.secho(e.message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _require_login(container: Container) -> None:
    if not container.auth.is_authenticated:
        raise InvalidInputError("Not logged in. Run `login` first.")


def _echo_event(event: Event) -> None:
    typer.secho(event.title, fg=typer.colors.GREEN, bold=True)
    typer.secho(f"  ID: {event.id}", fg=typer.colors.BLUE)
    typer.echo(f"  Date: {event.date.isoformat()}")
    typer.echo(f"  Location: {event.location}")
    typer.echo(f"  Category: {event.category}")
    typer.echo(f"  RSVPs: {event.rsvp_count}/{event.capacity}")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stdout")):
    if verbose:
        setup_logging(logging.DEBUG)


# Account commands


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
):
    """Sign in and keep the session for later commands."""

    async def action(container: Container):
        return await container.auth.login(email, password)

    session = _run(action)
    typer.secho(f"Logged in as {session.user.email}", fg=typer.colors.GREEN)


@app.command()
def signup(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
):
    """Create an account and sign in with it."""

    async def action(container: Container):
        return await container.auth.signup(email, password)

    session = _run(action)
    typer.secho(f"Account created for {session.user.email}", fg=typer.colors.GREEN)


@app.command()
def logout():
    """Drop the session and every cached event and RSVP."""

    async def action(container: Container):
        await container.auth.logout()

    _run(action)
    typer.secho("Logged out", fg=typer.colors.GREEN)


# Event commands


@app.command()
def events(
    search: str = typer.Option("", "--search", "-s", help="Match title, description or location"),
    category: str = typer.Option(ALL_CATEGORIES, "--category", "-c"),
    when: EventFilter = typer.Option(EventFilter.ALL, "--when", "-w"),
    sort: EventSort = typer.Option(EventSort.DATE_ASC, "--sort"),
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Bypass the cache"),
):
    """List your events."""

    async def action(container: Container):
        _require_login(container)
        items = await container.events_store.fetch(force=refresh)
        await container.rsvps_store.fetch_many([event.id for event in items], force=refresh)
        return items, dict(container.rsvps_store.rsvps)

    items, rsvps = _run(action)
    selected = filter_and_sort_events(
        items, search=search, category=category, event_filter=when, sort=sort
    )
    if not selected:
        typer.secho("No events found", fg=typer.colors.YELLOW)
        return
    for event in selected:
        _echo_event(event)
        status = rsvps.get(event.id)
        typer.secho(
            f"  Your RSVP: {status.value if status else 'none'}", fg=typer.colors.CYAN
        )


@app.command()
def event(event_id: str):
    """Show one event."""

    async def action(container: Container):
        _require_login(container)
        return await container.events_store.get_by_id(event_id), container.events_store.error

    found, error = _run(action)
    if found is None:
        typer.secho(error or "Event not found", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    _echo_event(found)
    typer.echo(f"  Host: {found.host_name} <{found.host_email}> {found.host_mobile}")
    if found.description:
        typer.echo(f"  {found.description}")


def _event_input(
    title: str,
    date: datetime,
    location: str,
    category: str,
    capacity: int,
    host_name: str,
    host_mobile: str,
    host_email: str,
    description: str,
    allowed_companions: int,
) -> EventInput:
    try:
        return EventInput(
            title=title,
            description=description,
            date=date,
            location=location,
            category=category,
            capacity=capacity,
            allowed_companions=allowed_companions,
            host_name=host_name,
            host_mobile=host_mobile,
            host_email=host_email,
        )
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command()
def create_event(
    title: str = typer.Option(..., "--title", "-t"),
    date: datetime = typer.Option(..., "--date", "-d", formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]),
    location: str = typer.Option(..., "--location", "-l"),
    category: str = typer.Option(..., "--category", "-c"),
    capacity: int = typer.Option(..., "--capacity"),
    host_name: str = typer.Option(..., "--host-name"),
    host_mobile: str = typer.Option(..., "--host-mobile"),
    host_email: str = typer.Option(..., "--host-email"),
    description: str = typer.Option("", "--description"),
    allowed_companions: int = typer.Option(0, "--allowed-companions"),
):
    """Create an event."""
    event_input = _event_input(
        title, date, location, category, capacity, host_name, host_mobile, host_email,
        description, allowed_companions,
    )

    async def action(container: Container):
        _require_login(container)
        return await container.events_store.create(event_input)

    created = _run(action)
    typer.secho("Event created!", fg=typer.colors.GREEN)
    _echo_event(created)


@app.command()
def update_event(
    event_id: str,
    title: str = typer.Option(..., "--title", "-t"),
    date: datetime = typer.Option(..., "--date", "-d", formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]),
    location: str = typer.Option(..., "--location", "-l"),
    category: str = typer.Option(..., "--category", "-c"),
    capacity: int = typer.Option(..., "--capacity"),
    host_name: str = typer.Option(..., "--host-name"),
    host_mobile: str = typer.Option(..., "--host-mobile"),
    host_email: str = typer.Option(..., "--host-email"),
    description: str = typer.Option("", "--description"),
    allowed_companions: int = typer.Option(0, "--allowed-companions"),
):
    """Replace an event's details. The new date must be in the future."""
    event_input = _event_input(
        title, date, location, category, capacity, host_name, host_mobile, host_email,
        description, allowed_companions,
    )

    async def action(container: Container):
        _require_login(container)
        return await container.events_store.update(event_id, event_input)

    updated = _run(action)
    typer.secho("Event updated!", fg=typer.colors.GREEN)
    _echo_event(updated)


# Invitation commands


@app.command()
def invite(
    event_id: str,
    email: str = typer.Option(..., "--email", "-e"),
    name: str = typer.Option(None, "--name", "-n"),
):
    """Invite a guest by email."""

    async def action(container: Container):
        _require_login(container)
        return await container.invitations.invite(event_id, email, name)

    created = _run(action)
    typer.secho(f"Invitation created for {created.token.email}", fg=typer.colors.GREEN)
    if created.token.token:
        typer.secho(f"  RSVP Token: {created.token.token}", fg=typer.colors.CYAN)
    if created.email_sent:
        typer.secho("  Invitation email sent", fg=typer.colors.GREEN)
    else:
        typer.secho("  Invitation email was not sent", fg=typer.colors.YELLOW)


@app.command()
def invitations(
    event_id: str,
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
    search: str = typer.Option("", "--search", "-s"),
    status: RSVPStatus = typer.Option(None, "--status"),
    invite_type: InviteType = typer.Option(None, "--type"),
):
    """List the invitations of an event, one page at a time."""

    async def action(container: Container):
        _require_login(container)
        return await container.invitations.list_invitations(
            event_id, page=page, limit=limit, search=search, status=status, invite_type=invite_type
        )

    result = _run(action)
    for token in result.tokens:
        kind = "private" if token.is_private_invite else "public"
        answer = token.rsvp_status.value if token.rsvp_status else "pending"
        typer.echo(f"{token.email} ({token.name or '-'}) [{kind}] {answer} +{token.companions}")
    pagination = result.pagination
    typer.secho(
        f"Page {pagination.page}/{pagination.total_pages} ({pagination.total} invitations)",
        fg=typer.colors.BLUE,
    )


@app.command()
def stats(event_id: str):
    """Show response and dietary totals for an event."""

    async def action(container: Container):
        _require_login(container)
        summary, dietary, public = await asyncio.gather(
            container.analytics.rsvp_summary(event_id),
            container.analytics.dietary_stats(event_id),
            container.analytics.public_rsvps(event_id),
        )
        return summary, dietary, public

    summary, dietary, public = _run(action)
    if summary:
        typer.secho("Responses", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Going: {summary.going_count} ({summary.going_guests} guests)")
        typer.echo(f"  Not going: {summary.not_going}")
        typer.echo(f"  Pending: {summary.pending}")
        typer.echo(f"  Invited: {summary.total_invited}")
    if dietary:
        typer.secho("Dietary preferences", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  Non-veg: {dietary.nonveg}")
        typer.echo(f"  Veg: {dietary.veg}")
        typer.echo(f"  Vegan: {dietary.vegan}")
        typer.echo(f"  Not specified: {dietary.not_specified}")
    typer.secho(f"Public link responses: {len(public)}", fg=typer.colors.BLUE)


# RSVP commands


@app.command()
def rsvp(event_id: str, status: RSVPStatus):
    """Record your own RSVP for an event."""

    async def action(container: Container):
        _require_login(container)
        await container.rsvps_store.create(event_id, status)

    _run(action)
    typer.secho(f"RSVP recorded: {status.value}", fg=typer.colors.GREEN)


@app.command()
def respond(
    token: str,
    status: RSVPStatus = typer.Option(..., "--status"),
    name: str = typer.Option("", "--name", "-n", help="Defaults to the invitee's name"),
    companion: bool = typer.Option(False, "--companion"),
    dietary: DietaryPreference = typer.Option(None, "--dietary"),
    companion_dietary: DietaryPreference = typer.Option(None, "--companion-dietary"),
):
    """Answer an invitation link as its guest."""

    async def action(container: Container):
        workflow = TokenRSVPWorkflow(token, container.tokens_api, container.rsvps_api)
        state = await workflow.load()
        if state == WorkflowState.ERROR:
            raise InvalidInputError(workflow.error or "Failed to load invitation")
        if state == WorkflowState.ALREADY_RESPONDED:
            return workflow
        if workflow.is_past_event:
            raise InvalidInputError("This event has already taken place")

        workflow.form.select_status(status)
        if name.strip():
            workflow.form.set_guest_name(name)
        workflow.form.set_companion(companion)
        workflow.form.choose_dietary_preference(dietary)
        workflow.form.choose_companion_dietary_preference(companion_dietary)
        await workflow.submit()
        return workflow

    workflow = _run(action)
    response = workflow.response
    if workflow.state == WorkflowState.ALREADY_RESPONDED:
        typer.secho("You have already responded to this invitation", fg=typer.colors.YELLOW)
    else:
        typer.secho(workflow.success_message or "RSVP submitted!", fg=typer.colors.GREEN)
    if response and response.status:
        typer.echo(f"  Status: {response.status.value}")
        typer.echo(f"  Total attendees: {response.total_attendees}")


# Email template commands


@app.command()
def template(
    event_id: str = typer.Option(None, "--event", help="Event template instead of the default"),
    header_text: str = typer.Option(None, "--header"),
    footer_text: str = typer.Option(None, "--footer"),
    primary_color: str = typer.Option(None, "--primary-color"),
    secondary_color: str = typer.Option(None, "--secondary-color"),
    host_name: str = typer.Option(None, "--host-name"),
):
    """Show an email template, or update it when any field is given."""
    updates = {
        key: value
        for key, value in {
            "header_text": header_text,
            "footer_text": footer_text,
            "primary_color": primary_color,
            "secondary_color": secondary_color,
            "host_name": host_name,
        }.items()
        if value is not None
    }

    async def action(container: Container):
        _require_login(container)
        current = await container.templates.get(event_id)
        if not updates:
            return current
        base = current or EmailTemplate(event_id=event_id)
        return await container.templates.save(base.model_copy(update=updates))

    result = _run(action)
    if result is None:
        typer.secho("No template saved yet", fg=typer.colors.YELLOW)
        return
    for key, value in result.model_dump(exclude_none=True).items():
        typer.echo(f"{key}: {value}")


@app.command()
def upload_logo(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    event_id: str = typer.Option(None, "--event"),
):
    """Upload a logo image for invitation emails."""

    async def action(container: Container):
        _require_login(container)
        return await container.templates.upload_logo(path, event_id=event_id)

    result = _run(action)
    typer.secho("Logo uploaded!", fg=typer.colors.GREEN)
    typer.secho(f"  URL: {result.logo_url}", fg=typer.colors.CYAN)


if __name__ == "__main__":
    app()
