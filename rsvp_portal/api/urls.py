from urllib.parse import quote

EVENTS_URL = "/events"
EVENT_URL = "/events/{event_id}"
PUBLIC_EVENT_URL = "/events/public/{event_id}"

EVENT_TOKENS_URL = "/tokens/{event_id}"
TOKEN_LOOKUP_URL = "/tokens/token/{token}"

TOKEN_RSVP_URL = "/rsvps/token/{token}"
TOKEN_RSVP_STATUS_URL = "/rsvps/token/{token}/status"
PUBLIC_RSVP_URL = "/rsvps/public/{event_id}"
PUBLIC_RSVP_CHECK_URL = "/rsvps/public/{event_id}/check/{email}"
USER_RSVP_URL = "/rsvps/{event_id}"
DIETARY_STATS_URL = "/rsvps/event/{event_id}/dietary-stats"
PUBLIC_RSVPS_URL = "/rsvps/event/{event_id}/public-rsvps"

EMAIL_TEMPLATES_URL = "/email-templates"
EMAIL_TEMPLATE_LOGO_URL = "/email-templates/upload-logo"

LOGIN_URL = "/auth/login"
SIGNUP_URL = "/auth/signup"


def build_path(template: str, **params: str) -> str:
    """Fill a path template, escaping each value as a single path segment."""
    return template.format(**{key: quote(str(value), safe="") for key, value in params.items()})
