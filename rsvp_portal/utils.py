import re
from datetime import datetime, timezone

from pydantic import EmailStr, TypeAdapter, ValidationError

from rsvp_portal.errors import InvalidInputError

_UNSAFE_CHARS = re.compile(r"[<>\"']")
_email_adapter = TypeAdapter(EmailStr)


def sanitize_string(value: str) -> str:
    return _UNSAFE_CHARS.sub("", value.strip())


def sanitize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> str:
    """Return the normalised email, or raise InvalidInputError if it is malformed."""
    cleaned = sanitize_email(email)
    try:
        _email_adapter.validate_python(cleaned)
    except ValidationError as e:
        raise InvalidInputError("Please enter a valid email address") from e
    return cleaned


def as_utc(value: datetime) -> datetime:
    # The API sends ISO timestamps; naive ones are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timestamp_to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
