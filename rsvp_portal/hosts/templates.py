import base64
import mimetypes
from pathlib import Path

from rsvp_portal.api.resources import EmailTemplatesApi
from rsvp_portal.api.schemas import EmailTemplate
from rsvp_portal.errors import InvalidInputError

MAX_LOGO_BYTES = 2 * 1024 * 1024  # 2 MB
LOGO_MIME_TYPES = ("image/png", "image/jpeg", "image/gif", "image/svg+xml", "image/webp")


def encode_logo(path: Path) -> str:
    """Read an image file and return it as a base64 data URL."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type not in LOGO_MIME_TYPES:
        raise InvalidInputError(f"Unsupported logo type: {path.suffix or path.name}")

    data = path.read_bytes()
    if len(data) > MAX_LOGO_BYTES:
        raise InvalidInputError("Logo must be 2 MB or smaller")

    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class EmailTemplateService:
    """Branding for invitation emails, either the host default or per event."""

    def __init__(self, email_templates_api: EmailTemplatesApi) -> None:
        self._api = email_templates_api

    async def get(self, event_id: str | None = None) -> EmailTemplate | None:
        return await self._api.get(event_id)

    async def save(self, template: EmailTemplate) -> EmailTemplate:
        return await self._api.save(template)

    async def upload_logo(self, path: Path, event_id: str | None = None) -> EmailTemplate:
        """Upload a logo and attach it to the template it belongs to."""
        logo_url = await self._api.upload_logo(encode_logo(path))
        template = await self._api.get(event_id) or EmailTemplate(event_id=event_id)
        return await self._api.save(template.model_copy(update={"logo_url": logo_url}))
