from dataclasses import dataclass

from rsvp_portal.api.schemas import Event
from rsvp_portal.dtos import GUEST_STATUSES, DietaryPreference, RSVPStatus
from rsvp_portal.errors import InvalidInputError

# The response form offers a single companion toggle.
MAX_FORM_COMPANIONS = 1


def companion_limit(event: Event) -> int:
    if event.allowed_companions is None:
        return MAX_FORM_COMPANIONS
    return min(event.allowed_companions, MAX_FORM_COMPANIONS)


@dataclass
class ResponseForm:
    """A guest's answer while it is being filled in."""

    max_companions: int = MAX_FORM_COMPANIONS
    status: RSVPStatus | None = None
    with_companion: bool = False
    guest_name: str = ""
    dietary_preference: DietaryPreference | None = None
    companion_dietary_preference: DietaryPreference | None = None

    @property
    def companion_allowed(self) -> bool:
        return self.status == RSVPStatus.GOING and self.max_companions >= 1

    @property
    def companions(self) -> int:
        return 1 if self.status == RSVPStatus.GOING and self.with_companion else 0

    @property
    def is_complete(self) -> bool:
        return self.status is not None and bool(self.guest_name.strip())

    @property
    def attendees(self) -> int:
        return 1 + self.companions if self.status == RSVPStatus.GOING else 0

    def select_status(self, status: RSVPStatus) -> None:
        if status not in GUEST_STATUSES:
            raise InvalidInputError("Please answer whether you will join or not")
        self.status = status
        if status == RSVPStatus.NOT_GOING:
            self.set_companion(False)
            self.dietary_preference = None

    def set_companion(self, enabled: bool) -> None:
        if enabled and not self.companion_allowed:
            raise InvalidInputError("This invitation does not include a companion")
        self.with_companion = enabled
        if not enabled:
            self.companion_dietary_preference = None

    def toggle_companion(self) -> None:
        self.set_companion(not self.with_companion)

    def set_guest_name(self, name: str) -> None:
        self.guest_name = name

    def choose_dietary_preference(self, preference: DietaryPreference | None) -> None:
        if preference and self.status != RSVPStatus.GOING:
            raise InvalidInputError("Dietary preferences are only asked of attending guests")
        self.dietary_preference = preference

    def choose_companion_dietary_preference(self, preference: DietaryPreference | None) -> None:
        if preference and not self.with_companion:
            raise InvalidInputError("Add a companion before choosing their dietary preference")
        self.companion_dietary_preference = preference
