from enum import Enum


class RSVPStatus(str, Enum):
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not-going"


# "maybe" is only offered to signed-in users, never on invitation links.
GUEST_STATUSES = (RSVPStatus.GOING, RSVPStatus.NOT_GOING)


class DietaryPreference(str, Enum):
    NONVEG = "nonveg"
    VEG = "veg"
    VEGAN = "vegan"


class InviteType(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
