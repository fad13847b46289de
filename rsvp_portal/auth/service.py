import logging
from dataclasses import dataclass
from typing import Protocol

from rsvp_portal.api.resources import AuthApi
from rsvp_portal.api.schemas import AuthUser
from rsvp_portal.dtos import UserRole
from rsvp_portal.errors import ApiError, InvalidInputError
from rsvp_portal.stores.storage import StateStorage
from rsvp_portal.utils import sanitize_email

logger = logging.getLogger(__name__)


class Clearable(Protocol):
    async def clear(self) -> None: ...


class AuthenticationError(Exception):
    """Raised when login or signup is refused."""


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: AuthUser

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.ADMIN

    def to_dict(self) -> dict:
        return {
            "accessToken": self.access_token,
            "user": self.user.model_dump(mode="json", by_alias=True),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuthSession":
        return cls(
            access_token=data["accessToken"],
            user=AuthUser.model_validate(data["user"]),
        )


class AuthService:
    """
    Holds the host's session and clears every cache when it ends.
    Issuing and verifying tokens is the API's job; this only keeps the bearer
    token returned by login.
    """

    storage_key = "auth-session"

    def __init__(
        self,
        auth_api: AuthApi,
        storage: StateStorage,
        stores: list[Clearable] | None = None,
    ) -> None:
        self._auth_api = auth_api
        self._storage = storage
        self._stores: list[Clearable] = list(stores or [])
        self._session: AuthSession | None = None

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    async def restore(self) -> AuthSession | None:
        data = await self._storage.load(self.storage_key)
        if data:
            try:
                self._session = AuthSession.from_dict(data)
            except (KeyError, ValueError):
                logger.warning("Discarding unreadable stored session")
                await self._storage.remove(self.storage_key)
        return self._session

    async def login(self, email: str, password: str) -> AuthSession:
        if not email or not password:
            raise InvalidInputError("Email and password are required")
        try:
            result = await self._auth_api.login(sanitize_email(email), password)
        except ApiError as e:
            raise AuthenticationError(e.message or "Login failed") from e

        self._session = AuthSession(access_token=result.token, user=result.user)
        await self._storage.save(self.storage_key, self._session.to_dict())
        logger.info("Logged in as %s", result.user.email)
        return self._session

    async def signup(self, email: str, password: str) -> AuthSession:
        if not email or not password:
            raise InvalidInputError("Email and password are required")
        try:
            await self._auth_api.signup(sanitize_email(email), password)
        except ApiError as e:
            raise AuthenticationError(e.message or "Signup failed. Please try again.") from e

        try:
            return await self.login(email, password)
        except AuthenticationError as e:
            raise AuthenticationError(
                "Account created but login failed. Please try logging in manually."
            ) from e

    async def logout(self) -> None:
        for store in self._stores:
            try:
                await store.clear()
            except Exception:
                # Clearing a cache must never keep the user signed in.
                logger.exception("Error clearing %s", type(store).__name__)
        self._session = None
        await self._storage.remove(self.storage_key)

    async def handle_unauthorized(self) -> None:
        logger.warning("Session expired, clearing cached data")
        await self.logout()
