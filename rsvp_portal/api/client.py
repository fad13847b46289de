import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from rsvp_portal.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    ResponseFormatError,
    SessionExpiredError,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]
UnauthorizedHandler = Callable[[], Awaitable[None]]


class ApiClient:
    """JSON client for the external RSVP API.

    ``auth=True`` requests carry the session's bearer token, and a 401 on such
    a request runs the unauthorized handler (forced logout) before raising
    ``SessionExpiredError``. Public and token-gated calls use ``auth=False``.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.AsyncClient()
        self._token_provider: TokenProvider = lambda: None
        self._on_unauthorized: UnauthorizedHandler | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def bind_session(
        self,
        token_provider: TokenProvider,
        on_unauthorized: UnauthorizedHandler | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        auth: bool = True,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if auth:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._http_client.request(
                method,
                f"{self._base_url}{endpoint}",
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            raise NetworkError(str(e) or "Network request failed") from e

        return await self._handle_response(response, auth=auth)

    async def get(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("POST", endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("PUT", endpoint, **kwargs)

    async def _handle_response(self, response: httpx.Response, auth: bool) -> Any:
        if response.is_success:
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise ResponseFormatError(
                    "Invalid JSON in API response", response.status_code
                ) from e

        try:
            error_data = response.json()
        except ValueError:
            error_data = {"error": "Unknown error"}

        if auth and response.status_code == 401:
            logger.info("Session rejected by the API, logging out")
            if self._on_unauthorized is not None:
                await self._on_unauthorized()
            raise SessionExpiredError(error_data)

        message = error_data.get("error") if isinstance(error_data, dict) else None
        message = message or f"HTTP error! status: {response.status_code}"
        if response.status_code == 404:
            raise NotFoundError(message, 404, error_data)
        raise ApiError(message, response.status_code, error_data)

    async def aclose(self) -> None:
        await self._http_client.aclose()
