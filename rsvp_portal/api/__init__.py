from .client import ApiClient
from .resources import AuthApi, EmailTemplatesApi, EventsApi, RsvpsApi, TokensApi

__all__ = [
    "ApiClient",
    "AuthApi",
    "EmailTemplatesApi",
    "EventsApi",
    "RsvpsApi",
    "TokensApi",
]
