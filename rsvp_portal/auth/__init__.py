from .service import AuthenticationError, AuthService, AuthSession

__all__ = [
    "AuthenticationError",
    "AuthService",
    "AuthSession",
]
