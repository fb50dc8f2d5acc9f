"""Domain models for the identity provider core"""

from .auth import AuthorizationRequest, AuthUser, OAuth2Token, utc_now

__all__ = [
    "AuthUser",
    "AuthorizationRequest",
    "OAuth2Token",
    "utc_now",
]
