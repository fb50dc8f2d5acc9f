"""Identity Data Models

Purpose: Define the records exchanged between identity providers and the
application's own auth layer.

Key Components:
- OAuth2Token: Raw token response from a provider's token endpoint
- AuthUser: Normalized identity produced by every provider
- AuthorizationRequest: Per-attempt login state (state token, PKCE verifier)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


class OAuth2Token(BaseModel):
    """OAuth 2.0 token returned by a provider's token endpoint.

    Attributes:
        access_token: Bearer credential for provider APIs
        token_type: Token type reported by the provider (usually "Bearer")
        refresh_token: Refresh token, empty when the provider issues none
        expiry: Absolute expiry time (UTC), None when the provider omits expires_in
        extra: Full raw token response, including non-standard fields such as id_token
    """
    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = ""
    expiry: Optional[datetime] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def extra_value(self, key: str) -> Any:
        """Return a raw field from the token response, or None"""
        return self.extra.get(key)

    @property
    def is_expired(self) -> bool:
        if self.expiry is None:
            return False
        return utc_now() >= self.expiry


class AuthUser(BaseModel):
    """Normalized user identity returned by every provider.

    id and email are always populated; the provider strategies raise instead
    of returning a record with either one missing.

    Attributes:
        id: Provider-scoped unique user identifier
        username: Provider username, or the email for providers without one
        name: Full name, empty when the provider has none
        email: Email address
        avatar_url: Profile picture URL, empty when unavailable
        raw_user: Copy of the raw provider claims/attributes
        access_token: Provider access token
        refresh_token: Provider refresh token
        expiry: Access token expiry (UTC)
    """
    id: str = Field(min_length=1)
    username: str = ""
    name: str = ""
    email: str = Field(min_length=1)
    avatar_url: str = ""
    raw_user: Dict[str, Any] = Field(default_factory=dict)
    access_token: str = ""
    refresh_token: str = ""
    expiry: Optional[datetime] = None


class AuthorizationRequest(BaseModel):
    """State for a single login attempt.

    Owned by the caller (session or request store), never by the provider
    instance, so one provider configuration can serve many concurrent logins.
    """
    provider: str
    state: str
    code_verifier: Optional[str] = None
    redirect_url: str = ""
    created_at: datetime = Field(default_factory=utc_now)
