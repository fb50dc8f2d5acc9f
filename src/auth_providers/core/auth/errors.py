"""Identity provider error taxonomy.

Every failure aborts the current login attempt and reaches the caller as one
of these types. Nothing here is retried or swallowed.
"""

from typing import Optional


class IdentityProviderError(Exception):
    """Base class for all identity provider failures."""
    pass


class ConfigError(IdentityProviderError):
    """Unknown provider name or missing required credential."""
    pass


class NetworkError(IdentityProviderError):
    """Transport failure, timeout, or non-2xx response from a provider API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TokenExchangeError(IdentityProviderError):
    """Token endpoint rejected the code or returned a malformed response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error = error


class ClaimsDecodeError(IdentityProviderError):
    """ID token or userinfo payload could not be decoded, or a claim has the wrong type."""
    pass


class ClaimsValidationError(IdentityProviderError):
    """Claims decoded but failed validation (issuer, audience, unverified email)."""
    pass


class MissingFieldError(IdentityProviderError):
    """A required claim or token field is absent."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"missing {field}")
        self.field = field


class StateMismatchError(IdentityProviderError):
    """Callback state is unknown, expired, or does not match the login attempt."""
    pass
