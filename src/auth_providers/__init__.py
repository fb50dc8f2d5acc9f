"""FaultMaven external identity providers (OAuth2/OIDC sign-in core)."""

__version__ = "1.0.0"
