"""External sign-in orchestration.

Ties the registry, settings and the optional request store into the two
halves of an OAuth login:

1. begin_login(): fresh provider, state token and PKCE pair -> authorization URL
2. complete_login(): callback state + code -> token exchange -> AuthUser

Issuing the application's own session for the returned AuthUser is the
caller's job.
"""

import logging
import secrets
from typing import List, Optional

import httpx
from pydantic import BaseModel

from auth_providers.config.settings import OAuthClientSettings, Settings
from auth_providers.domain.models import AuthorizationRequest, AuthUser
from auth_providers.infrastructure.auth.request_store import AuthorizationRequestStore

from .errors import ConfigError, StateMismatchError
from .oauth2 import OAuth2Provider
from .pkce import generate_pkce_pair
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


class AuthMethodInfo(BaseModel):
    """One sign-in option offered to end users."""
    name: str
    display_name: str
    pkce: bool


class LoginStart(BaseModel):
    """Result of begin_login.

    authorization_url is sent to the browser; request must be kept by the
    caller (or is already in the request store) until the callback.
    """
    authorization_url: str
    request: AuthorizationRequest


class ExternalAuthService:
    """Runs external identity provider logins.

    Example:
        service = ExternalAuthService(build_default_registry(), get_settings(), store)

        start = await service.begin_login("zoho")
        # redirect to start.authorization_url
        ...
        user = await service.complete_login(state, code)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        settings: Settings,
        request_store: Optional[AuthorizationRequestStore] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize service.

        Args:
            registry: Provider registry built at startup
            settings: Application settings holding provider credentials
            request_store: Where in-flight login attempts are kept; when None
                the caller must pass the request back to complete_login
            http_client: Shared HTTP client handed to every provider instance
        """
        self.registry = registry
        self.settings = settings
        self.request_store = request_store
        self.http_client = http_client

    def list_auth_methods(self) -> List[AuthMethodInfo]:
        """Sign-in methods that are both registered and configured."""
        methods = []
        for name in self.registry.names():
            client_settings = self._client_settings(name)
            if client_settings is None or not client_settings.enabled:
                continue
            provider = self.registry.get(name)
            methods.append(AuthMethodInfo(
                name=provider.name,
                display_name=provider.display_name,
                pkce=provider.pkce_enabled,
            ))
        return methods

    def create_provider(self, name: str) -> OAuth2Provider:
        """Fresh provider instance configured from settings.

        Raises:
            ConfigError: If the provider is unknown, disabled, or has no credentials
        """
        provider = self.registry.get(name)

        client_settings = self._client_settings(provider.name)
        if client_settings is None:
            raise ConfigError(f"missing client credentials for provider: {provider.name}")
        if not client_settings.enabled:
            raise ConfigError(f"provider is disabled: {provider.name}")
        if not client_settings.client_id or not client_settings.client_secret:
            raise ConfigError(f"missing client credentials for provider: {provider.name}")

        provider.client_id = client_settings.client_id
        provider.client_secret = client_settings.client_secret
        provider.redirect_url = client_settings.redirect_url or self.settings.oauth_redirect_url
        if client_settings.scopes:
            provider.scopes = client_settings.scopes
        provider.timeout = self.settings.oauth_http_timeout_seconds
        provider.http_client = self.http_client
        return provider

    async def begin_login(self, name: str, redirect_url: Optional[str] = None) -> LoginStart:
        """Start a login attempt.

        Args:
            name: Provider name
            redirect_url: Callback URL override for this attempt

        Returns:
            Authorization URL and the per-attempt request
        """
        provider = self.create_provider(name)
        if redirect_url:
            provider.redirect_url = redirect_url

        state = secrets.token_urlsafe(32)
        code_verifier = None
        code_challenge = None
        if provider.pkce_enabled:
            code_verifier, code_challenge = generate_pkce_pair()

        authorization_url = provider.build_auth_url(state, code_challenge=code_challenge)
        request = AuthorizationRequest(
            provider=provider.name,
            state=state,
            code_verifier=code_verifier,
            redirect_url=provider.redirect_url,
        )

        if self.request_store is not None:
            await self.request_store.save(request, self.settings.oauth_request_ttl_seconds)

        logger.info(f"Started external login with provider={provider.name}")
        return LoginStart(authorization_url=authorization_url, request=request)

    async def complete_login(
        self,
        state: str,
        code: str,
        request: Optional[AuthorizationRequest] = None
    ) -> AuthUser:
        """Finish a login attempt from the provider callback.

        Args:
            state: state query parameter from the callback
            code: code query parameter from the callback
            request: The attempt returned by begin_login; looked up (and
                consumed) in the request store when omitted

        Returns:
            Normalized AuthUser

        Raises:
            StateMismatchError: If the state is unknown, expired or mismatched
            IdentityProviderError: Any provider failure
        """
        if request is None:
            if self.request_store is None:
                raise ConfigError("no authorization request given and no request store configured")
            request = await self.request_store.pop(state)
            if request is None:
                logger.warning("OAuth callback with unknown or expired state")
                raise StateMismatchError("unknown or expired login state")

        if not state or not secrets.compare_digest(request.state.encode(), state.encode()):
            logger.warning(f"OAuth callback state mismatch for provider={request.provider}")
            raise StateMismatchError("login state does not match")

        provider = self.create_provider(request.provider)
        if request.redirect_url:
            provider.redirect_url = request.redirect_url

        token = await provider.exchange_code(code, code_verifier=request.code_verifier)
        return await provider.fetch_auth_user(token)

    def _client_settings(self, name: str) -> Optional[OAuthClientSettings]:
        return self.settings.oauth_providers.get(name.lower())
