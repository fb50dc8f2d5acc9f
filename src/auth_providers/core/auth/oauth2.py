"""OAuth 2.0 Authorization Code flow shared by every identity provider.

OAuth2Provider implements the provider-independent half of a login:
building the authorization URL, exchanging the code for a token, and
authenticated GETs against provider APIs. The provider-specific half
(turning a token into an AuthUser) is delegated to its AuthUserStrategy.

Outbound calls are bounded by the instance timeout and are never retried.
Task cancellation propagates straight through and aborts the pending call.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode

import httpx

from auth_providers.domain.models import AuthUser, OAuth2Token, utc_now

from .errors import (
    ClaimsDecodeError,
    ConfigError,
    NetworkError,
    TokenExchangeError,
)
from .pkce import CODE_CHALLENGE_METHOD
from .provider import AuthUserStrategy, ProviderConfig

logger = logging.getLogger(__name__)

_FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "text/plain")


class OAuth2Provider:
    """One configured identity provider.

    Instances are cheap and hold mutable credentials, so each login attempt
    gets its own from ProviderRegistry.get() and never shares it.

    Example:
        provider = registry.get("zoho")
        provider.client_id = "1000.XXXX"
        provider.client_secret = "secret"
        provider.redirect_url = "https://app.example.com/oauth2/callback"

        pkce = generate_pkce_pair()
        url = provider.build_auth_url(state, code_challenge=pkce.code_challenge)
        ...
        token = await provider.exchange_code(code, code_verifier=pkce.code_verifier)
        user = await provider.fetch_auth_user(token)
    """

    def __init__(
        self,
        name: str,
        config: ProviderConfig,
        strategy: AuthUserStrategy,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize provider flow.

        Args:
            name: Registry key (lowercase)
            config: Provider configuration, owned by this instance
            strategy: Token-to-AuthUser strategy
            http_client: Shared client to send requests with; when None a
                short-lived client is opened per request
        """
        self._name = name
        self._config = config
        self._strategy = strategy
        self._http_client = http_client

    def __repr__(self) -> str:
        return f"<OAuth2Provider name={self._name!r} client_id={self._config.client_id!r}>"

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def display_name(self) -> str:
        return self._config.display_name

    @property
    def pkce_enabled(self) -> bool:
        return self._config.pkce

    @property
    def auth_url(self) -> str:
        return self._config.auth_url

    @property
    def token_url(self) -> str:
        return self._config.token_url

    @property
    def user_info_url(self) -> Optional[str]:
        return self._config.user_info_url

    @property
    def strategy(self) -> AuthUserStrategy:
        return self._strategy

    @property
    def client_id(self) -> str:
        return self._config.client_id

    @client_id.setter
    def client_id(self, value: str) -> None:
        self._config.client_id = value

    @property
    def client_secret(self) -> str:
        return self._config.client_secret

    @client_secret.setter
    def client_secret(self, value: str) -> None:
        self._config.client_secret = value

    @property
    def redirect_url(self) -> str:
        return self._config.redirect_url

    @redirect_url.setter
    def redirect_url(self, value: str) -> None:
        self._config.redirect_url = value

    @property
    def scopes(self) -> List[str]:
        return list(self._config.scopes)

    @scopes.setter
    def scopes(self, value: List[str]) -> None:
        self._config.scopes = list(value)

    @property
    def timeout(self) -> float:
        return self._config.timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"timeout must be positive, got {value}")
        self._config.timeout = value

    @property
    def http_client(self) -> Optional[httpx.AsyncClient]:
        return self._http_client

    @http_client.setter
    def http_client(self, client: Optional[httpx.AsyncClient]) -> None:
        self._http_client = client

    # ------------------------------------------------------------------
    # Authorization Code flow
    # ------------------------------------------------------------------

    def build_auth_url(
        self,
        state: str,
        code_challenge: Optional[str] = None,
        **params: str
    ) -> str:
        """Build the URL to redirect the user to.

        Args:
            state: CSRF protection state, generated per login attempt
            code_challenge: S256 PKCE challenge; required when PKCE is enabled
            **params: Additional query parameters (e.g. prompt="consent")

        Returns:
            Authorization URL

        Raises:
            ConfigError: If client_id or redirect_url is not configured
            ValueError: If state is empty, or PKCE is enabled and no challenge is given
        """
        self._require_credentials(require_secret=False)
        if not state:
            raise ValueError("state is required")
        if self.pkce_enabled and not code_challenge:
            raise ValueError(f"{self._name} requires PKCE: code_challenge is required")

        query: Dict[str, str] = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "response_type": "code",
        }
        if self._config.scopes:
            query["scope"] = " ".join(self._config.scopes)
        query["state"] = state

        if code_challenge:
            query["code_challenge"] = code_challenge
            query["code_challenge_method"] = CODE_CHALLENGE_METHOD

        query.update(self._config.extra_auth_params)
        query.update(params)

        separator = "&" if "?" in self.auth_url else "?"
        return f"{self.auth_url}{separator}{urlencode(query)}"

    async def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> OAuth2Token:
        """Exchange an authorization code for a token.

        Args:
            code: Authorization code from the provider callback
            code_verifier: PKCE verifier matching the challenge sent in the
                authorization URL; required when PKCE is enabled

        Returns:
            OAuth2Token with the full raw response in extra

        Raises:
            ConfigError: If credentials are not configured
            NetworkError: On transport failure or timeout
            TokenExchangeError: If the token endpoint rejects the code or
                returns a malformed response
        """
        self._require_credentials(require_secret=True)
        if not code:
            raise ValueError("authorization code is required")
        if self.pkce_enabled and not code_verifier:
            raise ValueError(f"{self._name} requires PKCE: code_verifier is required")

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_url,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        if code_verifier:
            data["code_verifier"] = code_verifier

        response = await self._send(
            "POST",
            self.token_url,
            data=data,
            headers={"Accept": "application/json"}
        )
        token = self._parse_token_response(response)

        logger.info(f"OAuth token exchange succeeded for provider={self._name}")
        return token

    async def fetch_auth_user(self, token: OAuth2Token) -> AuthUser:
        """Resolve the token's owner into a normalized AuthUser.

        Raises:
            IdentityProviderError: Any failure from the provider strategy
        """
        user = await self._strategy.fetch_auth_user(self, token)
        logger.info(f"Fetched auth user from provider={self._name} (id: {user.id})")
        return user

    # ------------------------------------------------------------------
    # Provider API helpers (used by strategies)
    # ------------------------------------------------------------------

    async def fetch_json(self, url: str, token: OAuth2Token) -> Any:
        """GET a provider API resource with the access token as Bearer credential.

        Raises:
            NetworkError: On transport failure, timeout or non-2xx status
            ClaimsDecodeError: If the body is not valid JSON
        """
        response = await self._send(
            "GET",
            url,
            headers={
                "Authorization": f"Bearer {token.access_token}",
                "Accept": "application/json",
            }
        )

        if not response.is_success:
            logger.warning(
                f"Provider API request failed for provider={self._name}: "
                f"GET {url} -> {response.status_code}"
            )
            raise NetworkError(
                f"GET {url} returned {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ClaimsDecodeError(f"malformed JSON from {url}") from e

    async def fetch_raw_user_info(self, token: OAuth2Token) -> Dict[str, Any]:
        """Fetch the userinfo endpoint as a JSON object.

        Raises:
            ConfigError: If the provider has no userinfo endpoint
            NetworkError: On transport failure, timeout or non-2xx status
            ClaimsDecodeError: If the body is not a JSON object
        """
        if not self.user_info_url:
            raise ConfigError(f"{self._name} has no userinfo endpoint")

        payload = await self.fetch_json(self.user_info_url, token)
        if not isinstance(payload, dict):
            raise ClaimsDecodeError(
                f"userinfo response must be a JSON object, got {type(payload).__name__}"
            )
        return payload

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_credentials(self, require_secret: bool) -> None:
        if not self.client_id:
            raise ConfigError(f"{self._name}: client_id is not configured")
        if not self.redirect_url:
            raise ConfigError(f"{self._name}: redirect_url is not configured")
        if require_secret and not self.client_secret:
            raise ConfigError(f"{self._name}: client_secret is not configured")

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with asyncio.timeout(self.timeout):
                async with self._client() as client:
                    return await client.request(method, url, timeout=self.timeout, **kwargs)
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"{method} {url} timed out after {self.timeout}s (provider={self._name})")
            raise NetworkError(f"{method} {url} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed (provider={self._name}): {e}")
            raise NetworkError(f"{method} {url} failed: {e}") from e

    def _parse_token_response(self, response: httpx.Response) -> OAuth2Token:
        payload = _decode_token_payload(response)

        if not response.is_success:
            error = payload.get("error") if payload else None
            logger.error(
                f"OAuth token exchange failed for provider={self._name}: "
                f"status={response.status_code} error={error}"
            )
            detail = f" ({error})" if error else ""
            raise TokenExchangeError(
                f"token exchange failed: {response.status_code}{detail}",
                status_code=response.status_code,
                error=error
            )

        if payload is None:
            raise TokenExchangeError(
                "malformed token response",
                status_code=response.status_code
            )

        # GitHub reports errors with a 200 status
        error = payload.get("error")
        if error:
            description = payload.get("error_description") or ""
            logger.error(
                f"OAuth token exchange rejected for provider={self._name}: error={error}"
            )
            raise TokenExchangeError(
                f"token exchange rejected: {error} {description}".strip(),
                status_code=response.status_code,
                error=str(error)
            )

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenExchangeError(
                "token response missing access_token",
                status_code=response.status_code
            )

        refresh_token = payload.get("refresh_token") or ""
        token_type = payload.get("token_type") or "Bearer"
        if not isinstance(refresh_token, str) or not isinstance(token_type, str):
            raise TokenExchangeError("malformed token response", status_code=response.status_code)

        return OAuth2Token(
            access_token=access_token,
            token_type=token_type,
            refresh_token=refresh_token,
            expiry=_expiry_from(payload.get("expires_in")),
            extra=payload
        )


def _decode_token_payload(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """Decode a JSON or form-encoded token response, None if undecodable."""
    media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type in _FORM_MEDIA_TYPES:
        return dict(parse_qsl(response.text))

    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _expiry_from(expires_in: Any) -> Optional[datetime]:
    """Convert a relative expires_in into an absolute UTC expiry."""
    if expires_in is None or expires_in == "" or isinstance(expires_in, bool):
        return None
    try:
        seconds = int(float(expires_in))
        if seconds <= 0:
            return None
        return utc_now() + timedelta(seconds=seconds)
    except (TypeError, ValueError, OverflowError) as e:
        raise TokenExchangeError(f"invalid expires_in: {expires_in!r}") from e
