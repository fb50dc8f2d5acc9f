"""Identity provider contract.

Every external identity provider is one OAuth2Provider flow (oauth2.py)
parameterized by:
- ProviderConfig: endpoints, scopes, PKCE flag and client credentials
- AuthUserStrategy: how the provider turns a token into an AuthUser

Providers differ only in those two values, so adding a provider never
requires subclassing the flow.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from auth_providers.domain.models import AuthUser, OAuth2Token

if TYPE_CHECKING:
    from .oauth2 import OAuth2Provider

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class ProviderConfig:
    """Static and per-instance configuration of one provider.

    Endpoints, scopes and the PKCE flag are fixed defaults set by the
    provider's factory. Credentials and redirect URL are supplied by the
    caller after the instance is obtained from the registry.

    Attributes:
        display_name: Human-readable provider name for sign-in screens
        auth_url: Authorization endpoint
        token_url: Token endpoint
        user_info_url: Userinfo endpoint, None for ID-token-only providers
        scopes: Requested scopes, in order
        pkce: Whether the provider requires PKCE
        client_id: OAuth client id
        client_secret: OAuth client secret
        redirect_url: Registered callback URL
        timeout: Deadline in seconds for each outbound HTTP call
        extra_auth_params: Fixed extra query parameters for the authorization URL
    """
    display_name: str
    auth_url: str
    token_url: str
    user_info_url: Optional[str] = None
    scopes: List[str] = field(default_factory=list)
    pkce: bool = False
    client_id: str = ""
    client_secret: str = ""
    redirect_url: str = ""
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    extra_auth_params: Dict[str, str] = field(default_factory=dict)


class AuthUserStrategy(ABC):
    """Provider-specific step that turns an OAuth2 token into an AuthUser.

    Two families exist (strategies.py):
    - REST userinfo: GET the userinfo endpoint with the access token
    - ID token: read claims from the id_token returned with the access token
    """

    @abstractmethod
    async def fetch_auth_user(self, provider: "OAuth2Provider", token: OAuth2Token) -> AuthUser:
        """Build the normalized identity for the token's owner.

        Args:
            provider: Flow instance holding the configuration and HTTP helpers
            token: Token returned by exchange_code

        Returns:
            Fully populated AuthUser

        Raises:
            IdentityProviderError: On any failure; no partial user is returned
        """
        pass
