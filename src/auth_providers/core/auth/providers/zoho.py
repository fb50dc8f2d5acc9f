"""Zoho identity provider.

Zoho advertises OIDC, but its userinfo endpoint
(https://accounts.zoho.com/oauth/v2/userinfo) is broken, so identity is read
from the id_token returned by the token endpoint instead.

API reference:
https://www.zoho.com/accounts/protocol/oauth/sign-in-using-zoho.html
"""

from auth_providers.domain.models import AuthUser, OAuth2Token

from ..claims import Claims
from ..oauth2 import OAuth2Provider
from ..provider import ProviderConfig
from ..strategies import IdTokenStrategy, build_auth_user, reject_unverified_email

NAME = "zoho"

# One issuer per Zoho data center
ZOHO_ISSUERS = (
    "https://accounts.zoho.com.au",
    "https://accounts.zohocloud.ca",
    "https://accounts.zoho.eu",
    "https://accounts.zoho.com",
    "https://accounts.zoho.in",
    "https://accounts.zoho.jp",
    "https://accounts.zoho.sa",
    "https://accounts.zoho.uk",
    "https://accounts.zoho.com.cn",
)


class ZohoStrategy(IdTokenStrategy):
    """Zoho id_token claims to AuthUser."""

    valid_issuers = ZOHO_ISSUERS

    def map_user(self, claims: Claims, token: OAuth2Token) -> AuthUser:
        reject_unverified_email(claims)
        email = claims.string("email", required=True)

        # Zoho has no username concept
        return build_auth_user(
            claims,
            token,
            id=claims.identifier("sub"),
            email=email,
            username=email,
            name=claims.string("name"),
            avatar_url=claims.string("picture"),
        )


def new_zoho_provider() -> OAuth2Provider:
    """Create a Zoho provider with default endpoints and scopes."""
    return OAuth2Provider(
        NAME,
        ProviderConfig(
            display_name="Zoho",
            auth_url="https://accounts.zoho.com/oauth/v2/auth",
            token_url="https://accounts.zoho.com/oauth/v2/token",
            scopes=["profile", "email", "openid"],
            pkce=True,
        ),
        ZohoStrategy(),
    )
