"""Google identity provider.

API reference:
https://developers.google.com/identity/protocols/oauth2/web-server
"""

from auth_providers.domain.models import AuthUser, OAuth2Token

from ..claims import Claims
from ..oauth2 import OAuth2Provider
from ..provider import ProviderConfig
from ..strategies import RestUserInfoStrategy, build_auth_user, reject_unverified_email

NAME = "google"


class GoogleStrategy(RestUserInfoStrategy):
    """Google OpenID userinfo to AuthUser."""

    async def map_user(self, provider: OAuth2Provider, claims: Claims, token: OAuth2Token) -> AuthUser:
        reject_unverified_email(claims)
        email = claims.string("email", required=True)

        return build_auth_user(
            claims,
            token,
            id=claims.identifier("sub"),
            email=email,
            username=email,
            name=claims.string("name"),
            avatar_url=claims.string("picture"),
        )


def new_google_provider() -> OAuth2Provider:
    """Create a Google provider with default endpoints and scopes."""
    return OAuth2Provider(
        NAME,
        ProviderConfig(
            display_name="Google",
            auth_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",
            user_info_url="https://www.googleapis.com/oauth2/v3/userinfo",
            scopes=["profile", "email"],
            pkce=True,
        ),
        GoogleStrategy(),
    )
