"""GitHub identity provider.

The /user profile only carries an email when the user made one public. When
it is empty the primary verified address is read from /user/emails, which
the user:email scope grants.

API reference:
https://docs.github.com/en/apps/oauth-apps/building-oauth-apps/authorizing-oauth-apps
"""

import logging

from auth_providers.domain.models import AuthUser, OAuth2Token

from ..claims import Claims
from ..errors import ClaimsDecodeError, MissingFieldError
from ..oauth2 import OAuth2Provider
from ..provider import ProviderConfig
from ..strategies import RestUserInfoStrategy, build_auth_user

logger = logging.getLogger(__name__)

NAME = "github"

GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


class GitHubStrategy(RestUserInfoStrategy):
    """GitHub /user profile to AuthUser."""

    async def map_user(self, provider: OAuth2Provider, claims: Claims, token: OAuth2Token) -> AuthUser:
        email = claims.string("email")
        if not email:
            email = await self._fetch_primary_email(provider, token)

        return build_auth_user(
            claims,
            token,
            id=claims.identifier("id"),
            email=email,
            username=claims.string("login"),
            name=claims.string("name"),
            avatar_url=claims.string("avatar_url"),
        )

    async def _fetch_primary_email(self, provider: OAuth2Provider, token: OAuth2Token) -> str:
        entries = await provider.fetch_json(GITHUB_EMAILS_URL, token)
        if not isinstance(entries, list):
            raise ClaimsDecodeError("GitHub emails response must be a JSON array")

        for entry in entries:
            if not isinstance(entry, dict):
                continue
            if entry.get("primary") is True and entry.get("verified") is True:
                address = entry.get("email")
                if isinstance(address, str) and address:
                    return address

        logger.warning("GitHub account has no primary verified email")
        raise MissingFieldError("email", "GitHub account has no primary verified email")


def new_github_provider() -> OAuth2Provider:
    """Create a GitHub provider with default endpoints and scopes."""
    return OAuth2Provider(
        NAME,
        ProviderConfig(
            display_name="GitHub",
            auth_url="https://github.com/login/oauth/authorize",
            token_url="https://github.com/login/oauth/access_token",
            user_info_url="https://api.github.com/user",
            scopes=["read:user", "user:email"],
            pkce=True,
        ),
        GitHubStrategy(),
    )
