"""GitLab identity provider (gitlab.com)."""

from auth_providers.domain.models import AuthUser, OAuth2Token

from ..claims import Claims
from ..oauth2 import OAuth2Provider
from ..provider import ProviderConfig
from ..strategies import RestUserInfoStrategy, build_auth_user

NAME = "gitlab"


class GitLabStrategy(RestUserInfoStrategy):
    async def map_user(self, provider: OAuth2Provider, claims: Claims, token: OAuth2Token) -> AuthUser:
        return build_auth_user(
            claims,
            token,
            id=claims.identifier("id"),
            email=claims.string("email", required=True),
            username=claims.string("username"),
            name=claims.string("name"),
            avatar_url=claims.string("avatar_url"),
        )


def new_gitlab_provider() -> OAuth2Provider:
    return OAuth2Provider(
        NAME,
        ProviderConfig(
            display_name="GitLab",
            auth_url="https://gitlab.com/oauth/authorize",
            token_url="https://gitlab.com/oauth/token",
            user_info_url="https://gitlab.com/api/v4/user",
            scopes=["read_user"],
            pkce=True,
        ),
        GitLabStrategy(),
    )
