"""Discord identity provider.

API reference:
https://discord.com/developers/docs/resources/user#user-object
"""

from auth_providers.domain.models import AuthUser, OAuth2Token

from ..claims import Claims
from ..oauth2 import OAuth2Provider
from ..provider import ProviderConfig
from ..strategies import RestUserInfoStrategy, build_auth_user, reject_unverified_email

NAME = "discord"

DISCORD_AVATAR_URL = "https://cdn.discordapp.com/avatars/{user_id}/{avatar}.png"


class DiscordStrategy(RestUserInfoStrategy):
    """Discord /users/@me to AuthUser."""

    async def map_user(self, provider: OAuth2Provider, claims: Claims, token: OAuth2Token) -> AuthUser:
        reject_unverified_email(claims, claim="verified")
        user_id = claims.identifier("id")
        username = claims.string("username")

        # avatar is a hash, not a URL
        avatar_url = ""
        avatar = claims.string("avatar")
        if avatar:
            avatar_url = DISCORD_AVATAR_URL.format(user_id=user_id, avatar=avatar)

        return build_auth_user(
            claims,
            token,
            id=user_id,
            email=claims.string("email", required=True),
            username=username,
            name=claims.string("global_name") or username,
            avatar_url=avatar_url,
        )


def new_discord_provider() -> OAuth2Provider:
    """Create a Discord provider with default endpoints and scopes."""
    return OAuth2Provider(
        NAME,
        ProviderConfig(
            display_name="Discord",
            auth_url="https://discord.com/api/oauth2/authorize",
            token_url="https://discord.com/api/oauth2/token",
            user_info_url="https://discord.com/api/users/@me",
            scopes=["identify", "email"],
            pkce=True,
        ),
        DiscordStrategy(),
    )
