"""Built-in identity providers.

Each module exposes NAME and a zero-argument factory returning a fresh
OAuth2Provider with that provider's default endpoints, scopes and PKCE flag.
"""

from typing import TYPE_CHECKING

from . import discord, github, gitlab, google, zoho

if TYPE_CHECKING:
    from ..registry import ProviderRegistry

BUILTIN_PROVIDERS = {
    zoho.NAME: zoho.new_zoho_provider,
    google.NAME: google.new_google_provider,
    github.NAME: github.new_github_provider,
    gitlab.NAME: gitlab.new_gitlab_provider,
    discord.NAME: discord.new_discord_provider,
}


def register_builtin_providers(registry: "ProviderRegistry") -> None:
    """Register every built-in provider factory."""
    for name, factory in BUILTIN_PROVIDERS.items():
        registry.register(name, factory)
