"""External identity provider abstraction.

Authenticates end users through third-party OAuth2/OIDC providers and
normalizes every provider's identity into an AuthUser:
- zoho: OIDC id_token (userinfo endpoint is broken)
- google, github, gitlab, discord: REST userinfo endpoints
"""

from .claims import Claims, decode_unverified_claims
from .errors import (
    ClaimsDecodeError,
    ClaimsValidationError,
    ConfigError,
    IdentityProviderError,
    MissingFieldError,
    NetworkError,
    StateMismatchError,
    TokenExchangeError,
)
from .oauth2 import OAuth2Provider
from .pkce import PKCEPair, code_challenge_s256, generate_code_verifier, generate_pkce_pair
from .provider import AuthUserStrategy, ProviderConfig
from .registry import ProviderFactory, ProviderRegistry, build_default_registry
from .service import AuthMethodInfo, ExternalAuthService, LoginStart
from .strategies import IdTokenStrategy, RestUserInfoStrategy

__all__ = [
    "AuthMethodInfo",
    "AuthUserStrategy",
    "Claims",
    "ClaimsDecodeError",
    "ClaimsValidationError",
    "ConfigError",
    "ExternalAuthService",
    "IdTokenStrategy",
    "IdentityProviderError",
    "LoginStart",
    "MissingFieldError",
    "NetworkError",
    "OAuth2Provider",
    "PKCEPair",
    "ProviderConfig",
    "ProviderFactory",
    "ProviderRegistry",
    "RestUserInfoStrategy",
    "StateMismatchError",
    "TokenExchangeError",
    "build_default_registry",
    "code_challenge_s256",
    "decode_unverified_claims",
    "generate_code_verifier",
    "generate_pkce_pair",
]
