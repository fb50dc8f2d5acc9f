"""AuthUser fetch strategies.

RestUserInfoStrategy: providers with a working userinfo endpoint.
IdTokenStrategy: providers whose identity comes from the id_token returned
alongside the access token (userinfo endpoint absent, broken or redundant).

Concrete providers subclass one of these and implement map_user().
"""

import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Optional, Tuple

from auth_providers.domain.models import AuthUser, OAuth2Token

from .claims import Claims, decode_unverified_claims
from .errors import ClaimsDecodeError, ClaimsValidationError, MissingFieldError
from .provider import AuthUserStrategy

if TYPE_CHECKING:
    from .oauth2 import OAuth2Provider

logger = logging.getLogger(__name__)


def build_auth_user(
    claims: Claims,
    token: OAuth2Token,
    *,
    id: str,
    email: str,
    username: str = "",
    name: str = "",
    avatar_url: str = ""
) -> AuthUser:
    """Assemble an AuthUser from mapped fields and the token.

    Raises:
        MissingFieldError: If id or email is empty
    """
    if not id:
        raise MissingFieldError("id")
    if not email:
        raise MissingFieldError("email")

    return AuthUser(
        id=id,
        username=username,
        name=name,
        email=email,
        avatar_url=avatar_url,
        raw_user=claims.to_dict(),
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expiry=token.expiry,
    )


def reject_unverified_email(claims: Claims, claim: str = "email_verified") -> None:
    """Refuse logins whose email the provider explicitly marks as unverified.

    An absent claim is accepted; only an explicit false is rejected.

    Raises:
        ClaimsValidationError: If the verification claim is false
    """
    if claims.boolean(claim) is False:
        raise ClaimsValidationError("email address is not verified by the provider")


class RestUserInfoStrategy(AuthUserStrategy):
    """Fetch identity from the provider's userinfo endpoint."""

    async def fetch_auth_user(self, provider: "OAuth2Provider", token: OAuth2Token) -> AuthUser:
        raw_user = await provider.fetch_raw_user_info(token)
        return await self.map_user(provider, Claims(raw_user), token)

    @abstractmethod
    async def map_user(
        self,
        provider: "OAuth2Provider",
        claims: Claims,
        token: OAuth2Token
    ) -> AuthUser:
        """Map userinfo fields to an AuthUser.

        Async because some providers need a second API call (GitHub emails).
        """
        pass


class IdTokenStrategy(AuthUserStrategy):
    """Extract identity from the id_token returned by the token endpoint.

    The token signature is NOT verified. This is a deliberate trust-boundary
    decision: the id_token is read only from the token endpoint response,
    which the flow fetched itself over TLS in exchange for a one-time code.
    Substitution is still guarded by checking iss against valid_issuers and
    aud against the configured client id.
    """

    #: Exact iss values accepted for this provider
    valid_issuers: Tuple[str, ...] = ()

    async def fetch_auth_user(self, provider: "OAuth2Provider", token: OAuth2Token) -> AuthUser:
        raw_id_token = token.extra_value("id_token")
        if not isinstance(raw_id_token, str) or not raw_id_token:
            raise MissingFieldError("id_token", "missing id_token")

        claims = decode_unverified_claims(raw_id_token)
        self.validate_claims(claims, provider.client_id)
        return self.map_user(claims, token)

    def validate_claims(self, claims: Claims, client_id: str) -> None:
        """Check issuer and audience.

        Raises:
            ClaimsValidationError: If iss is not allowed or aud does not include client_id
        """
        issuer: Optional[object] = claims.get("iss")
        if not isinstance(issuer, str) or issuer not in self.valid_issuers:
            logger.warning(f"Rejected id_token with issuer {issuer!r}")
            raise ClaimsValidationError(f"invalid id_token issuer: {issuer}")

        try:
            audience = claims.audience()
        except (MissingFieldError, ClaimsDecodeError) as e:
            raise ClaimsValidationError("invalid id_token audience") from e

        if not client_id or client_id not in audience:
            logger.warning("Rejected id_token issued for a different client")
            raise ClaimsValidationError("invalid id_token audience")

    @abstractmethod
    def map_user(self, claims: Claims, token: OAuth2Token) -> AuthUser:
        """Map validated id_token claims to an AuthUser."""
        pass
