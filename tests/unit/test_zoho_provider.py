"""Unit tests for the Zoho id_token provider"""

from datetime import timedelta

import httpx
import pytest

from auth_providers.core.auth import (
    ClaimsDecodeError,
    ClaimsValidationError,
    MissingFieldError,
    build_default_registry,
)
from auth_providers.core.auth.providers.zoho import ZOHO_ISSUERS
from auth_providers.domain.models import OAuth2Token, utc_now

from conftest import CLIENT_ID

pytestmark = pytest.mark.unit


@pytest.fixture
def zoho(configure):
    return configure(build_default_registry().get("zoho"))


@pytest.fixture
def claims():
    return {
        "iss": "https://accounts.zoho.com",
        "aud": CLIENT_ID,
        "sub": "123",
        "email": "a@b.com",
        "name": "A B",
        "picture": "http://x/y.png",
    }


def token_with(id_token=None, **extra) -> OAuth2Token:
    payload = dict(extra)
    if id_token is not None:
        payload["id_token"] = id_token
    return OAuth2Token(
        access_token="zoho-at",
        refresh_token="zoho-rt",
        expiry=utc_now() + timedelta(hours=1),
        extra=payload,
    )


class TestZohoFetchAuthUser:
    """Test id_token based identity extraction"""

    @pytest.mark.asyncio
    async def test_happy_path(self, zoho, claims, make_id_token):
        token = token_with(make_id_token(claims))

        user = await zoho.fetch_auth_user(token)

        assert user.id == "123"
        assert user.username == "a@b.com"
        assert user.name == "A B"
        assert user.email == "a@b.com"
        assert user.avatar_url == "http://x/y.png"
        assert user.access_token == "zoho-at"
        assert user.refresh_token == "zoho-rt"
        assert user.expiry == token.expiry
        assert user.raw_user["sub"] == "123"
        assert user.raw_user["iss"] == "https://accounts.zoho.com"

    @pytest.mark.asyncio
    async def test_unsigned_token_accepted(self, zoho, claims, make_id_token):
        """Trust comes from the token endpoint channel, not the signature"""
        user = await zoho.fetch_auth_user(token_with(make_id_token(claims, signed=False)))
        assert user.id == "123"

    @pytest.mark.asyncio
    async def test_missing_id_token(self, zoho):
        with pytest.raises(MissingFieldError, match="missing id_token") as exc_info:
            await zoho.fetch_auth_user(token_with())
        assert exc_info.value.field == "id_token"

    @pytest.mark.asyncio
    async def test_empty_id_token(self, zoho):
        with pytest.raises(MissingFieldError, match="missing id_token"):
            await zoho.fetch_auth_user(token_with(""))

    @pytest.mark.asyncio
    async def test_garbage_id_token(self, zoho):
        with pytest.raises(ClaimsDecodeError):
            await zoho.fetch_auth_user(token_with("definitely-not-a-jwt"))

    @pytest.mark.asyncio
    async def test_issuer_outside_allow_list(self, zoho, claims, make_id_token):
        claims["iss"] = "https://accounts.zoho.de"

        with pytest.raises(ClaimsValidationError, match="invalid id_token issuer"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims, signed=False)))

    @pytest.mark.asyncio
    async def test_missing_issuer(self, zoho, claims, make_id_token):
        del claims["iss"]

        with pytest.raises(ClaimsValidationError, match="issuer"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims)))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("issuer", ZOHO_ISSUERS)
    async def test_every_data_center_issuer_accepted(self, zoho, claims, make_id_token, issuer):
        claims["iss"] = issuer
        user = await zoho.fetch_auth_user(token_with(make_id_token(claims)))
        assert user.id == "123"

    @pytest.mark.asyncio
    async def test_audience_mismatch(self, zoho, claims, make_id_token):
        claims["aud"] = "1000.SOMEONEELSE"

        with pytest.raises(ClaimsValidationError, match="audience"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims)))

    @pytest.mark.asyncio
    async def test_audience_missing(self, zoho, claims, make_id_token):
        del claims["aud"]

        with pytest.raises(ClaimsValidationError, match="audience"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims)))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("audience", [5, [1], {"client": CLIENT_ID}])
    async def test_audience_of_wrong_type(self, zoho, claims, make_id_token, audience):
        claims["aud"] = audience

        with pytest.raises(ClaimsValidationError, match="audience"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims)))

    @pytest.mark.asyncio
    async def test_audience_list_containing_client(self, zoho, claims, make_id_token):
        claims["aud"] = ["other", CLIENT_ID]
        user = await zoho.fetch_auth_user(token_with(make_id_token(claims)))
        assert user.id == "123"

    @pytest.mark.asyncio
    async def test_unverified_email_rejected(self, zoho, claims, make_id_token):
        claims["email_verified"] = False

        with pytest.raises(ClaimsValidationError, match="not verified"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims)))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verified", [True, "true"])
    async def test_verified_email_accepted(self, zoho, claims, make_id_token, verified):
        claims["email_verified"] = verified
        user = await zoho.fetch_auth_user(token_with(make_id_token(claims)))
        assert user.email == "a@b.com"

    @pytest.mark.asyncio
    async def test_missing_email(self, zoho, claims, make_id_token):
        del claims["email"]

        with pytest.raises(MissingFieldError) as exc_info:
            await zoho.fetch_auth_user(token_with(make_id_token(claims)))
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_subject_with_wrong_type(self, zoho, claims, make_id_token):
        claims["sub"] = {"id": "123"}

        with pytest.raises(ClaimsDecodeError, match="sub"):
            await zoho.fetch_auth_user(token_with(make_id_token(claims, signed=False)))

    @pytest.mark.asyncio
    async def test_optional_fields_default_to_empty(self, zoho, claims, make_id_token):
        del claims["name"]
        del claims["picture"]

        user = await zoho.fetch_auth_user(token_with(make_id_token(claims)))

        assert user.name == ""
        assert user.avatar_url == ""


class TestZohoLoginFlow:
    """Test the full exchange + fetch against a stub token endpoint"""

    @pytest.mark.asyncio
    async def test_exchange_then_fetch(self, configure, http_client, provider_api, claims, make_id_token):
        zoho = configure(build_default_registry().get("zoho"), http_client)
        provider_api.add("POST", "https://accounts.zoho.com/oauth/v2/token", httpx.Response(200, json={
            "access_token": "1000.at",
            "refresh_token": "1000.rt",
            "expires_in": 3600,
            "token_type": "Bearer",
            "api_domain": "https://www.zohoapis.eu",
            "id_token": make_id_token(claims),
        }))

        token = await zoho.exchange_code("zoho-code", code_verifier="v" * 43)
        user = await zoho.fetch_auth_user(token)

        assert user.id == "123"
        assert user.access_token == "1000.at"
        assert user.expiry == token.expiry
        assert len(provider_api.requests) == 1
