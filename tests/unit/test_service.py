"""Unit tests for ExternalAuthService login orchestration"""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from auth_providers.config.settings import OAuthClientSettings, Settings
from auth_providers.core.auth import (
    ConfigError,
    ExternalAuthService,
    StateMismatchError,
    build_default_registry,
    code_challenge_s256,
)
from auth_providers.domain.models import AuthorizationRequest

from conftest import CLIENT_ID, CLIENT_SECRET, form_body

pytestmark = pytest.mark.unit

ZOHO_TOKEN_URL = "https://accounts.zoho.com/oauth/v2/token"


@pytest.fixture
def settings():
    return Settings(
        oauth_redirect_url="https://app.example.com/default-callback",
        oauth_http_timeout_seconds=5.0,
        oauth_request_ttl_seconds=300,
        oauth_providers={
            "zoho": OAuthClientSettings(client_id=CLIENT_ID, client_secret=CLIENT_SECRET),
            "github": OAuthClientSettings(
                client_id="gh-id",
                client_secret="gh-secret",
                redirect_url="https://app.example.com/github-callback",
                scopes=["read:user"],
            ),
            "gitlab": OAuthClientSettings(client_id="gl", client_secret="gl", enabled=False),
        },
    )


@pytest.fixture
def request_store():
    store = AsyncMock()
    store.save = AsyncMock(return_value=None)
    store.pop = AsyncMock(return_value=None)
    return store


@pytest.fixture
def service(settings, request_store, http_client):
    return ExternalAuthService(build_default_registry(), settings, request_store, http_client)


def query_of(url: str) -> dict:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


class TestListAuthMethods:
    """Test sign-in method listing"""

    def test_only_configured_and_enabled(self, service):
        methods = service.list_auth_methods()

        assert [m.name for m in methods] == ["github", "zoho"]
        zoho = methods[1]
        assert zoho.display_name == "Zoho"
        assert zoho.pkce is True


class TestCreateProvider:
    """Test provider configuration from settings"""

    def test_applies_credentials_and_defaults(self, service, http_client):
        provider = service.create_provider("zoho")

        assert provider.client_id == CLIENT_ID
        assert provider.client_secret == CLIENT_SECRET
        assert provider.redirect_url == "https://app.example.com/default-callback"
        assert provider.timeout == 5.0
        assert provider.http_client is http_client
        assert provider.scopes == ["profile", "email", "openid"]

    def test_applies_overrides(self, service):
        provider = service.create_provider("GitHub")

        assert provider.redirect_url == "https://app.example.com/github-callback"
        assert provider.scopes == ["read:user"]

    def test_missing_credentials(self, service):
        with pytest.raises(ConfigError, match="missing client credentials"):
            service.create_provider("google")

    def test_disabled_provider(self, service):
        with pytest.raises(ConfigError, match="disabled"):
            service.create_provider("gitlab")

    def test_unknown_provider(self, service):
        with pytest.raises(ConfigError, match="unknown provider"):
            service.create_provider("myspace")

    def test_each_call_is_a_fresh_instance(self, service):
        first = service.create_provider("zoho")
        first.client_secret = "tampered"
        assert service.create_provider("zoho").client_secret == CLIENT_SECRET


class TestBeginLogin:
    """Test login initiation"""

    @pytest.mark.asyncio
    async def test_builds_pkce_url_and_stores_request(self, service, request_store):
        start = await service.begin_login("zoho")

        query = query_of(start.authorization_url)
        assert start.authorization_url.startswith("https://accounts.zoho.com/oauth/v2/auth?")
        assert query["state"] == start.request.state
        assert query["code_challenge"] == code_challenge_s256(start.request.code_verifier)
        assert start.request.provider == "zoho"
        assert start.request.redirect_url == "https://app.example.com/default-callback"

        request_store.save.assert_awaited_once_with(start.request, 300)

    @pytest.mark.asyncio
    async def test_redirect_override(self, service):
        start = await service.begin_login("zoho", redirect_url="https://other.example.com/cb")

        assert query_of(start.authorization_url)["redirect_uri"] == "https://other.example.com/cb"
        assert start.request.redirect_url == "https://other.example.com/cb"

    @pytest.mark.asyncio
    async def test_states_are_unique(self, service):
        first = await service.begin_login("zoho")
        second = await service.begin_login("zoho")
        assert first.request.state != second.request.state
        assert first.request.code_verifier != second.request.code_verifier


class TestCompleteLogin:
    """Test callback handling"""

    @pytest.fixture
    def zoho_token_endpoint(self, provider_api, make_id_token):
        id_token = make_id_token({
            "iss": "https://accounts.zoho.eu",
            "aud": CLIENT_ID,
            "sub": "777",
            "email": "user@example.eu",
            "name": "EU User",
        })
        provider_api.add("POST", ZOHO_TOKEN_URL, httpx.Response(200, json={
            "access_token": "at",
            "expires_in": 3600,
            "id_token": id_token,
        }))
        return provider_api

    @pytest.mark.asyncio
    async def test_with_explicit_request(self, service, zoho_token_endpoint):
        start = await service.begin_login("zoho")

        user = await service.complete_login(start.request.state, "the-code", request=start.request)

        assert user.id == "777"
        assert user.email == "user@example.eu"
        body = form_body(zoho_token_endpoint.requests[0])
        assert body["code_verifier"] == start.request.code_verifier
        assert body["code"] == "the-code"

    @pytest.mark.asyncio
    async def test_with_request_store(self, service, request_store, zoho_token_endpoint):
        start = await service.begin_login("zoho")
        request_store.pop.return_value = start.request

        user = await service.complete_login(start.request.state, "the-code")

        assert user.id == "777"
        request_store.pop.assert_awaited_once_with(start.request.state)

    @pytest.mark.asyncio
    async def test_unknown_state(self, service, request_store):
        request_store.pop.return_value = None

        with pytest.raises(StateMismatchError, match="unknown or expired"):
            await service.complete_login("forged-state", "code")

    @pytest.mark.asyncio
    async def test_state_mismatch(self, service, provider_api):
        request = AuthorizationRequest(provider="zoho", state="expected", code_verifier="v" * 43)

        with pytest.raises(StateMismatchError, match="does not match"):
            await service.complete_login("other", "code", request=request)
        assert provider_api.requests == []

    @pytest.mark.asyncio
    async def test_no_store_and_no_request(self, settings, http_client):
        service = ExternalAuthService(build_default_registry(), settings, http_client=http_client)

        with pytest.raises(ConfigError, match="no request store"):
            await service.complete_login("state", "code")
