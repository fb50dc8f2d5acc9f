"""Shared fixtures for identity provider unit tests.

Provider HTTP traffic goes to StubProviderAPI through httpx.MockTransport,
so no test touches the network.
"""

import base64
import json
from typing import Any, Callable, Dict, List, Tuple
from urllib.parse import parse_qsl

import httpx
import pytest
import pytest_asyncio
from jose import jwt

from auth_providers.core.auth import OAuth2Provider

CLIENT_ID = "1000.TESTCLIENT"
CLIENT_SECRET = "test-client-secret"
REDIRECT_URL = "https://app.example.com/api/v1/auth/oauth2/callback"


class StubProviderAPI:
    """Routes requests by (method, URL without query) to canned responses"""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, response: Any) -> None:
        """Register an httpx.Response or a (possibly async) handler"""
        self.routes[(method.upper(), url)] = response

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        url = request.url
        key = (request.method, f"{url.scheme}://{url.host}{url.path}")
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"error": "not_found"})
        if callable(route):
            return route(request)
        return route

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def form_body(request: httpx.Request) -> Dict[str, str]:
    """Decode a form-encoded request body"""
    return dict(parse_qsl(request.content.decode()))


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


@pytest.fixture
def provider_api() -> StubProviderAPI:
    return StubProviderAPI()


@pytest_asyncio.fixture
async def http_client(provider_api):
    async with provider_api.client() as client:
        yield client


@pytest.fixture
def configure() -> Callable[[OAuth2Provider, httpx.AsyncClient], OAuth2Provider]:
    """Apply test credentials and the stub HTTP client to a provider"""

    def _configure(provider: OAuth2Provider, client: httpx.AsyncClient = None) -> OAuth2Provider:
        provider.client_id = CLIENT_ID
        provider.client_secret = CLIENT_SECRET
        provider.redirect_url = REDIRECT_URL
        provider.http_client = client
        return provider

    return _configure


@pytest.fixture
def make_id_token() -> Callable[..., str]:
    """Build an id_token; HS256-signed with a key the provider never sees"""

    def _make(claims: Dict[str, Any], signed: bool = True) -> str:
        if signed:
            return jwt.encode(claims, "not-the-providers-key", algorithm="HS256")
        header = _b64url(json.dumps({"alg": "none", "typ": "JWT"}).encode())
        payload = _b64url(json.dumps(claims).encode())
        return f"{header}.{payload}."

    return _make
