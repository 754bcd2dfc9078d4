"""Shared test fixtures for SSOGATE."""

import json
from collections.abc import AsyncIterator
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from ssogate.api.deps import CurrentUser
from ssogate.core.app import create_app
from ssogate.core.clock import utc_now
from ssogate.core.settings import GatewaySettings, ProviderSettings
from ssogate.crypto.secret_set import SecretStore
from ssogate.crypto.token_codec import TokenCodec

ISSUER = "ssogate-test"
SECRET = "primary-secret-0123456789abcdefghijklmnop"
OLD_SECRET = "retired-secret-0123456789abcdefghijklmnop"
AUTH_URL = "https://idp.example.com/oauth/authorize"
TOKEN_URL = "https://idp.example.com/oauth/token"
USERINFO_URL = "https://idp.example.com/oauth/userinfo"
CLIENT_ID = "gateway-client"
CLIENT_SECRET = "gateway-client-secret"
BASE_URL = "https://gateway.test"


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeProvider:
    """In-process stand-in for the identity provider's back channel."""

    def __init__(self) -> None:
        self.token_status = 200
        self.token_body: object = {"access_token": "tok123", "token_type": "Bearer"}
        self.userinfo_status = 200
        self.userinfo_body: object = {"username": "alice"}
        self.timeout = False
        self.requests: list[httpx.Request] = []

    def form(self, index: int) -> dict[str, str]:
        """Decode the form body of the ``index``-th request received."""
        parsed = parse_qs(self.requests[index].content.decode())
        return {k: v[0] for k, v in parsed.items()}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if str(request.url) == TOKEN_URL:
            return _respond(self.token_status, self.token_body)
        if str(request.url) == USERINFO_URL:
            return _respond(self.userinfo_status, self.userinfo_body)
        return httpx.Response(404)


def _respond(status: int, body: object) -> httpx.Response:
    if isinstance(body, str):
        return httpx.Response(status, text=body)
    return httpx.Response(status, content=json.dumps(body).encode())


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("SSOGATE_APP_NAME", ISSUER)
    monkeypatch.setenv("SSOGATE_SHARED_SECRETS", SECRET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(utc_now())


@pytest.fixture
def store() -> SecretStore:
    return SecretStore([SECRET])


@pytest.fixture
def codec(store: SecretStore) -> TokenCodec:
    return TokenCodec(store)


@pytest.fixture
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        auth_url=AUTH_URL,
        token_url=TOKEN_URL,
        userinfo_url=USERINFO_URL,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
    )


@pytest.fixture
def gateway_settings() -> GatewaySettings:
    return GatewaySettings(app_name=ISSUER, shared_secrets=SECRET)


@pytest.fixture
def idp() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def provider_http(idp: FakeProvider) -> httpx.AsyncClient:
    """httpx client whose transport is the fake provider."""
    return httpx.AsyncClient(transport=httpx.MockTransport(idp.handler))


@pytest.fixture
def app(
    gateway_settings: GatewaySettings,
    provider_settings: ProviderSettings,
    provider_http: httpx.AsyncClient,
    clock: FakeClock,
) -> FastAPI:
    """Gateway application plus a protected page, talking to the fake provider."""
    application = create_app(
        gateway_settings, provider_settings, http=provider_http, clock=clock
    )

    @application.get("/protected")
    async def protected(username: CurrentUser) -> dict[str, str]:
        return {"page": "protected", "username": username}

    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client for the gateway."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac
