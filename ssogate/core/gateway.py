"""Wiring of the gateway components from settings."""

import httpx
from starlette.requests import Request

from ssogate.core.clock import Clock, utc_now
from ssogate.core.errors import ConfigurationError
from ssogate.core.settings import GatewaySettings, ProviderSettings
from ssogate.crypto.secret_set import SecretStore
from ssogate.crypto.token_codec import TokenCodec
from ssogate.oidc.exchange_client import ExchangeClient
from ssogate.oidc.identity import (
    ClientCertificateStrategy,
    IdentityResolver,
    IdentityStrategy,
    LoginRedirector,
    SessionCookieStrategy,
    security_headers,
)
from ssogate.oidc.session_cookie import SessionCookieManager
from ssogate.oidc.state_token import StateTokenManager


class Gateway:
    """Holds the stateless components shared by every request."""

    def __init__(
        self,
        settings: GatewaySettings,
        provider: ProviderSettings,
        http: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
    ) -> None:
        keys = settings.get_secret_list()
        if not keys:
            raise ConfigurationError("invalid authenticator state, no shared secrets")
        self.settings = settings
        self.secrets = SecretStore(keys)
        self.codec = TokenCodec(self.secrets)
        self.states = StateTokenManager(self.codec, settings.app_name, clock)
        self.sessions = SessionCookieManager(self.codec, settings.app_name, clock)
        self.client = ExchangeClient(provider, http)
        self.login = LoginRedirector(
            self.states, self.client, settings.callback_path, settings.external_url
        )
        strategies: list[IdentityStrategy] = []
        if settings.client_cert_auth:
            strategies.append(ClientCertificateStrategy())
        strategies.append(SessionCookieStrategy(self.sessions))
        self.resolver = IdentityResolver(
            strategies,
            self.login,
            header_hook=security_headers if settings.security_headers else None,
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def get_gateway(request: Request) -> Gateway:
    """FastAPI dependency returning the application's gateway."""
    gateway: Gateway = request.app.state.gateway
    return gateway
