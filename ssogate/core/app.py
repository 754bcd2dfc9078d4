"""FastAPI application factory for the SSOGATE authentication gateway."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.responses import Response

from ssogate.api.router_identity import router as identity_router
from ssogate.core.clock import Clock, utc_now
from ssogate.core.errors import LoginRequired
from ssogate.core.gateway import Gateway
from ssogate.core.logging import configure_logging
from ssogate.core.settings import GatewaySettings, ProviderSettings
from ssogate.oidc.routes_callback import build_callback_router


async def _login_required_handler(_request: Request, exc: Exception) -> Response:
    assert isinstance(exc, LoginRequired)
    return exc.response


def create_app(
    settings: GatewaySettings | None = None,
    provider: ProviderSettings | None = None,
    http: httpx.AsyncClient | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = settings or GatewaySettings()
    provider = provider or ProviderSettings()
    configure_logging(settings.log_level, json=settings.log_json)
    gateway = Gateway(settings, provider, http=http, clock=clock)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await gateway.aclose()

    app = FastAPI(
        title="SSOGATE Authentication Gateway",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.add_exception_handler(LoginRequired, _login_required_handler)

    app.include_router(build_callback_router(settings.callback_path))
    app.include_router(identity_router)

    return app
