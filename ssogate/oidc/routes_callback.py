"""OAuth2 redirect (callback) endpoint."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from starlette.responses import JSONResponse, Response

from ssogate.core.errors import (
    ConfigurationError,
    InvalidStateError,
    ProviderError,
)
from ssogate.core.gateway import Gateway, get_gateway
from ssogate.oidc.exchange_client import derive_username
from ssogate.oidc.identity import safe_return_url

logger = structlog.get_logger(__name__)

HTTP_FOUND = 302
HTTP_UNAUTHORIZED = 401
HTTP_INTERNAL_ERROR = 500
HTTP_SERVICE_UNAVAILABLE = 503


def _server_error(status_code: int = HTTP_INTERNAL_ERROR) -> JSONResponse:
    return JSONResponse({"error": "server_error"}, status_code=status_code)


async def oauth2_callback(
    request: Request,
    gateway: Annotated[Gateway, Depends(get_gateway)],
    code: str = "",
    state: str = "",
) -> Response:
    """GET <callback path> -- finish login and set the session cookie."""
    if not code:
        logger.info("null code")
        return JSONResponse({"error": "invalid_request"}, status_code=HTTP_UNAUTHORIZED)

    try:
        return_url = gateway.states.validate(state)
    except InvalidStateError:
        logger.info("error processing state")
        return JSONResponse({"error": "invalid_state"}, status_code=HTTP_UNAUTHORIZED)

    redirect_uri = gateway.login.redirect_uri(request)
    try:
        token = await gateway.client.exchange_code_for_token(code, redirect_uri)
        info = await gateway.client.fetch_user_info(token.access_token)
    except ProviderError as exc:
        logger.error(
            "bad transaction with provider", error=str(exc), retryable=exc.retryable
        )
        if exc.retryable:
            return _server_error(HTTP_SERVICE_UNAVAILABLE)
        return _server_error()

    username = derive_username(info)
    if not username:
        logger.error("userinfo carries no usable username")
        return _server_error()

    try:
        cookie = gateway.sessions.issue(username)
    except ConfigurationError as exc:
        logger.error("cannot set auth cookie", error=str(exc))
        return _server_error()

    logger.info("login complete", username=username)
    response = RedirectResponse(url=safe_return_url(return_url), status_code=HTTP_FOUND)
    cookie.apply(response)
    return response


def build_callback_router(callback_path: str) -> APIRouter:
    """Router serving the provider redirect at ``callback_path``."""
    router = APIRouter()
    router.add_api_route(
        callback_path, oauth2_callback, methods=["GET"], response_model=None
    )
    return router
