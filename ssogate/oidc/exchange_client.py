"""OAuth2 authorization-code exchange against the configured provider."""

from typing import TypeVar
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ssogate.core.errors import ProviderError, ProviderTimeoutError
from ssogate.core.settings import ProviderSettings
from ssogate.oidc.types import AccessToken, UserInfo

logger = structlog.get_logger(__name__)

HTTP_MULTIPLE_CHOICES = 300
LOGGED_BODY_LIMIT = 512
BEARER = "Bearer"

ModelT = TypeVar("ModelT", bound=BaseModel)


def derive_username(info: UserInfo) -> str:
    """Pick the caller's name from userinfo, or "" when none is usable."""
    for candidate in (info.username, info.login, info.preferred_username, info.email):
        if candidate:
            return candidate
    return ""


class ExchangeClient:
    """Drives the provider side of the authorization-code flow."""

    def __init__(
        self,
        settings: ProviderSettings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http or httpx.AsyncClient(timeout=settings.timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_authorization_url(self, state: str, redirect_uri: str) -> str:
        """Build the browser redirect to the provider's authorize endpoint."""
        params = {
            "response_type": "code",
            "client_id": self._settings.client_id,
            "scope": self._settings.scopes,
            "redirect_uri": redirect_uri,
        }
        if state:
            params["state"] = state
        sep = "&" if "?" in self._settings.auth_url else "?"
        return f"{self._settings.auth_url}{sep}{urlencode(params)}"

    async def exchange_code_for_token(self, code: str, redirect_uri: str) -> AccessToken:
        """Trade an authorization code for a Bearer access token."""
        body = await self._post_form(
            self._settings.token_url,
            {
                "redirect_uri": redirect_uri,
                "code": code,
                "grant_type": "authorization_code",
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
            },
        )
        token = _decode(body, AccessToken, "token")
        if token.token_type != BEARER or not token.access_token:
            logger.warning("token type invalid", token_type=token.token_type)
            raise ProviderError("invalid access token")
        return token

    async def fetch_user_info(self, access_token: str) -> UserInfo:
        """Fetch the userinfo document for ``access_token``."""
        body = await self._post_form(
            self._settings.userinfo_url, {"access_token": access_token}
        )
        return _decode(body, UserInfo, "userinfo")

    async def _post_form(self, url: str, data: dict[str, str]) -> bytes:
        """POST a form and return the body of a 2xx response."""
        try:
            resp = await self._http.post(url, data=data)
        except httpx.TimeoutException as exc:
            logger.warning("provider timeout", url=url)
            raise ProviderTimeoutError("provider request timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("provider request failed", url=url, error=str(exc))
            raise ProviderError("provider request failed") from exc
        if resp.status_code >= HTTP_MULTIPLE_CHOICES:
            logger.warning(
                "provider returned error status",
                url=url,
                status=resp.status_code,
                body=resp.text[:LOGGED_BODY_LIMIT],
            )
            raise ProviderError("invalid status code")
        return resp.content


def _decode(body: bytes, model: type[ModelT], what: str) -> ModelT:
    try:
        return model.model_validate_json(body)
    except ValidationError as exc:
        logger.warning(
            "cannot decode provider response",
            response=what,
            body=body[:LOGGED_BODY_LIMIT].decode(errors="replace"),
        )
        raise ProviderError(f"cannot decode {what} response") from exc
