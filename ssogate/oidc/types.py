"""Type definitions for provider responses and gateway results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from starlette.responses import Response


class AccessToken(BaseModel):
    """OAuth token endpoint response."""

    access_token: str = ""
    token_type: str = ""
    expires_in: int | float | str | None = None
    id_token: str | None = None


class UserInfo(BaseModel):
    """OpenID Connect userinfo response fields used to name the caller."""

    model_config = ConfigDict(extra="allow")

    sub: str | None = None
    name: str | None = None
    username: str | None = None
    login: str | None = None
    preferred_username: str | None = None
    email: str | None = None


class SessionCookie(BaseModel):
    """Set-Cookie instruction for an authenticated session."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    path: str = "/"
    expires: datetime
    httponly: bool = True
    secure: bool = True

    def apply(self, response: Response) -> None:
        """Attach this cookie to ``response``."""
        response.set_cookie(
            key=self.name,
            value=self.value,
            path=self.path,
            expires=self.expires,
            httponly=self.httponly,
            secure=self.secure,
        )


class Resolution(BaseModel):
    """Outcome of resolving a request's identity.

    When ``authenticated`` is false, ``response`` holds the redirect or error
    already prepared for the caller; nothing else may be written.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    username: str = ""
    authenticated: bool = False
    response: Response | None = None
    headers: dict[str, str] = {}
