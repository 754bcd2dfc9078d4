"""Claim sets carried by the gateway's signed tokens."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

AUTH_COOKIE_NAME = "auth_cookie"
REDIRECT_STATE_NAME = "redir_cookie"

STATE_SUBJECT = "state:" + REDIRECT_STATE_NAME
SESSION_SUBJECT = "state:" + AUTH_COOKIE_NAME


class SignedClaims(BaseModel):
    """Registered JWT claims shared by every token kind.

    Token kinds are distinguished by their ``sub`` tag; a subclass names the
    tag it expects in ``subject``.
    """

    model_config = ConfigDict(frozen=True)

    subject: ClassVar[str] = ""

    iss: str
    sub: str
    aud: list[str] = []
    exp: int
    nbf: int
    iat: int

    def has_expected_tag(self) -> bool:
        """True if ``sub`` carries this kind's subject tag."""
        return bool(self.subject) and self.sub == self.subject

    def is_current(self, now: int) -> bool:
        """True if ``now`` lies in ``[nbf, exp)``."""
        return self.nbf <= now < self.exp


class StateClaims(SignedClaims):
    """Login state carried through the provider round trip."""

    subject: ClassVar[str] = STATE_SUBJECT

    return_url: str = ""


class SessionClaims(SignedClaims):
    """Authenticated browser session stored in the auth cookie."""

    subject: ClassVar[str] = SESSION_SUBJECT

    username: str = ""
