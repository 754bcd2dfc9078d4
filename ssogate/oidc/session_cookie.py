"""Signed session cookies identifying an authenticated browser."""

from datetime import UTC, datetime

import structlog

from ssogate.core.clock import Clock, utc_now
from ssogate.core.errors import CorruptSessionError, NoValidKeyError
from ssogate.crypto.token_codec import TokenCodec
from ssogate.crypto.types import AUTH_COOKIE_NAME, SESSION_SUBJECT, SessionClaims
from ssogate.oidc.types import SessionCookie

logger = structlog.get_logger(__name__)

COOKIE_EXPIRATION_SECONDS = 2 * 60 * 60


class SessionCookieManager:
    """Issues and validates the auth cookie."""

    def __init__(self, codec: TokenCodec, issuer: str, clock: Clock = utc_now) -> None:
        self._codec = codec
        self._issuer = issuer
        self._clock = clock

    def issue(self, username: str) -> SessionCookie:
        """Build a two-hour session cookie for ``username``."""
        now = self._clock()
        expires = now + COOKIE_EXPIRATION_SECONDS
        claims = SessionClaims(
            iss=self._issuer,
            sub=SESSION_SUBJECT,
            username=username,
            aud=[self._issuer],
            nbf=now,
            iat=now,
            exp=expires,
        )
        return SessionCookie(
            name=AUTH_COOKIE_NAME,
            value=self._codec.sign(claims),
            path="/",
            expires=datetime.fromtimestamp(expires, UTC),
        )

    def validate(self, cookie_value: str) -> str:
        """Return the session's username, or "" if the caller must log in again.

        Unreadable, forged, expired and mis-scoped cookies all yield "".
        A correctly signed and current token without a username raises
        :class:`CorruptSessionError`.
        """
        if not cookie_value:
            logger.info("invalid cookie value (empty)")
            return ""
        try:
            claims = self._codec.verify(cookie_value, SessionClaims)
        except NoValidKeyError:
            logger.info("invalid cookie value (signature)")
            return ""
        if (
            claims.iss != self._issuer
            or not claims.has_expected_tag()
            or not claims.is_current(self._clock())
        ):
            logger.info("invalid cookie value (claims)")
            return ""
        if not claims.username:
            raise CorruptSessionError("bad cookie value state")
        return claims.username
