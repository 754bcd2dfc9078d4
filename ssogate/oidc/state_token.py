"""Short-lived state tokens for the provider redirect round trip."""

from ssogate.core.clock import Clock, utc_now
from ssogate.core.errors import InvalidStateError, NoValidKeyError
from ssogate.crypto.token_codec import TokenCodec
from ssogate.crypto.types import STATE_SUBJECT, StateClaims

STATE_TTL_SECONDS = 300


class StateTokenManager:
    """Mints and checks the ``state`` parameter of the authorize redirect."""

    def __init__(self, codec: TokenCodec, issuer: str, clock: Clock = utc_now) -> None:
        self._codec = codec
        self._issuer = issuer
        self._clock = clock

    def issue(self, return_url: str) -> str:
        """Sign a state token that remembers ``return_url``."""
        now = self._clock()
        claims = StateClaims(
            iss=self._issuer,
            sub=STATE_SUBJECT,
            aud=[self._issuer],
            return_url=return_url,
            nbf=now,
            iat=now,
            exp=now + STATE_TTL_SECONDS,
        )
        return self._codec.sign(claims)

    def validate(self, token: str) -> str:
        """Return the embedded return URL, or raise :class:`InvalidStateError`."""
        if not token:
            raise InvalidStateError()
        try:
            claims = self._codec.verify(token, StateClaims)
        except NoValidKeyError as exc:
            raise InvalidStateError() from exc
        if (
            claims.iss != self._issuer
            or not claims.has_expected_tag()
            or not claims.is_current(self._clock())
        ):
            raise InvalidStateError()
        return claims.return_url
