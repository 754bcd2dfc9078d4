"""HS256 JWT signing and multi-secret verification."""

from typing import TypeVar

import jwt
from jwt.types import Options
from jwt.utils import base64url_decode, base64url_encode
from pydantic import ValidationError

from ssogate.core.errors import NoValidKeyError
from ssogate.crypto.secret_set import SecretStore
from ssogate.crypto.types import SignedClaims

ALGORITHM = "HS256"

ClaimsT = TypeVar("ClaimsT", bound=SignedClaims)

# Temporal and issuer checks belong to the callers, which evaluate them
# against their own clock.
_DECODE_OPTIONS: Options = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}


def _is_canonical(token: str) -> bool:
    """Reject segments whose base64url form is not the canonical encoding."""
    segments = token.split(".")
    if len(segments) != 3:
        return False
    try:
        return all(
            base64url_encode(base64url_decode(seg)).decode() == seg for seg in segments
        )
    except (ValueError, UnicodeDecodeError):
        return False


class TokenCodec:
    """Signs claims with the active secret and verifies against all secrets."""

    def __init__(self, store: SecretStore) -> None:
        self._store = store

    def sign(self, claims: SignedClaims) -> str:
        """Serialize ``claims`` as a compact JWT signed with secret 0."""
        key = self._store.snapshot().signing_key()
        return jwt.encode(claims.model_dump(), key, algorithm=ALGORITHM)

    def verify(self, token: str, claims_type: type[ClaimsT]) -> ClaimsT:
        """Verify ``token`` and decode it into ``claims_type``.

        Secrets are tried in priority order. The first one that both checks
        the signature and yields a valid ``claims_type`` wins. Every failure
        is reported as the same :class:`NoValidKeyError`.
        """
        if not _is_canonical(token):
            raise NoValidKeyError()
        for key in self._store.snapshot().keys:
            try:
                raw = jwt.decode(
                    token, key, algorithms=[ALGORITHM], options=_DECODE_OPTIONS
                )
                return claims_type.model_validate(raw)
            except (jwt.PyJWTError, ValidationError):
                continue
        raise NoValidKeyError()
