"""Tests for HS256 token signing and multi-secret verification."""

import jwt
import pytest

from ssogate.core.errors import ConfigurationError, NoValidKeyError
from ssogate.crypto.secret_set import SecretStore
from ssogate.crypto.token_codec import TokenCodec
from ssogate.crypto.types import SESSION_SUBJECT, SessionClaims, StateClaims

ISSUER = "ssogate-test"
SECRET = "primary-secret-0123456789abcdefghijklmnop"
OTHER_SECRET = "another-secret-0123456789abcdefghijklmnop"
NOW = 1_700_000_000


def _session(username: str = "alice") -> SessionClaims:
    return SessionClaims(
        iss=ISSUER,
        sub=SESSION_SUBJECT,
        aud=[ISSUER],
        username=username,
        nbf=NOW,
        iat=NOW,
        exp=NOW + 60,
    )


class TestSign:
    """Tests for TokenCodec.sign."""

    def test_creates_compact_hs256_jwt(self, codec: TokenCodec) -> None:
        token = codec.sign(_session())
        assert token.count(".") == 2
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_signs_with_first_secret(self) -> None:
        codec = TokenCodec(SecretStore([SECRET, OTHER_SECRET]))
        token = codec.sign(_session())
        raw = jwt.decode(
            token,
            SECRET,
            algorithms=["HS256"],
            options={"verify_exp": False, "verify_aud": False},
        )
        assert raw["username"] == "alice"
        assert raw["aud"] == [ISSUER]

    def test_no_secret_is_configuration_error(self) -> None:
        codec = TokenCodec(SecretStore([]))
        with pytest.raises(ConfigurationError):
            codec.sign(_session())

    def test_empty_first_secret_is_configuration_error(self) -> None:
        codec = TokenCodec(SecretStore(["", SECRET]))
        with pytest.raises(ConfigurationError):
            codec.sign(_session())


class TestVerify:
    """Tests for TokenCodec.verify."""

    def test_round_trip(self, codec: TokenCodec) -> None:
        claims = codec.verify(codec.sign(_session()), SessionClaims)
        assert claims == _session()

    def test_ignores_temporal_claims(self, codec: TokenCodec) -> None:
        expired = _session().model_copy(update={"exp": 1, "nbf": 0, "iat": 0})
        claims = codec.verify(codec.sign(expired), SessionClaims)
        assert claims.exp == 1

    def test_wrong_key_rejected(self, codec: TokenCodec) -> None:
        token = TokenCodec(SecretStore([OTHER_SECRET])).sign(_session())
        with pytest.raises(NoValidKeyError):
            codec.verify(token, SessionClaims)

    def test_later_secret_accepted(self) -> None:
        token = TokenCodec(SecretStore([OTHER_SECRET])).sign(_session())
        codec = TokenCodec(SecretStore([SECRET, OTHER_SECRET]))
        assert codec.verify(token, SessionClaims).username == "alice"

    def test_shape_mismatch_rejected(self, codec: TokenCodec) -> None:
        token = jwt.encode({"iss": ISSUER, "sub": "x"}, SECRET, algorithm="HS256")
        with pytest.raises(NoValidKeyError):
            codec.verify(token, StateClaims)

    def test_other_algorithm_rejected(self, codec: TokenCodec) -> None:
        token = jwt.encode(_session().model_dump(), SECRET, algorithm="HS512")
        with pytest.raises(NoValidKeyError):
            codec.verify(token, SessionClaims)

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c", "...."])
    def test_malformed_rejected(self, codec: TokenCodec, token: str) -> None:
        with pytest.raises(NoValidKeyError):
            codec.verify(token, SessionClaims)

    def test_failure_reason_not_disclosed(self, codec: TokenCodec) -> None:
        forged = TokenCodec(SecretStore([OTHER_SECRET])).sign(_session())
        with pytest.raises(NoValidKeyError) as wrong_key:
            codec.verify(forged, SessionClaims)
        with pytest.raises(NoValidKeyError) as garbage:
            codec.verify("not-a-token", SessionClaims)
        assert str(wrong_key.value) == str(garbage.value) == "no valid key found"

    def test_no_secrets_rejects(self) -> None:
        token = TokenCodec(SecretStore([SECRET])).sign(_session())
        with pytest.raises(NoValidKeyError):
            TokenCodec(SecretStore([])).verify(token, SessionClaims)
