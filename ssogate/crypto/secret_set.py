"""Ordered symmetric signing secrets with copy-on-write rotation."""

import secrets
import threading
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from ssogate.core.errors import ConfigurationError

GENERATED_SECRET_BYTES = 32


class SecretSet(BaseModel):
    """Immutable snapshot of the configured secrets.

    ``keys[0]`` signs new tokens; every entry is accepted for verification.
    """

    model_config = ConfigDict(frozen=True)

    keys: tuple[str, ...] = ()

    def signing_key(self) -> str:
        """Return the active signing secret."""
        if not self.keys or not self.keys[0]:
            raise ConfigurationError("invalid authenticator state, no shared secrets")
        return self.keys[0]


class SecretStore:
    """Publishes :class:`SecretSet` snapshots.

    Readers take one snapshot per operation and never lock. Writers build a
    new snapshot and swap it in with a single assignment.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._snapshot = SecretSet(keys=tuple(keys))
        self._write_lock = threading.Lock()

    def snapshot(self) -> SecretSet:
        """Return the currently published secrets."""
        return self._snapshot

    def replace(self, keys: Iterable[str]) -> SecretSet:
        """Publish an entirely new ordered secret list."""
        new = SecretSet(keys=tuple(keys))
        with self._write_lock:
            self._snapshot = new
        return new

    def rotate(self, new_secret: str) -> SecretSet:
        """Make ``new_secret`` the signing key, keeping older ones for verification."""
        if not new_secret:
            raise ConfigurationError("cannot rotate to an empty secret")
        with self._write_lock:
            rest = tuple(k for k in self._snapshot.keys if k != new_secret)
            self._snapshot = SecretSet(keys=(new_secret, *rest))
            return self._snapshot

    def retire(self, old_secret: str) -> SecretSet:
        """Drop a secret once every token signed with it has expired."""
        with self._write_lock:
            remaining = tuple(k for k in self._snapshot.keys if k != old_secret)
            if not remaining:
                raise ConfigurationError("refusing to retire the last shared secret")
            self._snapshot = SecretSet(keys=remaining)
            return self._snapshot


def generate_secret() -> str:
    """Generate a random URL-safe secret suitable for HS256 signing."""
    return secrets.token_urlsafe(GENERATED_SECRET_BYTES)
