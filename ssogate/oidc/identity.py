"""Per-request identity resolution.

Strategies are consulted in order; the first one that names the caller
wins. When none does, the caller is sent to the provider's login page with
a freshly minted state token.
"""

from collections.abc import Callable, Sequence
from typing import Protocol
from urllib.parse import urlsplit

import structlog
from cryptography import x509
from cryptography.x509.oid import NameOID
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from ssogate.core.errors import ConfigurationError, CorruptSessionError
from ssogate.crypto.types import AUTH_COOKIE_NAME
from ssogate.oidc.exchange_client import ExchangeClient
from ssogate.oidc.session_cookie import SessionCookieManager
from ssogate.oidc.state_token import StateTokenManager
from ssogate.oidc.types import Resolution

logger = structlog.get_logger(__name__)

HTTP_FOUND = 302
HTTP_INTERNAL_ERROR = 500

HeaderHook = Callable[[], dict[str, str]]


class IdentityStrategy(Protocol):
    """A way of recognising an already-authenticated caller.

    Transport-level strategies are consulted before the response header hook
    runs; a caller they name never goes through it.
    """

    transport_level: bool

    def resolve(self, request: Request) -> str | None:
        """Return the caller's username, or None if this strategy cannot tell."""
        ...


class ClientCertificateStrategy:
    """Names the caller from a verified TLS client certificate.

    Reads the ASGI ``tls`` extension; only chains the server reports as
    verified (``client_cert_error`` is None) are trusted.
    """

    transport_level = True

    def resolve(self, request: Request) -> str | None:
        tls = request.scope.get("extensions", {}).get("tls") or {}
        chain = tls.get("client_cert_chain") or ()
        if not chain or tls.get("client_cert_error") is not None:
            return None
        leaf = chain[0]
        if isinstance(leaf, str):
            leaf = leaf.encode()
        cert = x509.load_pem_x509_certificate(leaf)
        names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        if not names:
            return None
        return str(names[0].value) or None


class SessionCookieStrategy:
    """Names the caller from the signed session cookie."""

    transport_level = False

    def __init__(self, sessions: SessionCookieManager) -> None:
        self._sessions = sessions

    def resolve(self, request: Request) -> str | None:
        value = request.cookies.get(AUTH_COOKIE_NAME)
        if value is None:
            return None
        return self._sessions.validate(value) or None


def return_url_of(request: Request) -> str:
    """Path and query of ``request``, used as the post-login destination.

    The path keeps the percent-encoding the client sent.
    """
    raw_path = request.scope.get("raw_path")
    url = raw_path.decode("latin-1") if raw_path else request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def safe_return_url(url: str) -> str:
    """Restrict a post-login redirect to a local path."""
    parts = urlsplit(url)
    if (
        parts.scheme
        or parts.netloc
        or not url.startswith("/")
        or url.startswith("//")
        or url.startswith("/\\")
    ):
        return "/"
    return url


class LoginRedirector:
    """Builds the redirect that starts the authorization-code flow."""

    def __init__(
        self,
        states: StateTokenManager,
        client: ExchangeClient,
        callback_path: str,
        external_url: str = "",
    ) -> None:
        self._states = states
        self._client = client
        self._callback_path = callback_path
        self._external_url = external_url.rstrip("/")

    def redirect_uri(self, request: Request) -> str:
        """Absolute callback URL registered with the provider."""
        if self._external_url:
            return self._external_url + self._callback_path
        return f"https://{request.url.netloc}{self._callback_path}"

    def redirect(self, request: Request) -> RedirectResponse:
        state = self._states.issue(return_url_of(request))
        url = self._client.build_authorization_url(state, self.redirect_uri(request))
        return RedirectResponse(url=url, status_code=HTTP_FOUND)


class IdentityResolver:
    """Decides whether a request is authenticated or must log in."""

    def __init__(
        self,
        strategies: Sequence[IdentityStrategy],
        login: LoginRedirector,
        header_hook: HeaderHook | None = None,
    ) -> None:
        self._strategies = tuple(strategies)
        self._login = login
        self._header_hook = header_hook

    def resolve(self, request: Request) -> Resolution:
        """Resolve the caller of ``request``.

        An unauthenticated result carries the response to send instead of
        the protected resource.
        """
        headers: dict[str, str] = {}
        hook_pending = self._header_hook is not None
        response: Response
        try:
            for strategy in self._strategies:
                if hook_pending and not strategy.transport_level:
                    headers = self._run_header_hook()
                    hook_pending = False
                username = strategy.resolve(request)
                if username:
                    return Resolution(
                        username=username, authenticated=True, headers=headers
                    )
            if hook_pending:
                headers = self._run_header_hook()
            response = self._login.redirect(request)
        except CorruptSessionError:
            logger.error("signed session cookie without username")
            response = JSONResponse(
                {"error": "server_error"}, status_code=HTTP_INTERNAL_ERROR
            )
        except ConfigurationError as exc:
            logger.error("gateway misconfigured", error=str(exc))
            response = JSONResponse(
                {"error": "server_error"}, status_code=HTTP_INTERNAL_ERROR
            )
        response.headers.update(headers)
        return Resolution(authenticated=False, response=response, headers=headers)

    def _run_header_hook(self) -> dict[str, str]:
        assert self._header_hook is not None
        try:
            return self._header_hook()
        except Exception as exc:
            logger.exception("response header hook failed")
            raise ConfigurationError("cannot set response headers") from exc


def security_headers() -> dict[str, str]:
    """Headers added to every response of a protected resource."""
    return {
        "Strict-Transport-Security": "max-age=31536000",
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
    }
