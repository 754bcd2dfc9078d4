"""Exception types raised across the gateway."""

from starlette.responses import Response


class GatewayError(Exception):
    """Base class for gateway failures."""


class ConfigurationError(GatewayError):
    """The gateway is missing something it cannot run without."""


class NoValidKeyError(GatewayError):
    """No configured secret both verified and decoded a token."""

    def __init__(self) -> None:
        super().__init__("no valid key found")


class InvalidStateError(GatewayError):
    """An inbound OAuth2 state parameter was missing or did not validate."""

    def __init__(self) -> None:
        super().__init__("null or bad inbound state")


class CorruptSessionError(GatewayError):
    """A correctly signed session token carried no username."""


class ProviderError(GatewayError):
    """The identity provider returned something unusable."""

    retryable = False


class ProviderTimeoutError(ProviderError):
    """The identity provider did not answer within the configured timeout."""

    retryable = True


class LoginRequired(GatewayError):
    """The caller is not authenticated; ``response`` must be sent as-is."""

    def __init__(self, response: Response) -> None:
        super().__init__("login required")
        self.response = response
