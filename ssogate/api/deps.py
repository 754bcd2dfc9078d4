"""FastAPI dependencies exposing the caller's identity."""

from typing import Annotated

from fastapi import Depends, Request, Response

from ssogate.core.errors import LoginRequired
from ssogate.core.gateway import Gateway, get_gateway


async def require_identity(
    request: Request,
    response: Response,
    gateway: Annotated[Gateway, Depends(get_gateway)],
) -> str:
    """Return the caller's username or abort with the login redirect."""
    result = gateway.resolver.resolve(request)
    if not result.authenticated:
        assert result.response is not None
        raise LoginRequired(result.response)
    response.headers.update(result.headers)
    return result.username


CurrentUser = Annotated[str, Depends(require_identity)]
