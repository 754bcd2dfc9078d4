"""Identity endpoint for collaborating applications."""

from fastapi import APIRouter
from pydantic import BaseModel

from ssogate.api.deps import CurrentUser

router = APIRouter(prefix="/auth", tags=["identity"])


class WhoAmIResponse(BaseModel):
    """The authenticated caller."""

    username: str


@router.get("/whoami")
async def whoami(username: CurrentUser) -> WhoAmIResponse:
    """GET /auth/whoami -- name the authenticated caller."""
    return WhoAmIResponse(username=username)
