"""WhoAmI endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from podagent.api.errors import UnknownAuthError
from podagent.auth import Identity

router = APIRouter(tags=["whoami"])


class WhoAmIResponse(BaseModel):
    """Identity of the authenticated caller."""

    name: str
    kind: str


@router.get("/whoami", response_model=WhoAmIResponse)
async def whoami(request: Request) -> WhoAmIResponse:
    """Return the identity resolved by the authentication middleware."""
    identity: Identity | None = getattr(request.state, "identity", None)
    if identity is None:
        raise UnknownAuthError()
    return WhoAmIResponse(name=identity.name, kind=identity.kind.value)
