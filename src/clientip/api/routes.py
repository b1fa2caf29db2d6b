"""Client IP API endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from .deps import ClientIPDep

router = APIRouter(tags=["client-ip"])


class ClientIPResponse(BaseModel):
    """Address detected for the calling client."""

    ip: str | None = Field(description="Detected client IP, null if undetermined")
    version: int | None = Field(default=None, description="IP version (4 or 6)")


@router.get("/ip")
async def client_ip(ip: ClientIPDep) -> ClientIPResponse:
    """Return the client IP the middleware resolved for this request."""
    if ip is None:
        return ClientIPResponse(ip=None)
    return ClientIPResponse(ip=str(ip), version=ip.version)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
