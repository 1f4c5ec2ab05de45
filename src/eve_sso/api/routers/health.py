"""Health endpoint.

Public, no authentication required.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from eve_sso.settings import settings
from eve_sso.version import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Health status (ok, degraded, down)")
    version: str = Field(description="Application version")
    sso_endpoint: str = Field(description="Configured SSO base URL")


@router.get("/health")
async def health() -> HealthResponse:
    """Health check endpoint.

    Does not contact the SSO service.
    """
    return HealthResponse(
        status="ok",
        version=__version__,
        sso_endpoint=settings.sso.endpoint,
    )
