"""EVE SSO API server.

Running the Server
------------------

Development (with auto-reload):
    eve-sso serve --reload

Testing the Server
------------------

Health check:
    curl http://localhost:8000/health

Start a login (open in a browser):
    http://localhost:8000/auth/eve/login

Endpoints
---------
- /health             : Health check with version
- /auth/eve/login     : Redirect to EVE SSO
- /auth/eve/callback  : OAuth callback, returns the character
- /auth/eve/metadata  : Discovered SSO metadata
- /docs               : OpenAPI documentation
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from eve_sso.api.routers.health import router as health_router
from eve_sso.api.routers.sso import router as sso_router
from eve_sso.settings import settings
from eve_sso.version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting EVE SSO API (SSO endpoint: {settings.sso.endpoint})")
    yield
    logger.info("Shutting down EVE SSO API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="EVE SSO",
        description="EVE Online single sign-on login and token verification",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(health_router)
    app.include_router(sso_router)

    return app


app = create_app()
