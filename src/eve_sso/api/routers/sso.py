"""EVE SSO login endpoints.

- /auth/eve/login redirects the browser to the SSO authorization page
- /auth/eve/callback completes the flow and returns the character
- /auth/eve/metadata exposes the discovered server metadata

State (and the PKCE verifier, when enabled) travel in short-lived
httponly cookies between login and callback.
"""

import secrets
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from loguru import logger

from eve_sso.auth.errors import DiscoveryError, SSOError
from eve_sso.auth.oauth2 import code_challenge_for, generate_code_verifier, generate_state
from eve_sso.auth.provider_eve import EveOnlineProvider
from eve_sso.auth.provider_factory import get_provider_instance
from eve_sso.auth.providers import EveUser
from eve_sso.settings import settings

router = APIRouter(prefix="/auth/eve", tags=["EVE SSO"])

STATE_COOKIE = "eve_sso_state"
VERIFIER_COOKIE = "eve_sso_verifier"


def _unavailable(e: DiscoveryError) -> HTTPException:
    logger.error(f"EVE SSO unavailable ({e.code}): {e.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="SSO service unavailable",
    )


@router.get("/login")
async def login(
    provider: EveOnlineProvider = Depends(get_provider_instance),
) -> RedirectResponse:
    """Start the login flow.

    Returns:
        Redirect to the EVE SSO authorization endpoint
    """
    state = generate_state()
    verifier = generate_code_verifier() if provider.config.use_pkce else None
    challenge = code_challenge_for(verifier) if verifier else None

    try:
        url = await provider.get_authorization_url(state, challenge)
    except DiscoveryError as e:
        raise _unavailable(e) from e

    response = RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    cookie_options: dict[str, Any] = {
        "max_age": settings.state_cookie_max_age,
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "lax",
    }
    response.set_cookie(STATE_COOKIE, state, **cookie_options)
    if verifier:
        response.set_cookie(VERIFIER_COOKIE, verifier, **cookie_options)
    return response


@router.get("/callback")
async def callback(
    request: Request,
    response: Response,
    code: str,
    state: str,
    provider: EveOnlineProvider = Depends(get_provider_instance),
) -> EveUser:
    """Complete the login flow.

    Checks the state against the login cookie, exchanges the code and
    verifies the returned token. Any failure is reported to the client
    as a generic 401; the specific error kind is only logged.

    Returns:
        The authenticated character
    """
    expected = request.cookies.get(STATE_COOKIE)
    if not expected or not secrets.compare_digest(expected, state):
        logger.warning("EVE login rejected: state mismatch")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
        )

    verifier = request.cookies.get(VERIFIER_COOKIE)

    try:
        user = await provider.user_from_code(code, verifier)
    except DiscoveryError as e:
        raise _unavailable(e) from e
    except SSOError as e:
        logger.warning(f"EVE login failed ({e.code}): {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
        ) from e

    response.delete_cookie(STATE_COOKIE)
    response.delete_cookie(VERIFIER_COOKIE)
    return user


@router.get("/metadata")
async def metadata(
    provider: EveOnlineProvider = Depends(get_provider_instance),
) -> dict[str, Any]:
    """Discovered OAuth authorization server metadata."""
    try:
        discovered = await provider.get_discovery_metadata()
    except DiscoveryError as e:
        raise _unavailable(e) from e
    return discovered.model_dump()
