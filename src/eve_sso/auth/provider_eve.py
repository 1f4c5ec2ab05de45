"""EVE Online SSO provider (v2, JWT identity tokens).

Drives the authorization-code flow against login.eveonline.com and turns
the returned access token (a signed JWT) into an EveUser.

Composition:
- OAuth2Flow: discovery, authorization URL, token exchange
- TokenVerifier: JWKS signature check + EVE claim checks
- map_claims_to_user: verified claims -> EveUser

Configuration:
- EVE_SSO_SSO__CLIENT_ID / EVE_SSO_SSO__CLIENT_SECRET: application credentials
- EVE_SSO_SSO__REDIRECT_URI: registered callback
- EVE_SSO_SSO__SCOPES: space-delimited scopes
- EVE_SSO_SSO__ENDPOINT: SSO base URL (default https://login.eveonline.com)

Example:
    >>> provider = EveOnlineProvider(config)
    >>> url = await provider.get_authorization_url(state)
    >>> # ... user logs in, callback receives ?code=...
    >>> user = await provider.user_from_code(code)
    >>> user.id, user.name
    ('90000001', 'Some Pilot')
"""

import time
from typing import Callable

import httpx
from loguru import logger

from eve_sso.auth.mapper import map_claims_to_user
from eve_sso.auth.models import OAuthServerMetadata, ProviderConfig, TokenBundle
from eve_sso.auth.oauth2 import OAuth2Flow
from eve_sso.auth.providers import EveUser, OAuthProvider
from eve_sso.auth.verifier import TokenVerifier

PROVIDER_NAME = "eveonline-v2"


class EveOnlineProvider(OAuthProvider):
    """EVE Online SSO v2 provider."""

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize provider.

        Args:
            config: Client configuration
            http_client: Optional shared client (otherwise one per request)
            clock: Time source for the expiry check
        """
        if not config.client_id:
            raise ValueError("EVE SSO client ID required (EVE_SSO_SSO__CLIENT_ID)")

        self.config = config
        self.flow = OAuth2Flow(config, http_client=http_client)
        self.verifier = TokenVerifier(self.flow, config, clock=clock)

    async def get_authorization_url(
        self, state: str, code_challenge: str | None = None
    ) -> str:
        return await self.flow.build_authorization_url(state, code_challenge)

    async def exchange_code(
        self, code: str, code_verifier: str | None = None
    ) -> TokenBundle:
        """Exchange an authorization code for a token bundle."""
        return await self.flow.exchange_code_for_token(code, code_verifier)

    async def refresh(self, refresh_token: str) -> TokenBundle:
        """Exchange a refresh token for a new token bundle."""
        return await self.flow.refresh_token(refresh_token)

    async def user_from_token(self, token: str) -> EveUser:
        """Verify an access token and map its claims.

        Raises:
            TokenVerificationError: Token rejected
            DiscoveryError: Metadata or key set unavailable
        """
        claims = await self.verifier.verify(token)
        return map_claims_to_user(claims)

    async def user_from_code(
        self, code: str, code_verifier: str | None = None
    ) -> EveUser:
        """Full callback handling: exchange the code, verify, map.

        The token bundle is attached to the returned user.
        """
        bundle = await self.exchange_code(code, code_verifier)
        user = await self.user_from_token(bundle.access_token)
        user.token = bundle
        logger.info(f"Authenticated EVE character {user.id} ({user.name})")
        return user

    async def get_discovery_metadata(self) -> OAuthServerMetadata:
        return await self.flow.discover_metadata()

    def get_provider_name(self) -> str:
        return PROVIDER_NAME
