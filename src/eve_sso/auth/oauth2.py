"""OAuth 2.0 authorization-code flow against a discovered server.

Handles the three network-facing steps of the flow:
1. Metadata discovery (RFC 8414), memoized per instance
2. Authorization URL construction
3. Code (or refresh token) exchange at the token endpoint

PKCE helpers (RFC 7636, S256 only) live here as well.
"""

import asyncio
import base64
import hashlib
import secrets
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import urlencode

import httpx
from loguru import logger
from pydantic import ValidationError

from eve_sso.auth.errors import DiscoveryError, TokenExchangeError
from eve_sso.auth.models import OAuthServerMetadata, ProviderConfig, TokenBundle

DISCOVERY_PATH = "/.well-known/oauth-authorization-server"


def generate_state() -> str:
    """Random CSRF state token."""
    return secrets.token_urlsafe(32)


def generate_code_verifier() -> str:
    """Random PKCE code verifier (43 chars, within the 43-128 range)."""
    return secrets.token_urlsafe(32)


def code_challenge_for(verifier: str) -> str:
    """S256 code challenge: base64url(sha256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class OAuth2Flow:
    """Authorization-code flow helper bound to one provider configuration.

    Server metadata is fetched on first use and kept for the lifetime of
    the instance. It is never refreshed; create a new instance to pick up
    changes.

    An httpx.AsyncClient may be injected (shared pools, tests). When none is
    given a short-lived client is opened per request.
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._http_client = http_client
        self._metadata: OAuthServerMetadata | None = None
        self._metadata_lock = asyncio.Lock()

    @property
    def discovery_url(self) -> str:
        return f"{self.config.endpoint.rstrip('/')}{DISCOVERY_PATH}"

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client or a temporary one."""
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            yield client

    async def discover_metadata(self) -> OAuthServerMetadata:
        """Fetch authorization server metadata.

        Returns:
            Parsed metadata (memoized)

        Raises:
            DiscoveryError: Network failure, non-2xx status or bad document
        """
        if self._metadata is not None:
            return self._metadata

        async with self._metadata_lock:
            # Another task may have finished discovery while we waited
            if self._metadata is not None:
                return self._metadata

            url = self.discovery_url
            try:
                async with self.client() as client:
                    response = await client.get(url)
                    response.raise_for_status()
                    document = response.json()
            except httpx.HTTPError as e:
                raise DiscoveryError(f"Discovery request to {url} failed: {e}") from e
            except ValueError as e:
                raise DiscoveryError(f"Discovery document at {url} is not JSON") from e

            if not isinstance(document, dict):
                raise DiscoveryError(f"Discovery document at {url} is not an object")

            try:
                self._metadata = OAuthServerMetadata.model_validate(document)
            except ValidationError as e:
                raise DiscoveryError(
                    f"Discovery document at {url} is missing required fields"
                ) from e

            logger.info(f"Fetched OAuth server metadata from {url}")
            return self._metadata

    async def build_authorization_url(
        self, state: str, code_challenge: str | None = None
    ) -> str:
        """Build the redirect URL for the authorization endpoint.

        Args:
            state: CSRF state token
            code_challenge: PKCE S256 challenge, if PKCE is in use

        Returns:
            Authorization URL with query parameters
        """
        metadata = await self.discover_metadata()

        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "scope": self.config.scope_string,
            "state": state,
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"

        base = metadata.authorization_endpoint
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{urlencode(params)}"

    async def exchange_code_for_token(
        self, code: str, code_verifier: str | None = None
    ) -> TokenBundle:
        """Exchange an authorization code for tokens.

        Raises:
            DiscoveryError: Metadata unavailable
            TokenExchangeError: Token endpoint failure
        """
        fields = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": self.config.redirect_uri,
        }
        if code_verifier:
            fields["code_verifier"] = code_verifier

        return await self._request_token(fields)

    async def refresh_token(self, refresh_token: str) -> TokenBundle:
        """Obtain a fresh token bundle with a refresh token.

        Raises:
            DiscoveryError: Metadata unavailable
            TokenExchangeError: Token endpoint failure
        """
        fields = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        return await self._request_token(fields)

    async def _request_token(self, fields: dict[str, Any]) -> TokenBundle:
        metadata = await self.discover_metadata()
        url = metadata.token_endpoint
        grant = fields["grant_type"]

        try:
            async with self.client() as client:
                response = await client.post(
                    url, data=fields, headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"Token request ({grant}) failed: {e}") from e

        if not response.is_success:
            raise TokenExchangeError(
                f"Token endpoint returned {response.status_code} for {grant} grant"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TokenExchangeError("Token response is not JSON") from e

        if not isinstance(body, dict):
            raise TokenExchangeError("Token response is not an object")

        try:
            bundle = TokenBundle.model_validate(body)
        except ValidationError as e:
            raise TokenExchangeError("Token response has no access_token") from e

        logger.debug(f"Token endpoint accepted {grant} grant")
        return bundle
