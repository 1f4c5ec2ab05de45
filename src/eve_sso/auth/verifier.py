"""Identity token verification via JWKS.

Turns a bearer token into a trusted claim set:
1. Structural decode of the compact JWS
2. Signature verification against the issuer's key set (authlib)
3. Ordered claim/header checks (see eve_sso.auth.checkers)

The key set is fetched on every call; nothing is cached between
verifications.
"""

import json
import time
from typing import Any, Callable

import httpx
from authlib.common.encoding import urlsafe_b64decode
from authlib.jose import JsonWebKey, JsonWebToken, JoseError, Key, KeySet
from loguru import logger

from eve_sso.auth.checkers import Checker, default_checkers
from eve_sso.auth.errors import (
    DiscoveryError,
    MalformedTokenError,
    SignatureInvalidError,
    TokenVerificationError,
)
from eve_sso.auth.models import ProviderConfig
from eve_sso.auth.oauth2 import OAuth2Flow

# Accepted signing algorithms and the JWK key type each one needs
ALGORITHMS: dict[str, str] = {
    "RS256": "RSA",
    "ES256": "EC",
    "HS256": "oct",
}


def _decode_segment(segment: str, what: str) -> dict[str, Any]:
    try:
        data = json.loads(urlsafe_b64decode(segment.encode("ascii")))
    except (ValueError, TypeError, UnicodeError) as e:
        raise MalformedTokenError(f"Token {what} is not valid base64url JSON") from e
    if not isinstance(data, dict):
        raise MalformedTokenError(f"Token {what} is not a JSON object")
    return data


def parse_compact(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split a compact JWS and decode its header and payload.

    No signature check is performed.

    Raises:
        MalformedTokenError: Not three segments or undecodable parts
    """
    if not isinstance(token, str):
        raise MalformedTokenError("Token is not a string")

    segments = token.split(".")
    if len(segments) != 3 or not all(segments[:2]):
        raise MalformedTokenError("Token must have three dot-separated segments")

    header = _decode_segment(segments[0], "header")
    payload = _decode_segment(segments[1], "payload")
    return header, payload


class TokenVerifier:
    """Verify EVE SSO identity tokens.

    Uses the flow's discovered metadata for the issuer and jwks_uri, and
    the flow's HTTP client for the key set request.
    """

    def __init__(
        self,
        flow: OAuth2Flow,
        config: ProviderConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.flow = flow
        self.config = config or flow.config
        self.clock = clock
        self._jwt = JsonWebToken(list(ALGORITHMS))

    async def fetch_key_set(self, jwks_uri: str) -> KeySet:
        """Fetch the JSON Web Key Set.

        Returns:
            authlib KeySet

        Raises:
            DiscoveryError: Endpoint unavailable or document malformed
        """
        try:
            async with self.flow.client() as client:
                response = await client.get(jwks_uri)
                response.raise_for_status()
                document = response.json()
        except httpx.HTTPError as e:
            raise DiscoveryError(f"Key set request to {jwks_uri} failed: {e}") from e
        except ValueError as e:
            raise DiscoveryError(f"Key set at {jwks_uri} is not JSON") from e

        if not isinstance(document, dict) or not isinstance(document.get("keys"), list):
            raise DiscoveryError(f"Key set at {jwks_uri} has no keys array")

        try:
            key_set = JsonWebKey.import_key_set(document)
        except (ValueError, KeyError, TypeError) as e:
            raise DiscoveryError(f"Key set at {jwks_uri} could not be loaded: {e}") from e

        logger.info(f"Fetched {len(key_set.keys)} signing keys from {jwks_uri}")
        return key_set

    def checkers(self, issuer: str) -> list[Checker]:
        return default_checkers(
            issuer=issuer,
            client_id=self.config.client_id,
            scopes=self.config.scopes,
            scope_match=self.config.scope_match,
            leeway=self.config.leeway,
            clock=self.clock,
        )

    async def verify(self, token: str) -> dict[str, Any]:
        """Verify a token and return its claims.

        Args:
            token: Compact JWS identity token

        Returns:
            Claim set exactly as signed

        Raises:
            TokenVerificationError: First failed check (see checkers module)
            DiscoveryError: Metadata or key set unavailable
        """
        try:
            return await self._verify(token)
        except TokenVerificationError as e:
            logger.warning(f"Token rejected ({e.code}): {e.message}")
            raise

    async def _verify(self, token: str) -> dict[str, Any]:
        header, _ = parse_compact(token)

        alg = header.get("alg")
        if not isinstance(alg, str) or alg not in ALGORITHMS:
            raise SignatureInvalidError(f"Unsupported signing algorithm {alg!r}")

        metadata = await self.flow.discover_metadata()
        key_set = await self.fetch_key_set(metadata.jwks_uri)
        key = self._select_key(key_set, header)

        try:
            claims = self._jwt.decode(token, key=key)
        except (JoseError, ValueError) as e:
            raise SignatureInvalidError(f"Signature verification failed: {e}") from e

        payload = dict(claims)
        for checker in self.checkers(metadata.issuer):
            checker.verify(payload, dict(claims.header))

        logger.debug(f"Token verified for subject {payload.get('sub')}")
        return payload

    def _select_key(self, key_set: KeySet, header: dict[str, Any]) -> Key:
        """Pick the key matching the header's kid and algorithm."""
        kid = header.get("kid")
        if kid is not None and not isinstance(kid, str):
            raise SignatureInvalidError(f"Invalid kid {kid!r}")

        if kid is None and len(key_set.keys) == 1:
            key = key_set.keys[0]
        elif kid is None:
            raise SignatureInvalidError("Token has no kid and the key set has several keys")
        else:
            try:
                key = key_set.find_by_kid(kid)
            except ValueError as e:
                raise SignatureInvalidError(f"No signing key matches kid {kid!r}") from e

        kty = ALGORITHMS[header["alg"]]
        if key.kty != kty:
            raise SignatureInvalidError(
                f"Key {kid!r} cannot be used with {header['alg']} (needs {kty} key)"
            )
        return key
