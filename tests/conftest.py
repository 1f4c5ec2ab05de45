"""Pytest configuration and fixtures.

The SSO service is faked with httpx.MockTransport; tokens are signed
in-test with freshly generated authlib keys.
"""

import base64
import secrets
from typing import Any, Callable

import httpx
import pytest
from authlib.jose import JsonWebKey, jwt

from eve_sso.auth.models import ProviderConfig
from eve_sso.auth.provider_eve import EveOnlineProvider

NOW = 1_700_000_000
ENDPOINT = "https://login.eveonline.com"
CLIENT_ID = "3f2a9c0e0b5a4d7e8f1e2d3c4b5a6978"
SCOPES = ("esi-mail.read_mail.v1", "esi-skills.read_skills.v1")

METADATA = {
    "issuer": ENDPOINT,
    "authorization_endpoint": f"{ENDPOINT}/v2/oauth/authorize",
    "token_endpoint": f"{ENDPOINT}/v2/oauth/token",
    "jwks_uri": f"{ENDPOINT}/oauth/jwks",
    "response_types_supported": ["code", "token"],
    "code_challenge_methods_supported": ["S256"],
}


def clock() -> float:
    return NOW


def _keypair(kty: str, size_or_crv: Any, kid: str) -> tuple[dict, dict]:
    key = JsonWebKey.generate_key(kty, size_or_crv, is_private=True)
    private = {**key.as_dict(is_private=True), "kid": kid}
    public = {**key.as_dict(), "kid": kid}
    return private, public


class FakeSSO:
    """In-memory EVE SSO: discovery, JWKS and token endpoints."""

    def __init__(self, jwks: dict[str, Any]):
        self.metadata = dict(METADATA)
        self.jwks = jwks
        self.token_status = 200
        self.token_body: Any = {
            "access_token": "",
            "token_type": "Bearer",
            "expires_in": 1199,
            "refresh_token": "refresh-abc",
        }
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/.well-known/oauth-authorization-server":
            return httpx.Response(200, json=self.metadata)
        if path == "/oauth/jwks":
            return httpx.Response(200, json=self.jwks)
        if path == "/v2/oauth/token" and request.method == "POST":
            if isinstance(self.token_body, (dict, list)):
                return httpx.Response(self.token_status, json=self.token_body)
            return httpx.Response(self.token_status, content=self.token_body)
        return httpx.Response(404)

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    @property
    def discovery_calls(self) -> int:
        return self.count("/.well-known/oauth-authorization-server")

    @property
    def jwks_calls(self) -> int:
        return self.count("/oauth/jwks")


@pytest.fixture(scope="session")
def rsa_keys():
    """(private, public) RSA JWKs."""
    return _keypair("RSA", 2048, "JWT-Signature-Key")


@pytest.fixture(scope="session")
def ec_keys():
    """(private, public) P-256 JWKs."""
    return _keypair("EC", "P-256", "JWT-Signature-Key-EC")


@pytest.fixture(scope="session")
def hmac_key():
    secret = base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode()
    return {"kty": "oct", "k": secret, "kid": "hmac-key"}


@pytest.fixture
def fake_sso(rsa_keys, ec_keys, hmac_key):
    return FakeSSO({"keys": [rsa_keys[1], ec_keys[1], hmac_key]})


@pytest.fixture
def http_client(fake_sso):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_sso.handler))


@pytest.fixture
def config():
    return ProviderConfig(
        client_id=CLIENT_ID,
        client_secret="s3cr3t",
        redirect_uri="https://seat.example.com/auth/eve/callback",
        scopes=SCOPES,
        endpoint=ENDPOINT,
    )


@pytest.fixture
def provider(config, http_client):
    return EveOnlineProvider(config, http_client=http_client, clock=clock)


@pytest.fixture
def claims() -> dict[str, Any]:
    """Claims of a valid EVE SSO access token."""
    return {
        "scp": list(SCOPES),
        "jti": "998e12c7-3241-43c5-8355-2c48822e0a1b",
        "kid": "JWT-Signature-Key",
        "sub": "CHARACTER:EVE:2112625428",
        "azp": CLIENT_ID,
        "tenant": "tranquility",
        "tier": "live",
        "region": "world",
        "aud": [CLIENT_ID, "EVE Online"],
        "name": "CCP Zoetrope",
        "owner": "8PmzCeTKb4VFUDrHLc/AeZXDSWM=",
        "exp": NOW + 1200,
        "iat": NOW,
        "iss": ENDPOINT,
    }


@pytest.fixture
def make_token(rsa_keys) -> Callable[..., str]:
    """Sign claims into a compact JWS (RS256 by default)."""

    def _make(
        claims: dict[str, Any],
        alg: str = "RS256",
        key: dict[str, Any] | None = None,
        **header: Any,
    ) -> str:
        key = key or rsa_keys[0]
        protected = {"alg": alg, "typ": "JWT"}
        if key.get("kid"):
            protected["kid"] = key["kid"]
        protected.update(header)
        return jwt.encode(protected, claims, key).decode("ascii")

    return _make
