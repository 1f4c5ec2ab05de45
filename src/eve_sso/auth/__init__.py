"""EVE Online SSO authentication.

- OAuth 2.0 authorization-code flow with RFC 8414 discovery
- Optional PKCE (S256)
- JWT identity token verification against the SSO key set
- Claim mapping to EveUser
"""

from eve_sso.auth.errors import (
    AudienceMismatchError,
    DiscoveryError,
    HeaderTypeError,
    IssuerMismatchError,
    MalformedTokenError,
    MissingClaimError,
    ScopeClaimError,
    SignatureInvalidError,
    SSOError,
    SubjectFormatError,
    TokenExchangeError,
    TokenExpiredError,
    TokenVerificationError,
)
from eve_sso.auth.mapper import map_claims_to_user
from eve_sso.auth.models import OAuthServerMetadata, ProviderConfig, ScopeMatch, TokenBundle
from eve_sso.auth.oauth2 import OAuth2Flow
from eve_sso.auth.provider_eve import EveOnlineProvider
from eve_sso.auth.provider_factory import get_provider_instance
from eve_sso.auth.providers import EveUser, OAuthProvider
from eve_sso.auth.verifier import TokenVerifier

__all__ = [
    "AudienceMismatchError",
    "DiscoveryError",
    "EveOnlineProvider",
    "EveUser",
    "HeaderTypeError",
    "IssuerMismatchError",
    "MalformedTokenError",
    "MissingClaimError",
    "OAuth2Flow",
    "OAuthProvider",
    "OAuthServerMetadata",
    "ProviderConfig",
    "SSOError",
    "ScopeClaimError",
    "ScopeMatch",
    "SignatureInvalidError",
    "SubjectFormatError",
    "TokenBundle",
    "TokenExchangeError",
    "TokenExpiredError",
    "TokenVerificationError",
    "TokenVerifier",
    "get_provider_instance",
    "map_claims_to_user",
]
