"""Configuration and wire models for the SSO client."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from eve_sso.settings import SSOSettings

DEFAULT_ENDPOINT = "https://login.eveonline.com"


class ScopeMatch(str, Enum):
    """How the token's `scp` claim is compared with the requested scopes.

    - SUBSET: every requested scope must be granted (extra grants allowed)
    - EXACT: granted and requested scopes must be the same set
    - ANY: at least one requested scope must be granted
    """

    SUBSET = "subset"
    EXACT = "exact"
    ANY = "any"


class ProviderConfig(BaseModel):
    """Immutable client configuration for one provider instance."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="Application client ID")
    client_secret: str = Field(description="Application secret key")
    redirect_uri: str = Field(description="Registered callback URL")
    scopes: tuple[str, ...] = Field(default=(), description="Requested scopes")
    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="SSO base URL")
    scope_match: ScopeMatch = Field(default=ScopeMatch.SUBSET)
    leeway: int = Field(default=0, ge=0, description="Clock skew allowance for exp")
    use_pkce: bool = Field(default=False, description="Send a PKCE S256 challenge")
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")

    @property
    def scope_string(self) -> str:
        """Scopes joined with the wire separator (a single space)."""
        return " ".join(self.scopes)

    @classmethod
    def from_settings(cls, sso: SSOSettings) -> "ProviderConfig":
        """Build a config from the SSO settings block."""
        return cls(
            client_id=sso.client_id,
            client_secret=sso.client_secret,
            redirect_uri=sso.redirect_uri,
            scopes=tuple(sso.scope_list),
            endpoint=sso.endpoint.rstrip("/") or DEFAULT_ENDPOINT,
            scope_match=ScopeMatch(sso.scope_match.lower()),
            leeway=sso.leeway,
            use_pkce=sso.use_pkce,
            timeout=sso.http_timeout,
        )


class OAuthServerMetadata(BaseModel):
    """RFC 8414 authorization server metadata (the fields we rely on).

    Additional fields of the discovery document are kept as extras.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str


class TokenBundle(BaseModel):
    """Token endpoint response."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
