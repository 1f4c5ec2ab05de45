"""Application settings using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SSOSettings(BaseSettings):
    """EVE Online SSO client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SSO__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    client_id: str = Field(default="", description="Application client ID")
    client_secret: str = Field(default="", description="Application secret key")
    redirect_uri: str = Field(
        default="http://localhost:8000/auth/eve/callback",
        description="Callback URL registered with the application",
    )
    scopes: str = Field(
        default="",
        description="Requested scopes, space-delimited (e.g. 'esi-mail.read_mail.v1')",
    )
    endpoint: str = Field(
        default="https://login.eveonline.com",
        description="SSO base URL (discovery document is served below it)",
    )
    scope_match: str = Field(
        default="subset",
        description="Scope claim rule: subset | exact | any",
    )
    leeway: int = Field(default=0, description="Clock skew allowance for exp in seconds")
    use_pkce: bool = Field(default=False, description="Send a PKCE S256 challenge")
    http_timeout: float = Field(default=10.0, description="HTTP timeout in seconds")

    @property
    def scope_list(self) -> list[str]:
        """Requested scopes as a list."""
        return self.scopes.split()


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EVE_SSO_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_reload: bool = Field(default=False, description="Auto-reload on code changes")

    # SSO client (nested)
    sso: SSOSettings = Field(default_factory=SSOSettings)

    # Login cookies
    state_cookie_max_age: int = Field(
        default=600, description="Lifetime of the state/PKCE cookies in seconds"
    )
    cookie_secure: bool = Field(
        default=False, description="Mark login cookies Secure (enable behind HTTPS)"
    )


settings = Settings()
