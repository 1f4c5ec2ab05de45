"""OAuth provider interface and the user model it produces.

Providers drive the authorization-code flow and map verified token
claims to the common EveUser model.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from eve_sso.auth.models import OAuthServerMetadata, TokenBundle


class EveUser(BaseModel):
    """Authenticated character resolved from a verified identity token."""

    id: str = Field(description="Character ID (sub claim without prefix)")
    name: str = Field(description="Character name")
    nickname: str = Field(description="Same as name; EVE has no separate handle")
    character_owner_hash: str = Field(
        description="Owner hash; changes when the character is transferred"
    )
    scopes: list[str] = Field(default_factory=list, description="Granted scopes")
    expires_on: int | float = Field(description="Token expiry (unix timestamp)")
    raw: dict[str, Any] = Field(
        default_factory=dict,
        description="Verified claim set the user was mapped from",
    )
    token: TokenBundle | None = Field(
        default=None,
        exclude=True,
        description="Token bundle the user was resolved from, if any",
    )


class OAuthProvider(ABC):
    """Abstract OAuth provider interface."""

    @abstractmethod
    async def get_authorization_url(
        self, state: str, code_challenge: str | None = None
    ) -> str:
        """Build the URL the user agent is redirected to.

        Args:
            state: CSRF state token echoed back on the callback
            code_challenge: Optional PKCE S256 challenge

        Returns:
            Authorization URL
        """
        pass

    @abstractmethod
    async def user_from_code(
        self, code: str, code_verifier: str | None = None
    ) -> EveUser:
        """Exchange an authorization code and resolve the user.

        Raises:
            SSOError: Exchange or verification failed
        """
        pass

    @abstractmethod
    async def user_from_token(self, token: str) -> EveUser:
        """Verify a bearer token and map it to a user.

        Raises:
            TokenVerificationError: Token rejected
        """
        pass

    @abstractmethod
    async def get_discovery_metadata(self) -> OAuthServerMetadata:
        """Discovered authorization server metadata."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get provider identifier."""
        pass
