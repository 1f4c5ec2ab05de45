"""EVE Online SSO provider: OAuth2 login and identity token verification."""

from eve_sso.version import __version__

__all__ = ["__version__"]
