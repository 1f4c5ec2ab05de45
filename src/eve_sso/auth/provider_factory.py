"""Provider factory.

Creates the EVE SSO provider from settings.
"""

from loguru import logger

from eve_sso.auth.models import ProviderConfig
from eve_sso.auth.provider_eve import EveOnlineProvider
from eve_sso.settings import settings


def get_eve_provider() -> EveOnlineProvider:
    """Build a provider from the current settings.

    Raises:
        ValueError: Client ID missing or invalid scope_match value
    """
    config = ProviderConfig.from_settings(settings.sso)
    logger.info(f"Initializing EVE SSO provider (endpoint: {config.endpoint})")
    return EveOnlineProvider(config)


# Global provider instance (lazy-initialized)
_provider_instance: EveOnlineProvider | None = None


def get_provider_instance() -> EveOnlineProvider:
    """Get or create the process-wide provider.

    The instance holds the memoized server metadata, so sharing it means
    discovery runs once per process. Use this for FastAPI dependencies.
    """
    global _provider_instance

    if _provider_instance is None:
        _provider_instance = get_eve_provider()

    return _provider_instance


def reset_provider_instance() -> None:
    """Drop the cached provider (tests, settings reload)."""
    global _provider_instance
    _provider_instance = None
