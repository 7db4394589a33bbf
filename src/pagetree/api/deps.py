"""FastAPI dependency injection functions."""

import logging
from functools import lru_cache

from pagetree.config import Settings, load_settings
from pagetree.service import SitemapService

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return load_settings()


# One service per process so every request shares the same cache
_service_instance: SitemapService | None = None


def get_service() -> SitemapService:
    """Get the process-wide sitemap service."""
    global _service_instance
    if _service_instance is None:
        settings = get_settings()
        _service_instance = SitemapService.from_settings(settings)
        logger.info(f"Serving modules from {settings.assets_path}")
    return _service_instance


def _reset_service_instance() -> None:
    """Reset the service instance (for testing only)."""
    global _service_instance
    _service_instance = None
