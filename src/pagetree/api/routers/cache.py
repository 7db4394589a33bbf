"""Cache control endpoints."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from pagetree.api.deps import get_service
from pagetree.api.schemas import CacheInvalidate, CachePreload, CachePreloadResponse
from pagetree.service import SitemapService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.post("/invalidate")
def invalidate_cache(
    data: Optional[CacheInvalidate] = Body(None),
    service: SitemapService = Depends(get_service),
) -> dict[str, str]:
    """Drop cached views after external edits to the assets directory."""
    module = data.module if data else None
    service.invalidate_cache(module)
    return {"status": "invalidated", "scope": module or "all"}


@router.get("/stats")
def cache_stats(service: SitemapService = Depends(get_service)) -> dict[str, Any]:
    return service.cache_stats()


@router.post("/preload", response_model=CachePreloadResponse)
def preload_cache(
    data: Optional[CachePreload] = Body(None),
    service: SitemapService = Depends(get_service),
) -> CachePreloadResponse:
    """Build and cache module trees ahead of the first request."""
    if data and data.module:
        service.preload_module(data.module)
        loaded = 1
    else:
        loaded = service.preload_all()
    logger.info(f"Preloaded {loaded} module tree(s)")
    return CachePreloadResponse(modules_loaded=loaded)
