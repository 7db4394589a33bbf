"""Analytics endpoint."""

from fastapi import APIRouter, Depends

from pagetree.analytics import SitemapAnalytics
from pagetree.api.deps import get_service
from pagetree.service import SitemapService

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("", response_model=SitemapAnalytics)
def get_analytics(service: SitemapService = Depends(get_service)) -> SitemapAnalytics:
    """Project-wide counts, orphaned pages, status distribution and asset coverage."""
    return service.analyze()
