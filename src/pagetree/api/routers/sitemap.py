"""Sitemap export and import endpoints."""

from fastapi import APIRouter, Depends

from pagetree.api.deps import get_service
from pagetree.service import SitemapService
from pagetree.tree.models import ImportResult, SitemapExport

router = APIRouter(prefix="/api/sitemap", tags=["sitemap"])


@router.get("/export", response_model=SitemapExport)
def export_sitemap(service: SitemapService = Depends(get_service)) -> SitemapExport:
    """Snapshot every module's ordered tree."""
    return service.export_sitemap()


@router.post("/import", response_model=ImportResult)
def import_sitemap(
    data: SitemapExport,
    service: SitemapService = Depends(get_service),
) -> ImportResult:
    """Create missing modules and nodes from an export and apply its metadata."""
    return service.import_sitemap(data)
