"""Node endpoints addressed by module/page[/subpage] paths."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from pagetree.api.deps import get_service
from pagetree.api.schemas import NodeRename
from pagetree.service import SitemapService
from pagetree.tree.models import NodeRef, PageMeta

router = APIRouter(prefix="/api/nodes", tags=["nodes"])


@router.delete("/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_node(path: str, service: SitemapService = Depends(get_service)) -> None:
    """Delete a node and everything beneath it."""
    service.delete_node(path)


@router.post("/{path:path}/rename", response_model=NodeRef)
def rename_node(
    path: str,
    data: NodeRename,
    service: SitemapService = Depends(get_service),
) -> NodeRef:
    """Rename a node.

    Order entries, path/route metadata and links that still name the old
    slug are not rewritten; they come back in stale_references.
    """
    return service.rename_node(path, data.new_slug)


@router.patch("/{path:path}/meta", response_model=PageMeta, response_model_by_alias=True)
def update_metadata(
    path: str,
    patch: dict[str, Any] = Body(...),
    service: SitemapService = Depends(get_service),
) -> PageMeta:
    """Apply a partial metadata update. A null value clears the field."""
    return service.update_metadata(path, patch)
