"""Diagram endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from pagetree.api.deps import get_service
from pagetree.api.schemas import GraphResponse
from pagetree.diagram import GraphMode
from pagetree.service import SitemapService

router = APIRouter(prefix="/api/diagrams", tags=["diagrams"])


@router.get("/project", response_model=GraphResponse)
def project_diagram(
    mode: GraphMode = Query(GraphMode.PLAIN, description="plain or detailed"),
    service: SitemapService = Depends(get_service),
) -> GraphResponse:
    """Render every module as one flowchart."""
    return GraphResponse(scope="project", mode=mode, mermaid=service.render_graph(mode=mode))


@router.get("/modules/{module}", response_model=GraphResponse)
def module_diagram(
    module: str,
    mode: GraphMode = Query(GraphMode.PLAIN, description="plain or detailed"),
    page: Optional[str] = Query(None, description="Render only this page and its subpages"),
    service: SitemapService = Depends(get_service),
) -> GraphResponse:
    """Render one module, or a single page of it."""
    mermaid = service.render_graph(module, mode=mode, page=page)
    scope = f"{module}/{page}" if page else module
    return GraphResponse(scope=scope, mode=mode, mermaid=mermaid)


@router.get("/modules/{module}/graph")
def module_graph(module: str, service: SitemapService = Depends(get_service)) -> dict[str, Any]:
    """Node and edge lists behind a module diagram."""
    return service.graph_data(module)
