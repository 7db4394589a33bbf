"""Module endpoints: listing, trees, node creation, ordering and CRUD scaffolds."""

from fastapi import APIRouter, Depends, status

from pagetree.api.deps import get_service
from pagetree.api.schemas import CrudSubpagesResponse, ModuleCreate, NodeCreate, OrderUpdate
from pagetree.service import SitemapService
from pagetree.tree.models import ModuleSummary, ModuleTree, NodeRef, OrderFile

router = APIRouter(prefix="/api/modules", tags=["modules"])


@router.get("", response_model=list[ModuleSummary])
def list_modules(service: SitemapService = Depends(get_service)) -> list[ModuleSummary]:
    """List every module with its page, subpage and asset counts."""
    return service.list_modules()


@router.post("", response_model=ModuleSummary, status_code=status.HTTP_201_CREATED)
def create_module(
    data: ModuleCreate,
    service: SitemapService = Depends(get_service),
) -> ModuleSummary:
    """Create an empty module with pages, screenshots, html and css folders."""
    return service.create_module(data.name)


@router.delete("/{module}", status_code=status.HTTP_204_NO_CONTENT)
def delete_module(module: str, service: SitemapService = Depends(get_service)) -> None:
    """Delete a module with all of its pages and assets."""
    service.delete_module(module)


@router.get("/{module}/tree", response_model=ModuleTree, response_model_by_alias=True)
def get_tree(module: str, service: SitemapService = Depends(get_service)) -> ModuleTree:
    """Get the ordered page tree of a module."""
    return service.get_tree(module)


@router.post("/{module}/nodes", response_model=NodeRef, status_code=status.HTTP_201_CREATED)
def create_node(
    module: str,
    data: NodeCreate,
    service: SitemapService = Depends(get_service),
) -> NodeRef:
    """Create a page, or a subpage when parent is set.

    The node gets default metadata and empty screenshots/html/css folders.
    """
    return service.create_node(module, data.slug, parent=data.parent, action=data.action)


@router.put("/{module}/order", response_model=OrderFile)
def set_order(
    module: str,
    data: OrderUpdate,
    service: SitemapService = Depends(get_service),
) -> OrderFile:
    """Persist an explicit order. Every slug must name an existing node."""
    return service.set_order(module, data.slugs, parent=data.parent)


@router.post(
    "/{module}/pages/{parent}/crud",
    response_model=CrudSubpagesResponse,
    status_code=status.HTTP_201_CREATED,
)
def apply_crud_subpages(
    module: str,
    parent: str,
    service: SitemapService = Depends(get_service),
) -> CrudSubpagesResponse:
    """Add the standard list/create/detail/edit subpages a page is missing."""
    created = service.apply_crud_subpages(module, parent)
    return CrudSubpagesResponse(module=module, parent=parent, created=created)
