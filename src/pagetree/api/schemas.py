"""Pydantic schemas for API requests and responses."""

from typing import Optional

from pydantic import BaseModel, Field

from pagetree.diagram import GraphMode


class ModuleCreate(BaseModel):
    """Request to create an empty module."""

    name: str = Field(..., description="Directory name of the new module")


class NodeCreate(BaseModel):
    """Request to create a page, or a subpage when parent is given."""

    slug: str = Field(..., description="Directory name of the new node")
    parent: Optional[str] = Field(None, description="Parent page slug for subpages")
    action: Optional[str] = Field(None, description="Optional action stored in metadata")


class NodeRename(BaseModel):
    """Request to rename a node."""

    new_slug: str


class OrderUpdate(BaseModel):
    """Explicit order for a module's pages or one page's subpages."""

    slugs: list[str]
    parent: Optional[str] = Field(None, description="Order this page's subpages instead")


class GraphResponse(BaseModel):
    """Rendered Mermaid diagram."""

    scope: str
    mode: GraphMode
    mermaid: str


class CacheInvalidate(BaseModel):
    """Request to drop cached views."""

    module: Optional[str] = Field(None, description="Drop only this module; omit to drop all")


class CachePreload(BaseModel):
    """Request to warm the tree cache."""

    module: Optional[str] = Field(None, description="Warm only this module; omit to warm all")


class CachePreloadResponse(BaseModel):
    modules_loaded: int


class CrudSubpagesResponse(BaseModel):
    """Subpages created by the CRUD scaffold."""

    module: str
    parent: str
    created: list[str]
