"""Content tree: storage, sidecar metadata, ordering overrides and caching."""

from pagetree.tree.builder import TreeBuilder
from pagetree.tree.cache import SitemapCache
from pagetree.tree.metadata import MetadataStore
from pagetree.tree.models import (
    Link,
    ModuleSummary,
    ModuleTree,
    NodePath,
    NodeRef,
    OrderFile,
    PageMeta,
    PageMetaPatch,
    PageNode,
)
from pagetree.tree.ordering import OrderStore
from pagetree.tree.repository import FileSystemRepository, MemoryRepository, Repository

__all__ = [
    "FileSystemRepository",
    "Link",
    "MemoryRepository",
    "MetadataStore",
    "ModuleSummary",
    "ModuleTree",
    "NodePath",
    "NodeRef",
    "OrderFile",
    "OrderStore",
    "PageMeta",
    "PageMetaPatch",
    "PageNode",
    "Repository",
    "SitemapCache",
    "TreeBuilder",
]
