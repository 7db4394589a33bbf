"""Sitemap service: every public tree operation behind one facade.

Mutations write through the stores and then invalidate the cache; reads go
through the cache and rebuild on a miss.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Any, Iterator, Optional

from pydantic import ValidationError

from pagetree.analytics import AnalyticsAggregator, SitemapAnalytics
from pagetree.config import Config
from pagetree.constants import ASSET_SUBDIRS, CRUD_SUBPAGES, DEFAULT_STATUS, PAGES_DIR, SUBPAGES_DIR
from pagetree.diagram import GraphMode, MermaidOptions, build_graph, graph_to_dict, render_mermaid
from pagetree.errors import (
    AlreadyExistsError,
    InvalidInputError,
    IOFailureError,
    MissingModuleError,
    NodeNotFoundError,
)
from pagetree.tree.builder import TreeBuilder
from pagetree.tree.cache import ANALYTICS, MODULES, TREES, SitemapCache
from pagetree.tree.metadata import MetadataStore
from pagetree.tree.models import (
    ImportResult,
    ModuleExport,
    ModuleSummary,
    ModuleTree,
    NodePath,
    NodeRef,
    OrderFile,
    PageExport,
    PageMeta,
    PageMetaPatch,
    SitemapExport,
    SubpageExport,
    validate_slug,
)
from pagetree.tree.ordering import OrderStore, sort_key
from pagetree.tree.repository import FileSystemRepository, Repository, join

logger = logging.getLogger(__name__)

# Metadata fields carried by sitemap export/import
EXPORTED_FIELDS = ("title", "status", "route", "notes")


def node_dir(path: NodePath) -> str:
    """Storage directory of a page or subpage."""
    page_dir = join(path.module, PAGES_DIR, path.page)
    if path.subpage is None:
        return page_dir
    return join(page_dir, SUBPAGES_DIR, path.subpage)


class SitemapService:
    """Facade over the repository, stores, builder, cache, emitter and analytics.

    Returned trees are shared with the cache and must not be mutated.
    """

    def __init__(
        self,
        repo: Repository,
        cache: SitemapCache,
        project_name: str = "",
        mermaid_options: Optional[MermaidOptions] = None,
    ) -> None:
        self._repo = repo
        self._cache = cache
        self._project_name = project_name
        self._mermaid = mermaid_options or MermaidOptions()
        self.metadata = MetadataStore(repo)
        self.orders = OrderStore(repo)
        self.builder = TreeBuilder(repo, self.metadata, self.orders)
        self.aggregator = AnalyticsAggregator(repo, project_name)

    @classmethod
    def from_settings(cls, settings: Config) -> SitemapService:
        """Create a service over the configured assets directory."""
        cache = SitemapCache(
            tree_ttl=settings.cache.ttl_medium_seconds,
            analytics_ttl=settings.cache.ttl_long_seconds,
            modules_ttl=settings.cache.ttl_short_seconds,
        )
        return cls(
            repo=FileSystemRepository(settings.assets_path),
            cache=cache,
            project_name=settings.display_name,
            mermaid_options=MermaidOptions.from_config(settings.mermaid),
        )

    @contextmanager
    def _mutating(self, module: str) -> Iterator[None]:
        """Invalidate the module's cached views once the mutation finishes or fails."""
        try:
            yield
        finally:
            self._cache.invalidate_module(module)

    def _require_module(self, module: str) -> None:
        validate_slug(module)
        if not self._repo.is_dir(module):
            raise MissingModuleError(module)

    def _require_node(self, path: NodePath) -> str:
        self._require_module(path.module)
        directory = node_dir(path)
        if not self._repo.is_dir(directory):
            raise NodeNotFoundError(str(path))
        return directory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_tree(self, module: str) -> ModuleTree:
        """Ordered tree of one module, served from cache when fresh.

        Raises:
            InvalidInputError: If the module name is not a valid slug.
            MissingModuleError: If the module directory does not exist.
        """
        validate_slug(module)
        return self._cache.get_or_build(TREES, lambda: self.builder.build(module), key=module)

    def list_modules(self) -> list[ModuleSummary]:
        return self._cache.get_or_build(MODULES, self.builder.list_modules)

    def analyze(self) -> SitemapAnalytics:
        return self._cache.get_or_build(ANALYTICS, self.aggregator.analyze)

    def _trees(self, module: Optional[str], page: Optional[str]) -> list[ModuleTree]:
        if module is None:
            return [self.get_tree(summary.name) for summary in self.list_modules()]
        tree = self.get_tree(module)
        if page is None:
            return [tree]
        selected = [node for node in tree.pages if node.slug == page]
        if not selected:
            raise NodeNotFoundError(f"{module}/{page}")
        return [ModuleTree(module=module, pages=selected)]

    def render_graph(
        self,
        module: Optional[str] = None,
        mode: GraphMode = GraphMode.PLAIN,
        page: Optional[str] = None,
    ) -> str:
        """Mermaid text for one module (optionally one page) or, with no module, the project."""
        graph = build_graph(self._trees(module, page))
        return render_mermaid(graph, self._mermaid, mode)

    def graph_data(self, module: Optional[str] = None) -> dict[str, Any]:
        """Node/edge lists of the same graph render_graph() serializes."""
        return graph_to_dict(build_graph(self._trees(module, None)))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _seed_node(self, path: NodePath, meta: PageMeta) -> None:
        directory = node_dir(path)
        try:
            self._repo.create_dir(directory)
            for subdir in ASSET_SUBDIRS:
                self._repo.create_dir(join(directory, subdir))
            self.metadata.write(directory, meta)
        except IOFailureError:
            if self._repo.exists(directory):
                try:
                    self._repo.remove(directory)
                except IOFailureError as cleanup_error:
                    logger.error(f"Failed to clean up partial node {path}: {cleanup_error}")
            raise

    @staticmethod
    def _default_meta(path: NodePath, action: Optional[str] = None) -> PageMeta:
        return PageMeta(
            title=path.slug,
            status=DEFAULT_STATUS,
            path=path.url_path,
            route=path.url_path,
            action=action,
        )

    def create_node(
        self, module: str, slug: str, parent: Optional[str] = None, action: Optional[str] = None
    ) -> NodeRef:
        """Create a page (or a subpage of parent) with default metadata and asset folders.

        A missing module is created along with a top-level page.

        Raises:
            InvalidInputError: Bad slug.
            NodeNotFoundError: The parent page is absent.
            AlreadyExistsError: A sibling with this slug exists.
        """
        validate_slug(slug)
        validate_slug(module)
        if parent:
            self._require_node(NodePath(module, validate_slug(parent)))
            path = NodePath(module, parent, slug)
        else:
            path = NodePath(module, slug)
        if self._repo.exists(node_dir(path)):
            raise AlreadyExistsError(str(path))

        with self._mutating(module):
            if not self._repo.is_dir(module):
                self._seed_module(module)
            self._seed_node(path, self._default_meta(path, action))
        logger.info(f"Created node {path}")
        return path.to_ref()

    def _seed_module(self, module: str) -> None:
        for subdir in (PAGES_DIR, *ASSET_SUBDIRS):
            self._repo.create_dir(join(module, subdir))
        logger.info(f"Created module {module}")

    def create_module(self, module: str) -> ModuleSummary:
        """Create an empty module with its pages folder and module-level asset folders.

        Raises:
            InvalidInputError: Bad module name.
            AlreadyExistsError: The module directory exists.
        """
        validate_slug(module)
        if self._repo.exists(module):
            raise AlreadyExistsError(module)
        with self._mutating(module):
            self._seed_module(module)
        return ModuleSummary(name=module, page_count=0, subpage_count=0, asset_count=0)

    def delete_module(self, module: str) -> None:
        """Recursively remove a module with all its pages and assets."""
        self._require_module(module)
        with self._mutating(module):
            self._repo.remove(module)
        logger.info(f"Deleted module {module}")

    def delete_node(self, raw_path: str) -> None:
        """Recursively remove a page or subpage directory."""
        path = NodePath.parse(raw_path)
        directory = self._require_node(path)
        with self._mutating(path.module):
            self._repo.remove(directory)
        logger.info(f"Deleted node {path}")

    def rename_node(self, raw_path: str, new_slug: str) -> NodeRef:
        """Rename a node's directory in place.

        Stored path/route metadata, order entries and links naming the old
        slug are left as they are; they are reported in stale_references.
        """
        path = NodePath.parse(raw_path)
        validate_slug(new_slug)
        directory = self._require_node(path)
        new_path = path.with_slug(new_slug)
        if new_slug == path.slug:
            return new_path.to_ref()
        new_directory = node_dir(new_path)
        if self._repo.exists(new_directory):
            raise AlreadyExistsError(str(new_path))

        with self._mutating(path.module):
            self._repo.rename(directory, new_directory)
        logger.info(f"Renamed node {path} -> {new_path}")

        ref = new_path.to_ref()
        ref.stale_references = self._stale_references(path, new_path)
        if ref.stale_references:
            logger.warning(
                f"Rename of {path} left {len(ref.stale_references)} stale reference(s): "
                + "; ".join(ref.stale_references)
            )
        return ref

    def _stale_references(self, old: NodePath, new: NodePath) -> list[str]:
        stale = []
        order = self.orders.load(old.module)
        if old.subpage is None:
            if old.slug in order.pages:
                stale.append(f"order: pages lists {old.slug!r}")
            if old.slug in order.subpages:
                stale.append(f"order: subpages keyed by {old.slug!r}")
        elif old.slug in order.subpages.get(old.page, []):
            stale.append(f"order: subpages of {old.page!r} list {old.slug!r}")

        new_dir = node_dir(new)
        meta = self.metadata.read(new_dir)
        for field_name in ("path", "route"):
            value = getattr(meta, field_name)
            if value and value.rstrip("/").endswith("/" + old.slug):
                stale.append(f"meta: {field_name} is {value!r}")

        # Subpage sidecars embed their parent's slug in path and route
        if old.subpage is None:
            prefix = old.url_path + "/"
            subpages_dir = join(new_dir, SUBPAGES_DIR)
            for sub in sorted(self._repo.list_children(subpages_dir), key=sort_key):
                sub_meta = self.metadata.read(join(subpages_dir, sub))
                for field_name in ("path", "route"):
                    value = getattr(sub_meta, field_name)
                    if value and (value + "/").startswith(prefix):
                        stale.append(f"meta: {new}/{sub} {field_name} is {value!r}")

        old_url = old.url_path
        for page in self.get_tree(old.module).pages:
            for node in [page, *page.children]:
                for link in node.links:
                    if link.target == old_url or link.target.startswith(old_url + "/"):
                        stale.append(f"link: {node.path} -> {link.target}")
        return stale

    def set_order(self, module: str, slugs: list[str], parent: Optional[str] = None) -> OrderFile:
        """Persist an explicit order for the module's pages or one page's subpages.

        Raises:
            UnknownSlugError: A slug has no directory; the order file is untouched.
        """
        validate_slug(module)
        if parent:
            validate_slug(parent)
        with self._mutating(module):
            order = self.orders.set_order(module, parent, slugs)
        logger.info(f"Set {'subpage' if parent else 'page'} order for {module}/{parent or ''}")
        return order

    def update_metadata(self, raw_path: str, patch: PageMetaPatch | dict) -> PageMeta:
        """Overlay the fields present in patch onto the node's metadata.

        Raises:
            InvalidInputError: The patch holds unknown keys or wrongly typed values.
            NodeNotFoundError: The node does not exist.
        """
        if not isinstance(patch, PageMetaPatch):
            try:
                patch = PageMetaPatch.model_validate(patch)
            except ValidationError as e:
                raise InvalidInputError(f"Malformed metadata patch: {e}") from e
        path = NodePath.parse(raw_path)
        directory = self._require_node(path)
        with self._mutating(path.module):
            merged = MetadataStore.merge(self.metadata.read(directory), patch)
            self.metadata.write(directory, merged)
        logger.info(f"Updated metadata of {path}: {sorted(patch.model_fields_set)}")
        return merged

    def apply_crud_subpages(self, module: str, parent: str) -> list[str]:
        """Create whichever of the standard CRUD subpages the page is missing."""
        self._require_node(NodePath(module, validate_slug(parent)))
        created = []
        with self._mutating(module):
            for slug, action in CRUD_SUBPAGES:
                path = NodePath(module, parent, slug)
                if self._repo.exists(node_dir(path)):
                    continue
                self._seed_node(path, self._default_meta(path, action))
                created.append(slug)
        logger.info(f"Applied CRUD subpages to {module}/{parent}: {created}")
        return created

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_sitemap(self) -> SitemapExport:
        """Snapshot every module's ordered tree."""
        modules = []
        for tree in self._trees(None, None):
            pages = []
            for page in tree.pages:
                subpages = [
                    SubpageExport(**{k: getattr(sub, k) for k in ("slug", *EXPORTED_FIELDS)})
                    for sub in page.children
                ]
                fields = {k: getattr(page, k) for k in ("slug", *EXPORTED_FIELDS)}
                pages.append(PageExport(**fields, subpages=subpages))
            modules.append(ModuleExport(name=tree.module, pages=pages))
        return SitemapExport(
            project_name=self._project_name,
            export_timestamp=datetime.now(UTC),
            modules=modules,
        )

    def _import_node(self, path: NodePath, entry: SubpageExport, result: ImportResult) -> bool:
        """Create the node if needed and overlay exported fields. Returns True if created."""
        directory = node_dir(path)
        created = False
        if not self._repo.is_dir(directory):
            self._seed_node(path, self._default_meta(path))
            created = True
        updates = {k: getattr(entry, k) for k in EXPORTED_FIELDS if getattr(entry, k) is not None}
        if updates:
            meta = self.metadata.read(directory).model_copy(update=updates)
            self.metadata.write(directory, meta)
            result.nodes_updated += 1
        return created

    def import_sitemap(self, data: SitemapExport) -> ImportResult:
        """Create missing modules and nodes from an export and overlay its metadata."""
        for module in data.modules:
            validate_slug(module.name)
            for page in module.pages:
                validate_slug(page.slug)
                for sub in page.subpages:
                    validate_slug(sub.slug)

        result = ImportResult()
        try:
            for module in data.modules:
                if not self._repo.is_dir(module.name):
                    self._seed_module(module.name)
                    result.modules_created += 1
                for page in module.pages:
                    if self._import_node(NodePath(module.name, page.slug), page, result):
                        result.pages_created += 1
                    for sub in page.subpages:
                        sub_path = NodePath(module.name, page.slug, sub.slug)
                        if self._import_node(sub_path, sub, result):
                            result.subpages_created += 1
        finally:
            self._cache.invalidate_all()
        logger.info(f"Imported sitemap: {result.model_dump()}")
        return result

    # ------------------------------------------------------------------
    # Cache control
    # ------------------------------------------------------------------

    def invalidate_cache(self, module: Optional[str] = None) -> None:
        """Drop one module's cached views, or every cache when module is None."""
        if module is None:
            self._cache.invalidate_all()
        else:
            self._cache.invalidate_module(module)

    def cache_stats(self) -> dict[str, Any]:
        return self._cache.stats()

    def preload_module(self, module: str) -> ModuleTree:
        return self.get_tree(module)

    def preload_all(self) -> int:
        """Warm the tree cache of every module. Returns the number of modules."""
        trees = self._trees(None, None)
        return len(trees)
