"""Build ordered module trees from directories, sidecars and order overrides."""

import logging
from typing import Optional

from pagetree.constants import ASSET_SUBDIRS, PAGES_DIR, SUBPAGES_DIR
from pagetree.errors import MissingModuleError
from pagetree.tree.metadata import MetadataStore
from pagetree.tree.models import ModuleSummary, ModuleTree, OrderFile, PageMeta, PageNode
from pagetree.tree.ordering import OrderStore, apply_order, sort_key
from pagetree.tree.repository import Repository, join

logger = logging.getLogger(__name__)


def _make_node(slug: str, default_path: str, meta: PageMeta) -> PageNode:
    return PageNode(
        slug=slug,
        path=meta.path or default_path,
        title=meta.title,
        status=meta.status,
        route=meta.route,
        notes=meta.notes,
        domain=meta.domain,
        area=meta.area,
        component=meta.component,
        action=meta.action,
        css_class=meta.css_class,
        links=list(meta.links),
    )


class TreeBuilder:
    """Scans a module's pages/ directory into an ordered tree.

    Nesting stops at two levels below the module: pages and their subpages.
    Deeper directories are ignored.
    """

    def __init__(
        self,
        repo: Repository,
        metadata: Optional[MetadataStore] = None,
        orders: Optional[OrderStore] = None,
    ) -> None:
        self._repo = repo
        self._metadata = metadata or MetadataStore(repo)
        self._orders = orders or OrderStore(repo)

    def build(self, module: str) -> ModuleTree:
        """Build the ordered tree of one module.

        Raises:
            MissingModuleError: If the module directory does not exist.
        """
        if not module or not self._repo.is_dir(module):
            raise MissingModuleError(module)

        pages_dir = join(module, PAGES_DIR)
        order = self._orders.load(module)

        nodes: dict[str, PageNode] = {}
        for page_slug in self._repo.list_children(pages_dir):
            page_dir = join(pages_dir, page_slug)
            page = _make_node(page_slug, f"/{module}/{page_slug}", self._metadata.read(page_dir))
            page.children = self._build_children(module, page_slug, page_dir, order)
            nodes[page_slug] = page

        pages = [nodes[slug] for slug in apply_order(nodes, order.pages)]
        logger.debug(f"Built tree for module {module}: {len(pages)} pages")
        return ModuleTree(module=module, pages=pages)

    def _build_children(
        self, module: str, page_slug: str, page_dir: str, order: OrderFile
    ) -> list[PageNode]:
        subpages_dir = join(page_dir, SUBPAGES_DIR)
        children: dict[str, PageNode] = {}
        for sub_slug in self._repo.list_children(subpages_dir):
            sub_dir = join(subpages_dir, sub_slug)
            children[sub_slug] = _make_node(
                sub_slug,
                f"/{module}/{page_slug}/{sub_slug}",
                self._metadata.read(sub_dir),
            )
        preferred = order.subpages.get(page_slug, [])
        return [children[slug] for slug in apply_order(children, preferred)]

    def list_modules(self) -> list[ModuleSummary]:
        """Summaries of every module under the root, sorted case-insensitively."""
        summaries = []
        for name in sorted(self._repo.list_children(""), key=sort_key):
            if name.startswith("."):
                continue
            pages_dir = join(name, PAGES_DIR)
            page_slugs = self._repo.list_children(pages_dir)
            subpage_count = sum(
                len(self._repo.list_children(join(pages_dir, slug, SUBPAGES_DIR)))
                for slug in page_slugs
            )
            asset_count = sum(
                self._repo.count_files(join(name, subdir)) for subdir in ASSET_SUBDIRS
            )
            summaries.append(
                ModuleSummary(
                    name=name,
                    page_count=len(page_slugs),
                    subpage_count=subpage_count,
                    asset_count=asset_count,
                )
            )
        return summaries
