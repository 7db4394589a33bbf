"""Schemas for sitemap nodes, sidecar metadata and ordering overrides."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pagetree.constants import SLUG_FORBIDDEN_CHARS
from pagetree.errors import InvalidInputError


class Link(BaseModel):
    """Cross-reference from one node to another node or an external path."""

    model_config = ConfigDict(populate_by_name=True)

    target: str = Field(..., alias="to", description="Absolute node path or literal identifier")
    label: Optional[str] = Field(None, description="Optional edge label")


class PageMeta(BaseModel):
    """Contents of a node's page.json sidecar.

    Every field is optional. Keys this model does not know about are kept
    so a rewrite never drops attributes written by other tools.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: Optional[str] = None
    status: Optional[str] = None
    route: Optional[str] = None
    notes: Optional[str] = None
    path: Optional[str] = None
    domain: Optional[str] = None
    area: Optional[str] = None
    component: Optional[str] = None
    action: Optional[str] = None
    css_class: Optional[str] = Field(None, alias="class")
    links: list[Link] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Serialize using on-disk key names, omitting empty values."""
        return self.model_dump(by_alias=True, exclude_defaults=True)


class PageMetaPatch(BaseModel):
    """Partial metadata update.

    Only fields present in the request are applied. Unknown keys are rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: Optional[str] = None
    status: Optional[str] = None
    route: Optional[str] = None
    notes: Optional[str] = None
    path: Optional[str] = None
    domain: Optional[str] = None
    area: Optional[str] = None
    component: Optional[str] = None
    action: Optional[str] = None
    css_class: Optional[str] = Field(None, alias="class")
    links: Optional[list[Link]] = None


class OrderFile(BaseModel):
    """Ordering override stored in pages/_order.json."""

    pages: list[str] = Field(default_factory=list)
    subpages: dict[str, list[str]] = Field(default_factory=dict)


class PageNode(BaseModel):
    """A page or subpage in a built tree."""

    model_config = ConfigDict(populate_by_name=True)

    slug: str
    path: str
    title: Optional[str] = None
    status: Optional[str] = None
    route: Optional[str] = None
    notes: Optional[str] = None
    domain: Optional[str] = None
    area: Optional[str] = None
    component: Optional[str] = None
    action: Optional[str] = None
    css_class: Optional[str] = Field(None, alias="class")
    links: list[Link] = Field(default_factory=list)
    children: list[PageNode] = Field(default_factory=list)


class ModuleTree(BaseModel):
    """Ordered pages of one module."""

    module: str
    pages: list[PageNode] = Field(default_factory=list)


class ModuleSummary(BaseModel):
    """Module entry returned by list_modules."""

    name: str
    page_count: int
    subpage_count: int
    asset_count: int


class NodeRef(BaseModel):
    """Reference to a node returned by create and rename."""

    module: str
    slug: str
    parent: Optional[str] = None
    path: str
    stale_references: list[str] = Field(
        default_factory=list,
        description="Order entries, metadata and links still naming the old slug after a rename",
    )


def validate_slug(slug: str) -> str:
    """Return the slug unchanged or raise InvalidInputError."""
    if not slug or not slug.strip():
        raise InvalidInputError("Slug must not be empty")
    if any(ch in slug for ch in SLUG_FORBIDDEN_CHARS):
        raise InvalidInputError(f"Slug must not contain a path separator: {slug!r}")
    if slug in (".", ".."):
        raise InvalidInputError(f"Invalid slug: {slug!r}")
    return slug


@dataclass(frozen=True)
class NodePath:
    """Location of a page or subpage: module/page[/subpage]."""

    module: str
    page: str
    subpage: Optional[str] = None

    @classmethod
    def parse(cls, raw: str) -> NodePath:
        """Parse "module/page" or "module/page/subpage" (leading slash allowed).

        Raises:
            InvalidInputError: For any other depth or an invalid segment.
        """
        parts = raw.strip().strip("/").split("/")
        if len(parts) not in (2, 3):
            raise InvalidInputError(
                f"Node path must be module/page or module/page/subpage: {raw!r}"
            )
        for part in parts:
            validate_slug(part)
        return cls(*parts)

    @property
    def slug(self) -> str:
        return self.subpage if self.subpage is not None else self.page

    @property
    def parent(self) -> Optional[str]:
        """Parent page slug for subpages, None for top-level pages."""
        return self.page if self.subpage is not None else None

    @property
    def url_path(self) -> str:
        """Default path stored in metadata: /module/page[/subpage]."""
        return "/" + str(self)

    def with_slug(self, slug: str) -> NodePath:
        if self.subpage is not None:
            return NodePath(self.module, self.page, slug)
        return NodePath(self.module, slug)

    def to_ref(self) -> NodeRef:
        return NodeRef(module=self.module, slug=self.slug, parent=self.parent, path=self.url_path)

    def __str__(self) -> str:
        if self.subpage is not None:
            return f"{self.module}/{self.page}/{self.subpage}"
        return f"{self.module}/{self.page}"


class SubpageExport(BaseModel):
    slug: str
    title: Optional[str] = None
    status: Optional[str] = None
    route: Optional[str] = None
    notes: Optional[str] = None


class PageExport(SubpageExport):
    subpages: list[SubpageExport] = Field(default_factory=list)


class ModuleExport(BaseModel):
    name: str
    pages: list[PageExport] = Field(default_factory=list)


class SitemapExport(BaseModel):
    """Portable snapshot of every module's ordered tree."""

    project_name: str
    export_timestamp: datetime
    modules: list[ModuleExport] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Counts of what import_sitemap changed."""

    modules_created: int = 0
    pages_created: int = 0
    subpages_created: int = 0
    nodes_updated: int = 0
