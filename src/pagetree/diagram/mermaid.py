"""Mermaid flowchart generation for module trees."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import networkx as nx

from pagetree.config import MermaidConfig
from pagetree.constants import DEFAULT_DIRECTION, DEFAULT_THEME, VALID_DIRECTIONS
from pagetree.diagram.classifier import PageType, classify_page
from pagetree.diagram.validator import sanitize_id, sanitize_label
from pagetree.tree.models import Link, ModuleTree, PageNode

logger = logging.getLogger(__name__)

CONTAINS = "contains"
LINK = "link"
WORKFLOW = "workflow"


class GraphMode(str, Enum):
    """Rendering mode."""

    PLAIN = "plain"
    DETAILED = "detailed"


# Content blocks shown inside a page's expansion, by detected page type
CONTENT_SECTIONS: dict[PageType, tuple[str, ...]] = {
    PageType.LIST: ("Filter bar", "Data table", "Pagination"),
    PageType.DETAIL: ("Summary card", "Field list", "Related items"),
    PageType.CREATE: ("Input form", "Validation hints", "Submit actions"),
    PageType.EDIT: ("Prefilled form", "Change summary", "Save actions"),
    PageType.DELETE: ("Impact warning", "Confirmation form"),
    PageType.SEARCH: ("Search box", "Filter panel", "Result list"),
    PageType.DASHBOARD: ("KPI cards", "Charts", "Recent activity"),
    PageType.SETTINGS: ("Settings groups", "Toggle controls", "Save actions"),
    PageType.GENERAL: ("Main content",),
}

MODAL_LABELS: dict[PageType, str] = {
    PageType.CREATE: "Discard changes dialog",
    PageType.EDIT: "Discard changes dialog",
    PageType.DELETE: "Confirm delete dialog",
    PageType.SETTINGS: "Reset settings dialog",
}
DEFAULT_MODAL_LABEL = "Notification"

# User-workflow transitions between sibling pages: (from, to, edge label)
WORKFLOW_TRANSITIONS: list[tuple[PageType, PageType, str]] = [
    (PageType.LIST, PageType.CREATE, "add"),
    (PageType.LIST, PageType.DETAIL, "view"),
    (PageType.LIST, PageType.SEARCH, "filter"),
    (PageType.DETAIL, PageType.EDIT, "edit"),
    (PageType.DETAIL, PageType.DELETE, "delete"),
]


@dataclass(frozen=True)
class MermaidOptions:
    """Rendering preferences."""

    theme: str = DEFAULT_THEME
    direction: str = DEFAULT_DIRECTION
    label_max_length: int = 40

    @classmethod
    def from_config(cls, config: MermaidConfig) -> MermaidOptions:
        direction = config.layout_direction.upper()
        if direction not in VALID_DIRECTIONS:
            logger.warning(
                f"Unknown layout direction {config.layout_direction!r}, using {DEFAULT_DIRECTION}"
            )
            direction = DEFAULT_DIRECTION
        return cls(
            theme=config.theme or DEFAULT_THEME,
            direction=direction,
            label_max_length=config.label_max_length,
        )


def resolve_link_target(target: str) -> Optional[str]:
    """Map a link target to a node identifier.

    "/module/page[/subpage]" resolves segment by segment the same way node
    identifiers are built. A target without a leading "/" is a literal
    identifier. Any other depth is unresolvable and yields None.
    """
    target = target.strip()
    if not target:
        return None
    if not target.startswith("/"):
        return sanitize_id(target)
    segments = [segment for segment in target.split("/") if segment]
    if len(segments) not in (2, 3):
        return None
    return "_".join(sanitize_id(segment) for segment in segments)


def build_graph(trees: list[ModuleTree]) -> nx.MultiDiGraph:
    """Build the node/edge graph of one or more module trees.

    Nodes are keyed by sanitized identifier and carry kind, slug, label, path,
    css_class and page_type. Edges carry kind (contains, link or workflow) and
    an optional label. Insertion order follows tree order.
    """
    graph = nx.MultiDiGraph()
    pending_links: list[tuple[str, Link]] = []

    def add_node(node_id: str, **attrs) -> None:
        if graph.has_node(node_id):
            # Sibling slugs that sanitize to the same identifier are not disambiguated
            logger.warning(f"Duplicate diagram identifier {node_id!r} for {attrs.get('path')}")
        graph.add_node(node_id, **attrs)

    def add_page(node: PageNode, node_id: str, kind: str) -> None:
        add_node(
            node_id,
            kind=kind,
            slug=node.slug,
            label=node.title or node.slug,
            path=node.path,
            css_class=node.css_class,
            page_type=classify_page(node.slug, node.action).value,
        )
        for link in node.links:
            pending_links.append((node_id, link))

    for tree in trees:
        module_id = sanitize_id(tree.module)
        add_node(
            module_id, kind="module", slug=tree.module, label=tree.module, path=f"/{tree.module}"
        )
        for page in tree.pages:
            page_id = f"{module_id}_{sanitize_id(page.slug)}"
            add_page(page, page_id, "page")
            graph.add_edge(module_id, page_id, kind=CONTAINS)
            for sub in page.children:
                sub_id = f"{page_id}_{sanitize_id(sub.slug)}"
                add_page(sub, sub_id, "subpage")
                graph.add_edge(page_id, sub_id, kind=CONTAINS)
            _add_workflow_edges(graph, [f"{page_id}_{sanitize_id(s.slug)}" for s in page.children])
        _add_workflow_edges(graph, [f"{module_id}_{sanitize_id(p.slug)}" for p in tree.pages])

    # Links are resolved after every node exists so statement order stays tree order
    for source_id, link in pending_links:
        target_id = resolve_link_target(link.target)
        if target_id is None:
            logger.debug(f"Dropping unresolvable link {link.target!r} from {source_id}")
            continue
        graph.add_edge(source_id, target_id, kind=LINK, label=link.label)

    return graph


def _add_workflow_edges(graph: nx.MultiDiGraph, sibling_ids: list[str]) -> None:
    typed = [(node_id, PageType(graph.nodes[node_id]["page_type"])) for node_id in sibling_ids]
    for source_type, target_type, label in WORKFLOW_TRANSITIONS:
        for source_id, page_type in typed:
            if page_type is not source_type:
                continue
            for target_id, other_type in typed:
                if other_type is target_type and target_id != source_id:
                    graph.add_edge(source_id, target_id, kind=WORKFLOW, label=label)


def _edge_lines(graph: nx.MultiDiGraph, kind: str, arrow: str) -> list[str]:
    lines = []
    for source, target, data in graph.edges(data=True):
        if data.get("kind") != kind:
            continue
        label = data.get("label")
        if label:
            lines.append(f"    {source} {arrow}|{sanitize_label(label, 30)}| {target}")
        else:
            lines.append(f"    {source} {arrow} {target}")
    return lines


def _expansion_lines(node_id: str, attrs: dict, options: MermaidOptions) -> list[str]:
    page_type = PageType(attrs["page_type"])
    label = sanitize_label(attrs["label"], options.label_max_length)
    sections = CONTENT_SECTIONS[page_type]
    content_ids = [f"{node_id}__content_{i}" for i in range(1, len(sections) + 1)]

    lines = [f'    subgraph {node_id}__ui["{label} ({page_type.value})"]']
    lines.append(f'        {node_id}__header["Header"]')
    lines.append(f'        {node_id}__sidebar["Sidebar"]')
    for content_id, section in zip(content_ids, sections):
        lines.append(f'        {content_id}["{section}"]')
    lines.append(f'        {node_id}__footer["Footer"]')
    modal = MODAL_LABELS.get(page_type, DEFAULT_MODAL_LABEL)
    lines.append(f'        {node_id}__modal["{modal}"]')
    lines.append("    end")

    chain = [f"{node_id}__header", *content_ids, f"{node_id}__footer"]
    lines.append(f"    {node_id} --> {chain[0]}")
    for source, target in zip(chain, chain[1:]):
        lines.append(f"    {source} --> {target}")
    lines.append(f"    {node_id}__sidebar -.-> {content_ids[0]}")
    lines.append(f"    {content_ids[-1]} -.-> {node_id}__modal")
    return lines


def render_mermaid(
    graph: nx.MultiDiGraph,
    options: Optional[MermaidOptions] = None,
    mode: GraphMode = GraphMode.PLAIN,
) -> str:
    """Serialize a graph from build_graph() into deterministic Mermaid text."""
    options = options or MermaidOptions()
    lines = []
    if options.theme:
        lines.append(f"%%{{init: {{'theme': '{options.theme}'}}}}%%")
    lines.append(f"flowchart {options.direction}")

    nodes = [(node_id, attrs) for node_id, attrs in graph.nodes(data=True) if "kind" in attrs]
    if not nodes:
        lines.append('    empty["No pages"]')
        return "\n".join(lines)

    for node_id, attrs in nodes:
        label = sanitize_label(attrs["label"], options.label_max_length)
        statement = f'    {node_id}["{label}"]'
        if attrs.get("css_class"):
            statement += f":::{sanitize_id(attrs['css_class'])}"
        lines.append(statement)

    lines.extend(_edge_lines(graph, CONTAINS, "-->"))
    lines.extend(_edge_lines(graph, LINK, "-.->"))

    if mode is GraphMode.DETAILED:
        lines.extend(_edge_lines(graph, WORKFLOW, "==>"))
        for node_id, attrs in nodes:
            if attrs["kind"] in ("page", "subpage"):
                lines.extend(_expansion_lines(node_id, attrs, options))

    return "\n".join(lines)


def graph_to_dict(graph: nx.MultiDiGraph) -> dict:
    """Serialize a graph to plain node and edge lists for JSON output."""
    return {
        "nodes": [
            {"id": node_id, **attrs} for node_id, attrs in graph.nodes(data=True) if "kind" in attrs
        ],
        "edges": [
            {
                "source": source,
                "target": target,
                "kind": data.get("kind"),
                "label": data.get("label"),
            }
            for source, target, data in graph.edges(data=True)
        ],
    }
