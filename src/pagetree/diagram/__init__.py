"""Mermaid diagrams of module trees."""

from pagetree.diagram.classifier import PageType, classify_page
from pagetree.diagram.mermaid import (
    GraphMode,
    MermaidOptions,
    build_graph,
    graph_to_dict,
    render_mermaid,
    resolve_link_target,
)
from pagetree.diagram.validator import sanitize_id, sanitize_label, validate_mermaid

__all__ = [
    "GraphMode",
    "MermaidOptions",
    "PageType",
    "build_graph",
    "classify_page",
    "graph_to_dict",
    "render_mermaid",
    "resolve_link_target",
    "sanitize_id",
    "sanitize_label",
    "validate_mermaid",
]
