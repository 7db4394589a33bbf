"""Mermaid rendering defaults."""

DEFAULT_THEME = "default"
DEFAULT_DIRECTION = "TD"

VALID_DIRECTIONS = frozenset(["TD", "TB", "BT", "LR", "RL"])

# Fallback identifier when sanitization leaves nothing behind.
EMPTY_ID = "n"

# Words that start a Mermaid statement; a bare node identifier must not equal one.
RESERVED_IDS = frozenset(
    [
        "end",
        "subgraph",
        "graph",
        "flowchart",
        "style",
        "class",
        "classdef",
        "click",
        "linkstyle",
        "direction",
    ]
)
