"""Page-type classification from slug text and the explicit action attribute."""

from enum import Enum
from typing import Optional


class PageType(Enum):
    """Kinds of pages recognized by the detailed workflow diagrams."""

    LIST = "list"
    DETAIL = "detail"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    SEARCH = "search"
    DASHBOARD = "dashboard"
    SETTINGS = "settings"
    GENERAL = "general"


# Evaluated top to bottom; the first rule with a matching keyword wins.
CLASSIFICATION_RULES: list[tuple[tuple[str, ...], PageType]] = [
    (("list", "index"), PageType.LIST),
    (("detail", "view", "show"), PageType.DETAIL),
    (("create", "new", "add"), PageType.CREATE),
    (("edit", "update", "modify"), PageType.EDIT),
    (("delete", "remove"), PageType.DELETE),
    (("search", "filter"), PageType.SEARCH),
    (("dashboard", "overview"), PageType.DASHBOARD),
    (("settings", "config"), PageType.SETTINGS),
]


def _match(text: str) -> Optional[PageType]:
    lowered = text.lower()
    for keywords, page_type in CLASSIFICATION_RULES:
        if any(keyword in lowered for keyword in keywords):
            return page_type
    return None


def classify_page(slug: str, action: Optional[str] = None) -> PageType:
    """Classify a page by substring match against the ordered rules.

    The explicit action attribute is consulted first; the slug is used when
    the action is absent or matches no rule.
    """
    if action:
        page_type = _match(action)
        if page_type is not None:
            return page_type
    return _match(slug) or PageType.GENERAL
