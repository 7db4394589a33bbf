"""Ordering overrides: one pages/_order.json per module."""

import json
import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from pagetree.constants import ORDER_FILENAME, PAGES_DIR, SUBPAGES_DIR
from pagetree.errors import MissingModuleError, NodeNotFoundError, UnknownSlugError
from pagetree.tree.models import OrderFile
from pagetree.tree.repository import Repository, join

logger = logging.getLogger(__name__)


def dedupe(slugs: Iterable[str]) -> list[str]:
    """Drop repeated slugs, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for slug in slugs:
        if slug not in seen:
            seen.add(slug)
            result.append(slug)
    return result


def sort_key(slug: str) -> tuple[str, str]:
    """Case-insensitive ordering with the raw slug as tie-breaker."""
    return (slug.lower(), slug)


def apply_order(existing: Iterable[str], preferred: Iterable[str]) -> list[str]:
    """Order existing slugs: preferred ones first, the rest case-insensitively.

    Preferred slugs that do not exist are dropped, so the result always holds
    every existing slug exactly once.
    """
    present = set(existing)
    head = [slug for slug in dedupe(preferred) if slug in present]
    placed = set(head)
    tail = sorted((slug for slug in present if slug not in placed), key=sort_key)
    return head + tail


class OrderStore:
    """Loads, validates and persists module ordering overrides."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    @staticmethod
    def _order_path(module: str) -> str:
        return join(module, PAGES_DIR, ORDER_FILENAME)

    def load(self, module: str) -> OrderFile:
        """Load the module's order file; absent or corrupt files read as empty."""
        raw = self._repo.read_text(self._order_path(module))
        if raw is None:
            return OrderFile()
        try:
            return OrderFile.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unparsable order file for module {module}: {e}")
            return OrderFile()

    def save(self, module: str, order: OrderFile) -> OrderFile:
        """Deduplicate every list, write the order file and return what was written."""
        cleaned = OrderFile(
            pages=dedupe(order.pages),
            subpages={parent: dedupe(slugs) for parent, slugs in order.subpages.items()},
        )
        self._repo.create_dir(join(module, PAGES_DIR))
        content = json.dumps(cleaned.model_dump(), indent=2, ensure_ascii=False)
        self._repo.write_text(self._order_path(module), content + "\n")
        return cleaned

    def _require_existing(self, base: str, slugs: list[str]) -> None:
        for slug in slugs:
            if not slug or not self._repo.is_dir(join(base, slug)):
                raise UnknownSlugError(slug)

    def set_page_order(self, module: str, slugs: list[str]) -> OrderFile:
        """Persist the top-level page order after checking every slug exists.

        Raises:
            MissingModuleError: The module directory does not exist.
            UnknownSlugError: A slug has no page directory; nothing is written.
        """
        if not self._repo.is_dir(module):
            raise MissingModuleError(module)
        self._require_existing(join(module, PAGES_DIR), slugs)
        order = self.load(module)
        order.pages = list(slugs)
        return self.save(module, order)

    def set_subpage_order(self, module: str, parent: str, slugs: list[str]) -> OrderFile:
        """Persist the subpage order of one page after checking every slug exists.

        Raises:
            MissingModuleError: The module directory does not exist.
            NodeNotFoundError: The parent page does not exist.
            UnknownSlugError: A slug has no subpage directory; nothing is written.
        """
        if not self._repo.is_dir(module):
            raise MissingModuleError(module)
        parent_dir = join(module, PAGES_DIR, parent)
        if not parent or not self._repo.is_dir(parent_dir):
            raise NodeNotFoundError(f"{module}/{parent}")
        self._require_existing(join(parent_dir, SUBPAGES_DIR), slugs)
        order = self.load(module)
        order.subpages[parent] = list(slugs)
        return self.save(module, order)

    def set_order(self, module: str, parent: Optional[str], slugs: list[str]) -> OrderFile:
        """Dispatch to the page or subpage order depending on parent."""
        if parent:
            return self.set_subpage_order(module, parent, slugs)
        return self.set_page_order(module, slugs)
